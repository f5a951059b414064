import json

import pytest

from allocation_planner.buckets import Bucket, BucketSet, BucketType
from allocation_planner.errors import PlanNotSaveable
from allocation_planner.file_operations import safe_filename
from allocation_planner.storage import PlanStorage
from allocation_planner.validation import report


def _plan(investments=1500):
    return BucketSet(
        income=5000,
        buckets=(
            Bucket('Essential', BucketType.ESSENTIAL, 1500),
            Bucket('Discretionary', BucketType.DISCRETIONARY, 800),
            Bucket('Goal', BucketType.SAVINGS_GOAL, 1200, target_amount=9000, duration_months=6),
            Bucket('Investments', BucketType.INVESTMENTS, investments),
        ),
    )


def test_save_and_load_round_trip(tmp_path):
    storage = PlanStorage(tmp_path / 'plans')
    path = storage.save('My Plan 2024!', _plan())

    assert path == tmp_path / 'plans' / 'My_Plan_2024.json'
    payload = json.loads(path.read_text(encoding='utf-8'))
    assert payload['name'] == 'My Plan 2024!'
    assert payload['percentage'] == pytest.approx(100)
    assert payload['version'] == 1
    assert storage.load('My Plan 2024!') == _plan()


def test_save_rejects_invalid_plan(tmp_path):
    storage = PlanStorage(tmp_path)
    with pytest.raises(PlanNotSaveable):
        storage.save('short', _plan(investments=100))
    assert list(tmp_path.glob('*.json')) == []


def test_save_uses_given_report(tmp_path):
    storage = PlanStorage(tmp_path)
    plan = _plan()
    strict = report(plan, tolerance=0.0)
    assert storage.save('exact', plan, strict).exists()


def test_save_requires_name(tmp_path):
    with pytest.raises(ValueError):
        PlanStorage(tmp_path).save('  ', _plan())


def test_load_all_skips_corrupt_files(tmp_path):
    storage = PlanStorage(tmp_path)
    storage.save('good', _plan())
    (tmp_path / 'broken.json').write_text('{not json', encoding='utf-8')
    (tmp_path / 'wrong.json').write_text(json.dumps({'income': 10, 'buckets': []}), encoding='utf-8')
    (tmp_path / 'rows.json').write_text(json.dumps({'income': 10, 'buckets': [[1, 2]]}), encoding='utf-8')

    plans = storage.load_all()

    assert list(plans) == ['good']
    assert plans['good']['bucket_set'] == _plan()
    assert plans['good']['saved_at']


def test_load_all_missing_directory(tmp_path):
    assert PlanStorage(tmp_path / 'absent').load_all() == {}


def test_delete(tmp_path):
    storage = PlanStorage(tmp_path)
    storage.save('gone', _plan())
    storage.delete('gone')
    assert not storage.get_path('gone').exists()
    storage.delete('gone')  # missing files are ignored
    with pytest.raises(ValueError):
        storage.delete('')


def test_load_missing_plan_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        PlanStorage(tmp_path).load('nothing')


@pytest.mark.parametrize(
    "name, expected",
    [("My Plan 2024!", "My_Plan_2024"), ("", "plan"), ("a  b", "a_b"), ("***", "plan"), ("rent -- june", "rent_--_june")],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected
