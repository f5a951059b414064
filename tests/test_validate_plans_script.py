import importlib.util
import json
from pathlib import Path

from allocation_planner import AllocationPlanner, BucketType, PlanStorage

SCRIPT_PATH = Path(__file__).resolve().parents[1] / 'scripts' / 'validate_plans.py'


def _load_script_module():
    spec = importlib.util.spec_from_file_location('validate_plans_test', SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_missing_directory_fails(tmp_path):
    module = _load_script_module()
    assert module.main(tmp_path / 'absent') == 1


def test_valid_plans_pass(tmp_path, capsys):
    planner = AllocationPlanner.from_baseline(4000, 1200, {BucketType.INVESTMENTS: 1})
    planner.save(PlanStorage(tmp_path), 'lean')

    module = _load_script_module()
    assert module.main(tmp_path) == 0
    assert 'validated successfully' in capsys.readouterr().out


def test_tampered_plan_fails(tmp_path):
    planner = AllocationPlanner.from_baseline(4000, 1200)
    path = planner.save(PlanStorage(tmp_path), 'edited by hand')
    payload = json.loads(path.read_text(encoding='utf-8'))
    payload['buckets'][1]['amount'] = 0
    path.write_text(json.dumps(payload), encoding='utf-8')

    module = _load_script_module()
    assert module.main(tmp_path) == 1


def test_malformed_bucket_rows_are_skipped(tmp_path):
    planner = AllocationPlanner.from_baseline(4000, 1200)
    planner.save(PlanStorage(tmp_path), 'kept')
    (tmp_path / 'rows.json').write_text(json.dumps({'income': 10, 'buckets': [[1, 2]]}), encoding='utf-8')

    module = _load_script_module()
    assert module.main(tmp_path) == 0
