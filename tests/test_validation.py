import pytest

from allocation_planner.buckets import Bucket, BucketSet, BucketType
from allocation_planner.validation import (
    BELOW_MINIMUM,
    HARD_LIMIT,
    WARNING,
    report,
    summary_frame,
)


def _plan(discretionary=800, goal=1200, investments=1500, income=5000, essential=1500):
    return BucketSet(
        income=income,
        buckets=(
            Bucket('Essential', BucketType.ESSENTIAL, essential),
            Bucket('Discretionary', BucketType.DISCRETIONARY, discretionary),
            Bucket('Goal', BucketType.SAVINGS_GOAL, goal),
            Bucket('Investments', BucketType.INVESTMENTS, investments),
        ),
    )


def test_balanced_plan_is_valid():
    result = report(_plan())

    assert result.total_allocated == 5000
    assert result.percentage == pytest.approx(100)
    assert result.is_valid
    assert result.remaining == 0
    assert result.warnings == ()


def test_underallocated_plan_is_invalid():
    result = report(_plan(discretionary=0, goal=0, investments=0))

    assert result.percentage == pytest.approx(30)
    assert not result.is_valid
    assert result.remaining == 3500


def test_tolerance_boundary():
    # 4996 / 5000 = 99.92%
    slightly_under = _plan(investments=1496)
    assert report(slightly_under, tolerance=0.1).is_valid
    assert not report(slightly_under, tolerance=0.05).is_valid


def test_zero_income_reports_zero_percent():
    result = report(_plan(discretionary=0, goal=0, investments=0, income=0, essential=0))
    assert result.percentage == 0
    assert not result.is_valid


def test_discretionary_warning_and_hard_limit():
    warn = report(_plan(discretionary=2000, goal=500, investments=1000))
    assert [w.kind for w in warn.warnings] == [WARNING]
    assert warn.is_valid
    assert not warn.exceeds_hard_limit

    limit = report(_plan(discretionary=2600, goal=500, investments=400))
    kinds = {w.kind for w in limit.warnings}
    assert HARD_LIMIT in kinds
    assert limit.exceeds_hard_limit
    assert limit.is_valid


def test_below_recommended_minimum():
    result = report(_plan(discretionary=1600, goal=200, investments=1700))
    below = [w for w in result.warnings if w.kind == BELOW_MINIMUM]
    assert [w.bucket_id for w in below] == ['Goal']
    assert 'Emergency Fund' in below[0].message


def test_report_to_dict():
    payload = report(_plan()).to_dict()
    assert payload['is_valid'] is True
    assert payload['warnings'] == []


def test_summary_frame_rows_and_change():
    frame = summary_frame(_plan(discretionary=1000, goal=1100, investments=1400), original=_plan().amounts())

    assert list(frame.columns) == ['Bucket', 'Type', 'Amount', '% of Income', 'Locked', 'Change']
    assert list(frame['Bucket']) == ['Essential', 'Discretionary', 'Goal', 'Investments']
    row = frame.set_index('Bucket').loc['Discretionary']
    assert row['Change'] == 200
    assert row['% of Income'] == 20
    assert bool(frame.set_index('Bucket').loc['Essential', 'Locked'])
