import dataclasses

import pytest

from allocation_planner.buckets import _TYPE_DETAILS, Bucket, BucketSet, BucketType
from allocation_planner.errors import InvalidBucketSet


def _scenario_set():
    return BucketSet(
        income=5000,
        buckets=(
            Bucket('Essential', BucketType.ESSENTIAL, 1500),
            Bucket('Discretionary', BucketType.DISCRETIONARY, 800),
            Bucket('Goal', BucketType.SAVINGS_GOAL, 1200),
            Bucket('Investments', BucketType.INVESTMENTS, 1500),
        ),
    )


def test_only_essential_is_locked():
    assert BucketType.ESSENTIAL.locked
    assert [t for t in BucketType if t.locked] == [BucketType.ESSENTIAL]
    assert all(t.modifiable for t in BucketType if t is not BucketType.ESSENTIAL)
    assert BucketType.SAVINGS_GOAL.is_duration_based
    assert not BucketType.INVESTMENTS.is_duration_based


def test_every_type_carries_its_details():
    assert set(_TYPE_DETAILS) == set(BucketType)
    for bucket_type in BucketType:
        assert bucket_type.description
        assert bucket_type.color.startswith('#')
        assert bucket_type.slug
    assert BucketType.INVESTMENTS.recommended_minimum_percent == 5
    assert 'Groceries' in BucketType.ESSENTIAL.default_categories


def test_parse_accepts_names_values_and_slugs():
    assert BucketType.parse('Emergency Fund') is BucketType.SAVINGS_GOAL
    assert BucketType.parse('SAVINGS_GOAL') is BucketType.SAVINGS_GOAL
    assert BucketType.parse('discretionary') is BucketType.DISCRETIONARY
    with pytest.raises(ValueError):
        BucketType.parse('Crypto')


def test_bucket_locked_follows_type():
    assert Bucket('e', BucketType.ESSENTIAL, 10).locked
    assert Bucket('d', BucketType.DISCRETIONARY, 10).modifiable


def test_bucket_set_is_ordered_mapping():
    buckets = _scenario_set()
    assert buckets.ids == ('Essential', 'Discretionary', 'Goal', 'Investments')
    assert buckets['Goal'].amount == 1200
    assert 'Goal' in buckets
    assert 'Nope' not in buckets
    assert buckets.get('Nope') is None
    assert len(buckets) == 4
    assert buckets.total == 5000
    assert buckets.locked_bucket.id == 'Essential'
    assert [b.id for b in buckets.modifiable_buckets] == ['Discretionary', 'Goal', 'Investments']


def test_bucket_set_is_immutable():
    buckets = _scenario_set()
    with pytest.raises(dataclasses.FrozenInstanceError):
        buckets.income = 10
    with pytest.raises(dataclasses.FrozenInstanceError):
        buckets['Goal'].amount = 10


def test_with_amounts_returns_new_value():
    buckets = _scenario_set()
    updated = buckets.with_amounts({'Goal': 1000, 'Investments': 1700})

    assert updated is not buckets
    assert updated['Goal'].amount == 1000
    assert buckets['Goal'].amount == 1200
    assert updated['Essential'] == buckets['Essential']
    assert updated != buckets


def test_with_amounts_rejects_unknown_ids():
    with pytest.raises(InvalidBucketSet):
        _scenario_set().with_amounts({'Missing': 1})


@pytest.mark.parametrize(
    "buckets",
    [
        (Bucket('a', BucketType.DISCRETIONARY, 1),),
        (Bucket('a', BucketType.ESSENTIAL, 1), Bucket('b', BucketType.ESSENTIAL, 1)),
        (Bucket('a', BucketType.ESSENTIAL, 1), Bucket('a', BucketType.DISCRETIONARY, 1)),
        (Bucket('a', BucketType.ESSENTIAL, 1), Bucket('b', BucketType.DISCRETIONARY, -1)),
    ],
)
def test_structural_rules_are_enforced(buckets):
    with pytest.raises(InvalidBucketSet):
        BucketSet(income=100, buckets=buckets)


def test_negative_income_rejected():
    with pytest.raises(InvalidBucketSet):
        BucketSet(income=-1, buckets=(Bucket('e', BucketType.ESSENTIAL, 0),))


def test_from_baseline_keeps_matching_suggestions():
    buckets = BucketSet.from_baseline(
        5000,
        1500,
        {BucketType.DISCRETIONARY: 800, BucketType.SAVINGS_GOAL: 1200, BucketType.INVESTMENTS: 1500},
    )
    assert buckets.amounts() == {
        'essential': 1500,
        'emergency_fund': 1200,
        'discretionary': 800,
        'investments': 1500,
    }


def test_from_baseline_scales_suggestions_to_remaining_income():
    buckets = BucketSet.from_baseline(
        4000,
        1000,
        {'Discretionary Spending': 1000, 'Investments': 1000},
    )
    assert buckets['essential'].amount == 1000
    assert buckets['discretionary'].amount == 1500
    assert buckets['investments'].amount == 1500
    assert buckets['emergency_fund'].amount == 0
    assert buckets.total == pytest.approx(4000)


def test_from_baseline_without_suggestions_splits_equally():
    buckets = BucketSet.from_baseline(1000, 100, ids={BucketType.ESSENTIAL: 'needs'})
    assert buckets.locked_bucket.id == 'needs'
    assert buckets.total == pytest.approx(1000, abs=0.01)
    amounts = sorted(b.amount for b in buckets.modifiable_buckets)
    assert amounts == [300, 300, 300]


def test_from_baseline_reconciles_rounding():
    buckets = BucketSet.from_baseline(100, 0, None)
    assert buckets.total == pytest.approx(100, abs=0.001)
    assert max(b.amount for b in buckets.modifiable_buckets) == pytest.approx(33.34)


def test_with_baseline_rebuilds_around_new_locked_amount():
    buckets = _scenario_set().with_baseline(2000)

    assert buckets['Essential'].amount == 2000
    assert buckets.total == pytest.approx(5000, abs=0.01)
    assert buckets['Investments'].amount > buckets['Goal'].amount > buckets['Discretionary'].amount


def test_dict_round_trip_keeps_metadata():
    original = _scenario_set().with_bucket(
        Bucket('Goal', BucketType.SAVINGS_GOAL, 1200, target_amount=9000, duration_months=6)
    )
    assert BucketSet.from_dict(original.to_dict()) == original


def test_with_baseline_mixes_suggestions_and_current_weights():
    buckets = _scenario_set().with_baseline(1500, {BucketType.DISCRETIONARY: 300})

    assert buckets.ids == ('Essential', 'Discretionary', 'Goal', 'Investments')
    assert buckets['Discretionary'].amount == pytest.approx(350)
    assert buckets['Goal'].amount == pytest.approx(1400)
    assert buckets['Investments'].amount == pytest.approx(1750)


def test_from_dict_rejects_non_mapping_rows():
    with pytest.raises(InvalidBucketSet):
        BucketSet.from_dict({'income': 10, 'buckets': [[1, 2]]})
