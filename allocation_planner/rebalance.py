"""Rebalance engine.

Given a proposed amount for one modifiable bucket, :func:`apply` derives a
brand-new :class:`~allocation_planner.buckets.BucketSet` in which every other
modifiable bucket has absorbed the change and the total still equals income.

Steps, in order:

1. reject unknown ids and the locked bucket (input returned unchanged)
2. clamp the proposed amount into ``[0, income]``
3. ``delta = proposed - current``
4. candidates are the modifiable buckets other than the edited one
5. candidates with capacity absorb ``delta`` by their share of the candidate
   total (``proportional``) or in equal parts (``equal``), floored at zero
6. candidates with no capacity at all split ``delta`` equally, clamped
7. the edited bucket takes the clamped proposed amount
8. amounts are rounded to the currency unit and the residual goes to the
   largest modifiable bucket (lowest id on ties)

The total-equals-income rule wins over the exact proposed amount: when the
candidates cannot absorb a raise, the residual step trims the edited bucket.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .buckets import Bucket, BucketSet
from .config import currency_precision
from .errors import AllocationError, LockedBucketEditAttempt, UnknownBucket
from .formatting import format_currency, format_delta

logger = logging.getLogger(__name__)

PROPORTIONAL = 'proportional'
EQUAL = 'equal'

# Deltas smaller than this are treated as "no change".
_NEGLIGIBLE = 1e-9


@dataclass(frozen=True)
class Edit:
    bucket_id: str
    proposed_amount: float


@dataclass(frozen=True)
class RebalanceOutcome:
    """Result of one :func:`apply` call.

    ``bucket_set`` is always a complete set: the rebalanced one when the edit
    was accepted, the untouched input when it was rejected (``error`` set).
    """

    bucket_set: BucketSet
    error: Optional[AllocationError] = None
    delta: float = 0.0
    adjusted: Tuple[str, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.error is None


def clamp_amount(value: float, income: float) -> float:
    """Clamp ``value`` into ``[0, income]``; NaN becomes 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return max(0.0, min(float(income), value))


def _absorb_proportionally(candidates: Sequence[Bucket], delta: float, income: float) -> Dict[str, float]:
    capacity = sum(b.amount for b in candidates)
    return {
        b.id: min(income, max(0.0, b.amount - delta * (b.amount / capacity)))
        for b in candidates
    }


def _absorb_equally(candidates: Sequence[Bucket], delta: float, income: float) -> Dict[str, float]:
    share = delta / len(candidates)
    return {b.id: max(0.0, min(income, b.amount - share)) for b in candidates}


_ABSORPTION_STRATEGIES: Dict[str, Callable[[Sequence[Bucket], float, float], Dict[str, float]]] = {
    PROPORTIONAL: _absorb_proportionally,
    EQUAL: _absorb_equally,
}


def residual_order(bucket_set: BucketSet, amounts: Dict[str, float]) -> List[str]:
    """Modifiable bucket ids ordered largest amount first, lowest id on ties."""
    return [
        b.id
        for b in sorted(bucket_set.modifiable_buckets, key=lambda b: (-amounts[b.id], b.id))
    ]


def distribute_residual(
    bucket_set: BucketSet,
    amounts: Dict[str, float],
    residual: float,
    precision: int = 2,
) -> Dict[str, float]:
    """Fold a signed ``residual`` back into the modifiable buckets.

    The largest bucket takes all of it unless that would push it outside
    ``[0, income]``; whatever it cannot take moves on to the next bucket in
    :func:`residual_order`. The locked bucket is never touched. Returns a new
    amounts mapping.
    """
    result = dict(amounts)
    remaining = residual
    half_unit = 0.5 * 10 ** -precision

    for bucket_id in residual_order(bucket_set, result):
        if abs(remaining) < half_unit:
            break
        current = result[bucket_id]
        updated = round(max(0.0, min(bucket_set.income, current + remaining)), precision)
        remaining = round(remaining - (updated - current), precision)
        result[bucket_id] = updated

    if abs(remaining) >= half_unit:
        logger.warning(
            "Could not place residual of %s; locked amount exceeds available income",
            format_currency(remaining),
        )
    return result


def apply(
    bucket_set: BucketSet,
    edit: Edit,
    strategy: str = PROPORTIONAL,
    precision: Optional[int] = None,
) -> RebalanceOutcome:
    """Apply ``edit`` to ``bucket_set`` and return the rebalanced outcome.

    Args:
        bucket_set: Current, consistent set of buckets
        edit: Bucket id and proposed amount
        strategy: ``'proportional'`` (default) or ``'equal'`` absorption.
            Proportional absorption weights the other buckets by size, so
            raising Discretionary 800 -> 1000 against Goal 1200 and
            Investments 1500 yields 1111.11 / 1388.89. Pass ``'equal'`` to
            split the change evenly instead (1100 / 1400).
        precision: Decimal places of the currency unit (config default)

    Returns:
        A :class:`RebalanceOutcome`. Rejected edits carry ``UnknownBucket`` or
        ``LockedBucketEditAttempt`` and the input set unchanged.

    Raises:
        ValueError: If ``strategy`` is not a known absorption strategy.
    """
    absorb = _ABSORPTION_STRATEGIES.get(strategy)
    if absorb is None:
        raise ValueError(f"Unknown rebalance strategy: {strategy!r}")
    precision = currency_precision() if precision is None else precision

    target = bucket_set.get(edit.bucket_id)
    if target is None:
        logger.warning("Rejected edit: bucket %s not found", edit.bucket_id)
        return RebalanceOutcome(
            bucket_set,
            UnknownBucket(f"Bucket '{edit.bucket_id}' does not exist", edit.bucket_id),
        )
    if target.locked:
        logger.warning("Rejected edit: cannot modify locked bucket %s", target.display_name)
        return RebalanceOutcome(
            bucket_set,
            LockedBucketEditAttempt(
                f"'{target.display_name}' is calculated from your transactions and cannot be edited",
                target.id,
            ),
        )

    income = bucket_set.income
    proposed = clamp_amount(edit.proposed_amount, income)
    delta = proposed - target.amount
    amounts = bucket_set.amounts()

    logger.debug(
        "'%s' changed: %s -> %s (%s)",
        target.display_name,
        format_currency(target.amount),
        format_currency(proposed),
        format_delta(delta),
    )

    if abs(delta) > _NEGLIGIBLE:
        candidates = [b for b in bucket_set.modifiable_buckets if b.id != target.id]
        if candidates:
            capacity = sum(b.amount for b in candidates)
            if capacity > 0:
                absorbed = absorb(candidates, delta, income)
            else:
                # Nothing to scale from: split the change equally.
                absorbed = _absorb_equally(candidates, delta, income)
            for bucket_id, amount in absorbed.items():
                amounts[bucket_id] = round(amount, precision)
        else:
            logger.debug("No other modifiable buckets to adjust")
        amounts[target.id] = round(proposed, precision)

    residual = round(income - sum(amounts.values()), precision)
    if residual != 0:
        logger.debug("Rounding adjustment of %s", format_delta(residual))
        amounts = distribute_residual(bucket_set, amounts, residual, precision)

    adjusted = tuple(b.id for b in bucket_set if amounts[b.id] != b.amount)
    if not adjusted:
        return RebalanceOutcome(bucket_set, delta=delta)

    result = bucket_set.with_amounts({bucket_id: amounts[bucket_id] for bucket_id in adjusted})
    logger.debug("Total allocation: %s of %s", format_currency(result.total), format_currency(income))
    return RebalanceOutcome(result, delta=delta, adjusted=adjusted)
