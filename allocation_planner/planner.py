"""Planning session orchestration.

:class:`AllocationPlanner` is the single source of truth for one planning
session. Each edit flows through the target calculator (duration picker
only), the rebalance engine and the validation reporter, and the session's
current :class:`PlanUpdate` is *replaced* with a new immutable value.
Subscribers are notified with the whole update on every replacement, never
with individual bucket fields.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pandas as pd

from .buckets import BucketSet, BucketType
from .config import savings_horizon_months
from .errors import AllocationError, InvalidDuration, InvalidEditSource, UnknownBucket
from .events import EditEvent, EditSource, coerce_amount
from .formatting import format_currency, format_percentage
from .rebalance import PROPORTIONAL, Edit, apply
from .targets import compute_target
from .validation import ValidationReport, report as build_report, summary_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanUpdate:
    """One atomic result handed back per edit: set, report and any rejection."""

    bucket_set: BucketSet
    report: ValidationReport
    error: Optional[AllocationError] = None

    @property
    def accepted(self) -> bool:
        return self.error is None


Subscriber = Callable[[PlanUpdate], Any]


class AllocationPlanner:
    """Holds the current plan and applies edits to it one at a time."""

    def __init__(
        self,
        bucket_set: BucketSet,
        *,
        savings_horizon: Optional[int] = None,
        strategy: str = PROPORTIONAL,
        tolerance: Optional[float] = None,
    ):
        self.savings_horizon = savings_horizon_months() if savings_horizon is None else savings_horizon
        self.strategy = strategy
        self.tolerance = tolerance
        self._original = bucket_set
        self._subscribers: List[Subscriber] = []
        self._current = PlanUpdate(bucket_set, build_report(bucket_set, tolerance))

    @classmethod
    def from_baseline(
        cls,
        income: float,
        essential_amount: float,
        suggestions: Optional[Mapping[Union[BucketType, str], float]] = None,
        *,
        ids: Optional[Mapping[BucketType, str]] = None,
        goal_duration: Optional[int] = None,
        **options: Any,
    ) -> 'AllocationPlanner':
        """Start a session from the locked baseline and suggested splits.

        When ``goal_duration`` is given the savings-goal target is derived
        from it, but the suggested goal amount is kept as the starting point.
        """
        horizon = options.get('savings_horizon')
        goal_target = None
        if goal_duration is not None:
            goal_target = compute_target(goal_duration, essential_amount, horizon).target
        bucket_set = BucketSet.from_baseline(
            income,
            essential_amount,
            suggestions,
            ids=ids,
            goal_target=goal_target,
            goal_duration=goal_duration,
        )
        return cls(bucket_set, **options)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current(self) -> PlanUpdate:
        return self._current

    @property
    def bucket_set(self) -> BucketSet:
        return self._current.bucket_set

    @property
    def report(self) -> ValidationReport:
        return self._current.report

    @property
    def original(self) -> BucketSet:
        return self._original

    def changes_from_original(self) -> Dict[str, float]:
        """Signed change of each bucket since the session started."""
        original = self._original.amounts()
        return {
            b.id: b.amount - original.get(b.id, b.amount)
            for b in self.bucket_set
        }

    def summary(self) -> pd.DataFrame:
        return summary_frame(self.bucket_set, self._original.amounts())

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _replace(self, bucket_set: BucketSet) -> PlanUpdate:
        update = PlanUpdate(bucket_set, build_report(bucket_set, self.tolerance))
        self._current = update
        for callback in list(self._subscribers):
            callback(update)
        return update

    def _reject(self, error: AllocationError) -> PlanUpdate:
        logger.warning("Edit rejected (%s): %s", error.code, error.message)
        return dataclasses.replace(self._current, error=error)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def submit(self, event: EditEvent) -> PlanUpdate:
        """Apply one edit event and return the resulting update.

        Rejected events leave the current plan in place and return it with
        the error attached; subscribers are not notified.
        """
        if event.source is EditSource.DURATION_PICKER:
            return self._submit_duration(event)

        outcome = apply(
            self.bucket_set,
            Edit(event.bucket_id, coerce_amount(event)),
            strategy=self.strategy,
        )
        if not outcome.accepted:
            return self._reject(outcome.error)
        return self._commit(outcome.bucket_set, event)

    def _submit_duration(self, event: EditEvent) -> PlanUpdate:
        current = self.bucket_set
        bucket = current.get(event.bucket_id)
        if bucket is None:
            return self._reject(UnknownBucket(f"Bucket '{event.bucket_id}' does not exist", event.bucket_id))
        if not bucket.type.is_duration_based:
            return self._reject(InvalidEditSource(
                f"'{bucket.display_name}' is not sized by a duration", bucket.id
            ))

        months = event.raw_value
        if isinstance(months, str) and months.strip().isdigit():
            months = int(months.strip())
        try:
            target = compute_target(months, current.locked_bucket.amount, self.savings_horizon)
        except InvalidDuration as exc:
            exc.bucket_id = bucket.id
            return self._reject(exc)

        outcome = apply(current, Edit(bucket.id, target.monthly_contribution), strategy=self.strategy)
        if not outcome.accepted:
            return self._reject(outcome.error)

        rebalanced = outcome.bucket_set
        goal = dataclasses.replace(
            rebalanced[bucket.id],
            target_amount=target.target,
            duration_months=target.duration_months,
        )
        logger.info(
            "%s target set to %s (%d months), contributing %s/month",
            bucket.display_name,
            format_currency(target.target),
            target.duration_months,
            format_currency(target.monthly_contribution),
        )
        return self._commit(rebalanced.with_bucket(goal), event)

    def _commit(self, bucket_set: BucketSet, event: Optional[EditEvent] = None) -> PlanUpdate:
        if bucket_set == self.bucket_set:
            return self._current
        update = self._replace(bucket_set)
        logger.info(
            "Applied %s edit to %s; total %s (%s)",
            event.source.value if event else 'internal',
            event.bucket_id if event else 'plan',
            format_currency(update.report.total_allocated),
            format_percentage(update.report.percentage),
        )
        return update

    def set_amount(
        self,
        bucket_id: str,
        value: Any,
        source: Union[EditSource, str] = EditSource.SLIDER,
    ) -> PlanUpdate:
        return self.submit(EditEvent(bucket_id, value, source))

    def select_duration(self, months: int, bucket_id: Optional[str] = None) -> PlanUpdate:
        """Size the savings goal from a duration; defaults to the first goal bucket."""
        if bucket_id is None:
            goal = self.bucket_set.first_of_type(BucketType.SAVINGS_GOAL)
            if goal is None:
                return self._reject(UnknownBucket("Plan has no savings goal bucket"))
            bucket_id = goal.id
        return self.submit(EditEvent(bucket_id, months, EditSource.DURATION_PICKER))

    def reset_bucket(self, bucket_id: str) -> PlanUpdate:
        """Move one bucket back to its session-start amount, rebalancing the rest."""
        original = self._original.get(bucket_id)
        if original is None:
            return self._reject(UnknownBucket(f"Bucket '{bucket_id}' does not exist", bucket_id))

        outcome = apply(self.bucket_set, Edit(bucket_id, original.amount), strategy=self.strategy)
        if not outcome.accepted:
            return self._reject(outcome.error)

        rebalanced = outcome.bucket_set
        restored = dataclasses.replace(
            rebalanced[bucket_id],
            target_amount=original.target_amount,
            duration_months=original.duration_months,
        )
        logger.info("Reset bucket %s to %s", bucket_id, format_currency(original.amount))
        return self._commit(rebalanced.with_bucket(restored))

    def reset_all(self) -> PlanUpdate:
        """Restore the session-start plan."""
        return self._commit(self._original)

    def refresh_baseline(
        self,
        essential_amount: float,
        suggestions: Optional[Mapping[Union[BucketType, str], float]] = None,
    ) -> PlanUpdate:
        """Rebuild the plan around a new locked amount.

        This does not go through the rebalance engine: a brand-new set is
        constructed, the savings-goal target follows the new essential
        amount, and the new set becomes the session's original.
        """
        current = self.bucket_set
        fresh = current.with_baseline(essential_amount, suggestions)

        for bucket in fresh.modifiable_buckets:
            if bucket.type.is_duration_based and bucket.duration_months is not None:
                target = compute_target(bucket.duration_months, essential_amount, self.savings_horizon)
                fresh = fresh.with_bucket(dataclasses.replace(bucket, target_amount=target.target))

        logger.info(
            "Baseline refreshed: essential spending %s -> %s",
            format_currency(current.locked_bucket.amount),
            format_currency(essential_amount),
        )
        self._original = fresh
        return self._replace(fresh)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, storage, name: str):
        """Hand the current plan to ``storage``; invalid plans are refused there."""
        return storage.save(name, self.bucket_set, self.report)
