"""Validation reporting for bucket sets.

:func:`report` is the read-only check the UI and persistence layers use to
decide whether a plan may be saved. Guideline warnings (discretionary limits,
recommended minimums) ride along but never change ``is_valid``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .buckets import BucketSet, BucketType
from .config import get_config_value, tolerance_percent as default_tolerance
from .formatting import format_percentage

WARNING = 'warning'
HARD_LIMIT = 'hard_limit'
BELOW_MINIMUM = 'below_minimum'


@dataclass(frozen=True)
class GuidelineWarning:
    bucket_id: str
    kind: str
    percentage: float
    message: str


@dataclass(frozen=True)
class ValidationReport:
    income: float
    total_allocated: float
    percentage: float
    is_valid: bool
    warnings: Tuple[GuidelineWarning, ...] = field(default_factory=tuple)

    @property
    def remaining(self) -> float:
        return self.income - self.total_allocated

    @property
    def exceeds_hard_limit(self) -> bool:
        return any(w.kind == HARD_LIMIT for w in self.warnings)

    def to_dict(self) -> Dict[str, object]:
        return {
            'income': self.income,
            'total_allocated': self.total_allocated,
            'percentage': self.percentage,
            'is_valid': self.is_valid,
            'warnings': [w.__dict__.copy() for w in self.warnings],
        }


def percent_of_income(amount: float, income: float) -> float:
    return (amount / income) * 100 if income > 0 else 0.0


def guideline_warnings(bucket_set: BucketSet) -> List[GuidelineWarning]:
    """Check modifiable buckets against the recommended spending guidelines."""
    warn_at = float(get_config_value('validation', 'discretionary_warning_percent', default=35.0))
    limit_at = float(get_config_value('validation', 'discretionary_hard_limit_percent', default=50.0))
    income = bucket_set.income

    warnings: List[GuidelineWarning] = []
    if income <= 0:
        return warnings

    for bucket in bucket_set.modifiable_buckets:
        pct = percent_of_income(bucket.amount, income)
        if bucket.type is BucketType.DISCRETIONARY:
            if pct >= limit_at:
                warnings.append(GuidelineWarning(
                    bucket.id, HARD_LIMIT, pct,
                    f"Discretionary spending limit exceeded ({format_percentage(pct, 0)}). "
                    f"Please reduce to {format_percentage(limit_at, 0)} or less of your income.",
                ))
            elif pct >= warn_at:
                warnings.append(GuidelineWarning(
                    bucket.id, WARNING, pct,
                    f"Discretionary spending is at {format_percentage(pct, 0)}. Consider keeping it "
                    f"below {format_percentage(warn_at, 0)} for better financial health.",
                ))
        minimum = bucket.type.recommended_minimum_percent
        if minimum > 0 and pct < minimum:
            warnings.append(GuidelineWarning(
                bucket.id, BELOW_MINIMUM, pct,
                f"{bucket.display_name} is below the recommended minimum of "
                f"{format_percentage(minimum, 0)} of income.",
            ))
    return warnings


def report(bucket_set: BucketSet, tolerance: Optional[float] = None) -> ValidationReport:
    """Summarise totals and validity of ``bucket_set``.

    Args:
        bucket_set: Set to inspect
        tolerance: Allowed deviation from 100%, in percentage points

    Returns:
        ``ValidationReport`` where ``is_valid`` means the allocation is within
        ``tolerance`` of 100% of income.
    """
    tolerance = default_tolerance() if tolerance is None else tolerance
    total = bucket_set.total
    percentage = percent_of_income(total, bucket_set.income)
    return ValidationReport(
        income=bucket_set.income,
        total_allocated=total,
        percentage=percentage,
        is_valid=abs(percentage - 100.0) <= tolerance,
        warnings=tuple(guideline_warnings(bucket_set)),
    )


def summary_frame(
    bucket_set: BucketSet,
    original: Optional[Mapping[str, float]] = None,
) -> pd.DataFrame:
    """Tabulate a bucket set, one row per bucket.

    Args:
        bucket_set: Set to tabulate
        original: Optional baseline amounts used for the ``Change`` column

    Returns:
        DataFrame with columns Bucket, Type, Amount, % of Income, Locked, Change
    """
    original = original or {}
    rows = []
    for bucket in bucket_set:
        rows.append({
            'Bucket': bucket.id,
            'Type': bucket.type.value,
            'Amount': bucket.amount,
            '% of Income': percent_of_income(bucket.amount, bucket_set.income),
            'Locked': bucket.locked,
            'Change': bucket.amount - original.get(bucket.id, bucket.amount),
        })
    frame = pd.DataFrame(rows, columns=['Bucket', 'Type', 'Amount', '% of Income', 'Locked', 'Change'])
    return frame.round({'Amount': 2, '% of Income': 2, 'Change': 2})
