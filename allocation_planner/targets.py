"""Savings-goal target calculations.

The emergency-fund bucket is sized from a duration selector: the target is
``duration`` months of essential spending, reached by equal monthly
contributions over a fixed savings horizon.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import allowed_durations, get_config_value, savings_horizon_months
from .errors import InvalidDuration

DEFAULT_DURATION = 6


@dataclass(frozen=True)
class SavingsTarget:
    duration_months: int
    target: float
    monthly_contribution: float


@dataclass(frozen=True)
class DurationOption:
    """One choice offered by the duration picker."""

    months: int
    target: float
    shortfall: float
    monthly_contribution: float
    is_recommended: bool = False

    @property
    def is_goal_met(self) -> bool:
        return self.shortfall <= 0

    def months_to_goal(self, contribution: Optional[float] = None) -> Optional[int]:
        """Months needed to close the shortfall at ``contribution`` per month."""
        contribution = self.monthly_contribution if contribution is None else contribution
        if contribution <= 0 or self.shortfall <= 0:
            return None
        return int(math.ceil(self.shortfall / contribution))


def _validate_duration(duration_months, allowed: Sequence[int]) -> int:
    # bool is an int subclass; True is not a duration
    if isinstance(duration_months, bool) or not isinstance(duration_months, int):
        raise InvalidDuration(duration_months, allowed)
    if duration_months not in allowed:
        raise InvalidDuration(duration_months, allowed)
    return duration_months


def compute_target(
    duration_months: int,
    essential_monthly: float,
    savings_horizon: Optional[int] = None,
    allowed: Optional[Sequence[int]] = None,
) -> SavingsTarget:
    """Derive the savings target and the monthly contribution that reaches it.

    Args:
        duration_months: Months of essential spending to cover (3, 6 or 12)
        essential_monthly: Monthly essential spending (the locked baseline)
        savings_horizon: Months over which the target is reached (config default 24)
        allowed: Permitted durations (config default)

    Returns:
        ``SavingsTarget`` with ``target = essential * duration`` and
        ``monthly_contribution = target / horizon``

    Raises:
        InvalidDuration: If ``duration_months`` is not an allowed value
        ValueError: If the horizon is not positive

    Example:
        >>> compute_target(12, 1500, 24).monthly_contribution
        750.0
    """
    allowed = tuple(allowed) if allowed is not None else allowed_durations()
    months = _validate_duration(duration_months, allowed)
    horizon = savings_horizon_months() if savings_horizon is None else savings_horizon
    if horizon <= 0:
        raise ValueError(f"Savings horizon must be positive, got {horizon}")

    target = max(0.0, float(essential_monthly)) * months
    return SavingsTarget(
        duration_months=months,
        target=target,
        monthly_contribution=target / horizon,
    )


def duration_options(
    essential_monthly: float,
    current_balance: float = 0.0,
    savings_horizon: Optional[int] = None,
    recommended: Optional[int] = None,
) -> List[DurationOption]:
    """Build the picker's options, one per allowed duration."""
    recommended = (
        int(get_config_value('savings', 'recommended_duration', default=DEFAULT_DURATION))
        if recommended is None
        else recommended
    )
    options: List[DurationOption] = []
    for months in allowed_durations():
        result = compute_target(months, essential_monthly, savings_horizon)
        options.append(
            DurationOption(
                months=months,
                target=result.target,
                shortfall=max(0.0, result.target - max(0.0, current_balance)),
                monthly_contribution=result.monthly_contribution,
                is_recommended=months == recommended,
            )
        )
    return options


def effective_duration(target_amount: Optional[float], essential_monthly: float) -> int:
    """Map an existing target back to the closest duration option.

    Falls back to the default duration when there is no target or no
    essential spending to compare against.
    """
    if target_amount is None or essential_monthly <= 0:
        return DEFAULT_DURATION
    months = round(target_amount / essential_monthly)
    if months <= 4:
        return 3
    if months <= 9:
        return 6
    return 12
