"""Edit events coming from the planner's input controls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

import pandas as pd


class EditSource(str, Enum):
    SLIDER = 'slider'
    TEXT = 'text'
    DURATION_PICKER = 'durationPicker'

    @classmethod
    def parse(cls, value: Union['EditSource', str]) -> 'EditSource':
        if isinstance(value, cls):
            return value
        for member in cls:
            if str(value) in (member.value, member.name, member.name.lower()):
                return member
        raise ValueError(f"Unknown edit source: {value!r}")


@dataclass(frozen=True)
class EditEvent:
    """A raw edit as produced by a control.

    For ``durationPicker`` events ``raw_value`` is the selected duration in
    months; for the other sources it is an amount.
    """

    bucket_id: str
    raw_value: Any
    source: EditSource = EditSource.SLIDER

    def __post_init__(self):
        object.__setattr__(self, 'source', EditSource.parse(self.source))


def parse_amount(value: Any) -> Optional[float]:
    """Parse a typed amount such as ``"$1,200.50"`` or ``"(25)"``.

    Returns ``None`` when nothing numeric can be read.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        # Accounting negatives e.g. (123.45)
        if cleaned.startswith("(") and cleaned.endswith(")"):
            cleaned = f"-{cleaned[1:-1]}"
        value = cleaned.replace("$", "").replace(",", "").strip()
    number = pd.to_numeric(pd.Series([value]), errors='coerce').iloc[0]
    if pd.isna(number):
        return None
    return float(number)


def coerce_amount(event: EditEvent) -> float:
    """Turn a slider/text event's raw value into a non-negative amount.

    Text entry rejects negatives and garbage by coercing them to 0; the upper
    bound is left to the rebalance engine's clamp.
    """
    amount = parse_amount(event.raw_value)
    if amount is None:
        return 0.0
    return max(0.0, amount)
