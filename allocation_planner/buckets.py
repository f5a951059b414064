"""Bucket value types.

A :class:`Bucket` is one allocation slot of the monthly income. A
:class:`BucketSet` owns an ordered collection of buckets plus the income they
split. Both are frozen: every planning transition builds a brand-new
``BucketSet`` instead of mutating the previous one, so anything holding a
reference always sees a complete, consistent snapshot.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import InvalidBucketSet


class BucketType(str, Enum):
    """Closed set of bucket kinds. Behaviour hangs off each member."""

    ESSENTIAL = 'Essential Spending'
    SAVINGS_GOAL = 'Emergency Fund'
    DISCRETIONARY = 'Discretionary Spending'
    INVESTMENTS = 'Investments'

    @property
    def locked(self) -> bool:
        """Only the data-derived essential bucket is locked."""
        return self is BucketType.ESSENTIAL

    @property
    def modifiable(self) -> bool:
        return not self.locked

    @property
    def is_duration_based(self) -> bool:
        return self is BucketType.SAVINGS_GOAL

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def slug(self) -> str:
        return _TYPE_DETAILS[self]['slug']

    @property
    def description(self) -> str:
        return _TYPE_DETAILS[self]['description']

    @property
    def color(self) -> str:
        return _TYPE_DETAILS[self]['color']

    @property
    def recommended_minimum_percent(self) -> float:
        return _TYPE_DETAILS[self]['minimum_percent']

    @property
    def default_categories(self) -> Tuple[str, ...]:
        return _TYPE_DETAILS[self]['categories']

    @classmethod
    def parse(cls, value: Union['BucketType', str]) -> 'BucketType':
        """Resolve a member from itself, its display name, name or slug."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text in (member.value, member.name, member.slug):
                return member
        raise ValueError(f"Unknown bucket type: {value!r}")


_TYPE_DETAILS: Dict[BucketType, Dict[str, Any]] = {
    BucketType.ESSENTIAL: {
        'slug': 'essential',
        'description': 'Core living expenses including housing, utilities, groceries, '
                       'transportation, and healthcare',
        'color': '#007AFF',
        'minimum_percent': 0.0,
        'categories': ('Groceries', 'Rent', 'Utilities', 'Transportation', 'Insurance',
                       'Healthcare', 'Childcare', 'Debt Payments'),
    },
    BucketType.SAVINGS_GOAL: {
        'slug': 'emergency_fund',
        'description': 'Safety net for unexpected expenses. Target: 3-6 months of essential expenses',
        'color': '#FF3B30',
        'minimum_percent': 10.0,
        'categories': (),
    },
    BucketType.DISCRETIONARY: {
        'slug': 'discretionary',
        'description': 'Non-essential spending on entertainment, dining out, shopping, and hobbies',
        'color': '#FF9500',
        'minimum_percent': 0.0,
        'categories': ('Entertainment', 'Dining', 'Shopping', 'Travel', 'Hobbies', 'Subscriptions'),
    },
    BucketType.INVESTMENTS: {
        'slug': 'investments',
        'description': 'Long-term wealth building through retirement accounts, stocks, '
                       'and other investments',
        'color': '#34C759',
        'minimum_percent': 5.0,
        'categories': (),
    },
}

_missing_details = set(BucketType) - set(_TYPE_DETAILS)
if _missing_details:
    raise RuntimeError(f"Bucket types without details: {sorted(t.name for t in _missing_details)}")

# Default ordering used when a set is built from a baseline suggestion.
MODIFIABLE_TYPES: Tuple[BucketType, ...] = tuple(t for t in BucketType if t.modifiable)


@dataclass(frozen=True)
class Bucket:
    id: str
    type: BucketType
    amount: float
    target_amount: Optional[float] = None
    duration_months: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self.type.locked

    @property
    def modifiable(self) -> bool:
        return self.type.modifiable

    @property
    def display_name(self) -> str:
        return self.type.display_name

    def with_amount(self, amount: float) -> 'Bucket':
        return dataclasses.replace(self, amount=amount)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'id': self.id,
            'type': self.type.value,
            'amount': self.amount,
            'locked': self.locked,
        }
        if self.target_amount is not None:
            payload['target_amount'] = self.target_amount
        if self.duration_months is not None:
            payload['duration_months'] = self.duration_months
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Bucket':
        if not isinstance(data, Mapping):
            raise InvalidBucketSet(f"Bucket entry must be a mapping, got {type(data).__name__}")
        target = data.get('target_amount')
        duration = data.get('duration_months')
        return cls(
            id=str(data['id']),
            type=BucketType.parse(data['type']),
            amount=float(data['amount']),
            target_amount=float(target) if target is not None else None,
            duration_months=int(duration) if duration is not None else None,
        )


@dataclass(frozen=True)
class BucketSet:
    """Ordered, immutable mapping of bucket id to :class:`Bucket`.

    Structural rules are enforced on construction: ids are unique, exactly one
    bucket is locked, and neither income nor any amount is negative. Whether
    the amounts add up to income is a validation concern, not a structural one
    (see :mod:`allocation_planner.validation`).
    """

    income: float
    buckets: Tuple[Bucket, ...]
    _index: Dict[str, int] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        buckets = tuple(self.buckets)
        object.__setattr__(self, 'buckets', buckets)
        object.__setattr__(self, 'income', float(self.income))

        if self.income < 0:
            raise InvalidBucketSet(f"Income cannot be negative: {self.income}")

        index: Dict[str, int] = {}
        for position, bucket in enumerate(buckets):
            if bucket.id in index:
                raise InvalidBucketSet(f"Duplicate bucket id: {bucket.id}", bucket.id)
            if bucket.amount < 0:
                raise InvalidBucketSet(
                    f"Bucket '{bucket.id}' has a negative amount: {bucket.amount}", bucket.id
                )
            index[bucket.id] = position

        locked = [b for b in buckets if b.locked]
        if len(locked) != 1:
            raise InvalidBucketSet(f"Expected exactly one locked bucket, found {len(locked)}")

        object.__setattr__(self, '_index', index)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def __getitem__(self, bucket_id: str) -> Bucket:
        return self.buckets[self._index[bucket_id]]

    def __contains__(self, bucket_id: object) -> bool:
        return bucket_id in self._index

    def __iter__(self) -> Iterator[Bucket]:
        return iter(self.buckets)

    def __len__(self) -> int:
        return len(self.buckets)

    def get(self, bucket_id: str, default: Optional[Bucket] = None) -> Optional[Bucket]:
        position = self._index.get(bucket_id)
        return self.buckets[position] if position is not None else default

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(b.id for b in self.buckets)

    @property
    def locked_bucket(self) -> Bucket:
        return next(b for b in self.buckets if b.locked)

    @property
    def modifiable_buckets(self) -> Tuple[Bucket, ...]:
        return tuple(b for b in self.buckets if b.modifiable)

    @property
    def total(self) -> float:
        return sum(b.amount for b in self.buckets)

    def amounts(self) -> Dict[str, float]:
        return {b.id: b.amount for b in self.buckets}

    def first_of_type(self, bucket_type: BucketType) -> Optional[Bucket]:
        return next((b for b in self.buckets if b.type is bucket_type), None)

    # ------------------------------------------------------------------
    # Transitions (always return a new set)
    # ------------------------------------------------------------------

    def with_amounts(self, amounts: Mapping[str, float]) -> 'BucketSet':
        """Return a copy with the given bucket amounts replaced."""
        unknown = set(amounts) - set(self._index)
        if unknown:
            raise InvalidBucketSet(f"Unknown bucket ids: {sorted(unknown)}")
        return BucketSet(
            income=self.income,
            buckets=tuple(
                b.with_amount(amounts[b.id]) if b.id in amounts else b for b in self.buckets
            ),
        )

    def with_bucket(self, bucket: Bucket) -> 'BucketSet':
        """Return a copy with one bucket swapped for ``bucket`` (matched by id)."""
        if bucket.id not in self._index:
            raise InvalidBucketSet(f"Unknown bucket id: {bucket.id}", bucket.id)
        return BucketSet(
            income=self.income,
            buckets=tuple(bucket if b.id == bucket.id else b for b in self.buckets),
        )

    # ------------------------------------------------------------------
    # Serialisation / construction
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'income': self.income,
            'buckets': [b.to_dict() for b in self.buckets],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'BucketSet':
        return cls(
            income=float(data['income']),
            buckets=tuple(Bucket.from_dict(row) for row in data.get('buckets') or []),
        )

    @classmethod
    def from_baseline(
        cls,
        income: float,
        essential_amount: float,
        suggestions: Optional[Mapping[Union[BucketType, str], float]] = None,
        *,
        ids: Optional[Mapping[BucketType, str]] = None,
        types: Iterable[BucketType] = MODIFIABLE_TYPES,
        goal_target: Optional[float] = None,
        goal_duration: Optional[int] = None,
        precision: int = 2,
    ) -> 'BucketSet':
        """Build a fresh set from the locked baseline and suggested splits.

        Suggested amounts are scaled so the modifiable buckets fill exactly
        ``income - essential_amount``. When no usable suggestion is given the
        remainder is split equally. The locked amount is stored as given.

        Example:
            >>> s = BucketSet.from_baseline(5000, 1500, {BucketType.DISCRETIONARY: 800,
            ...     BucketType.SAVINGS_GOAL: 1200, BucketType.INVESTMENTS: 1500})
            >>> s.total
            5000.0
        """
        id_map = {t: t.slug for t in BucketType}
        id_map.update(ids or {})

        parsed: Dict[BucketType, float] = {}
        for key, value in (suggestions or {}).items():
            parsed[BucketType.parse(key)] = max(0.0, float(value or 0.0))

        modifiable_types: List[BucketType] = [t for t in types if t.modifiable]
        buckets: List[Bucket] = [Bucket(id_map[BucketType.ESSENTIAL], BucketType.ESSENTIAL, float(essential_amount))]
        for bucket_type in modifiable_types:
            bucket_id = id_map[bucket_type]
            weight = parsed.get(bucket_type, 0.0)
            if bucket_type.is_duration_based:
                buckets.append(Bucket(bucket_id, bucket_type, weight,
                                      target_amount=goal_target, duration_months=goal_duration))
            else:
                buckets.append(Bucket(bucket_id, bucket_type, weight))

        return cls(income=income, buckets=tuple(buckets))._rescaled(precision)

    def with_baseline(
        self,
        essential_amount: float,
        suggestions: Optional[Mapping[Union[BucketType, str], float]] = None,
        precision: int = 2,
    ) -> 'BucketSet':
        """Build a fresh set around a new locked amount.

        The buckets keep their ids, order and metadata. Each modifiable bucket
        is weighted by the suggestion for its type, or by its current amount
        when its type has no suggestion, and the weights are scaled to fill
        whatever the new locked amount leaves of income. A type suggestion
        shared by several buckets is split by their current amounts (evenly
        when those are all zero).

        Example:
            >>> s = BucketSet(5000, (Bucket('ess', BucketType.ESSENTIAL, 1500),
            ...     Bucket('fun', BucketType.DISCRETIONARY, 3500)))
            >>> s.with_baseline(2000)['fun'].amount
            3000.0
        """
        parsed: Dict[BucketType, float] = {}
        for key, value in (suggestions or {}).items():
            parsed[BucketType.parse(key)] = max(0.0, float(value or 0.0))

        peers: Dict[BucketType, List[Bucket]] = {}
        for bucket in self.modifiable_buckets:
            peers.setdefault(bucket.type, []).append(bucket)

        weights: Dict[str, float] = {}
        for bucket_type, group in peers.items():
            if bucket_type not in parsed:
                continue
            group_total = sum(b.amount for b in group)
            for bucket in group:
                share = bucket.amount / group_total if group_total > 0 else 1.0 / len(group)
                weights[bucket.id] = parsed[bucket_type] * share

        locked_id = self.locked_bucket.id
        weights[locked_id] = float(essential_amount)
        return self.with_amounts(weights)._rescaled(precision)

    def _rescaled(self, precision: int) -> 'BucketSet':
        """Scale modifiable amounts (used as weights) to fill the remainder exactly."""
        from .rebalance import distribute_residual

        modifiable = self.modifiable_buckets
        remaining = max(0.0, self.income - self.locked_bucket.amount)
        weight_total = sum(b.amount for b in modifiable)

        amounts: Dict[str, float] = {}
        for bucket in modifiable:
            if weight_total > 0:
                amount = bucket.amount * remaining / weight_total
            else:
                amount = remaining / len(modifiable)
            amounts[bucket.id] = round(amount, precision)

        draft = self.with_amounts(amounts)
        residual = round(draft.income - draft.total, precision)
        if residual == 0:
            return draft
        return draft.with_amounts(distribute_residual(draft, draft.amounts(), residual, precision))
