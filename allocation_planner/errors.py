"""Typed, recoverable conditions raised or returned by the planner.

The rebalance engine never raises these for rejected edits; it hands them
back next to the unchanged bucket set so callers can decide how to surface
them. Pure helpers (target calculator, constructors) raise them directly.
"""

from __future__ import annotations

from typing import Optional


class AllocationError(ValueError):
    """Base class for every allocation planner condition."""

    code = 'allocation_error'

    def __init__(self, message: str, bucket_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.bucket_id = bucket_id

    def to_dict(self) -> dict:
        return {
            'error': self.code,
            'message': self.message,
            'bucket_id': self.bucket_id,
        }


class UnknownBucket(AllocationError):
    code = 'unknown_bucket'


class LockedBucketEditAttempt(AllocationError):
    code = 'locked_bucket_edit_attempt'


class InvalidDuration(AllocationError):
    code = 'invalid_duration'

    def __init__(self, duration, allowed=(3, 6, 12)):
        super().__init__(
            f"Duration {duration!r} is not one of {', '.join(str(d) for d in allowed)} months"
        )
        self.duration = duration
        self.allowed = tuple(allowed)


class InvalidEditSource(AllocationError):
    code = 'invalid_edit_source'


class InvalidBucketSet(AllocationError):
    code = 'invalid_bucket_set'


class PlanNotSaveable(AllocationError):
    code = 'plan_not_saveable'
