"""Top-level package for the Allocation Planner.

This package splits a fixed monthly income across allocation buckets and
keeps the split consistent while the user edits it. The primary modules are:

* ``buckets`` – immutable bucket and bucket-set value types
* ``targets`` – savings-goal sizing from a duration selector
* ``rebalance`` – the engine that redistributes an edit across buckets
* ``validation`` – totals, validity and guideline warnings
* ``planner`` – a planning session tying edits, engine and reporting together
* ``storage`` – JSON persistence for saved plans

Typical use:

```python
from allocation_planner import AllocationPlanner, BucketType

planner = AllocationPlanner.from_baseline(
    5000, 1500,
    {BucketType.DISCRETIONARY: 800, BucketType.SAVINGS_GOAL: 1200, BucketType.INVESTMENTS: 1500},
)
update = planner.set_amount('discretionary', 1000)
```
"""

from .buckets import Bucket, BucketSet, BucketType
from .errors import (
    AllocationError,
    InvalidBucketSet,
    InvalidDuration,
    InvalidEditSource,
    LockedBucketEditAttempt,
    PlanNotSaveable,
    UnknownBucket,
)
from .events import EditEvent, EditSource
from .planner import AllocationPlanner, PlanUpdate
from .rebalance import EQUAL, PROPORTIONAL, Edit, RebalanceOutcome, apply
from .storage import PlanStorage
from .targets import DurationOption, SavingsTarget, compute_target, duration_options, effective_duration
from .validation import ValidationReport, report, summary_frame

__all__ = [
    # Model
    'Bucket',
    'BucketSet',
    'BucketType',
    # Target calculator
    'SavingsTarget',
    'DurationOption',
    'compute_target',
    'duration_options',
    'effective_duration',
    # Engine
    'Edit',
    'RebalanceOutcome',
    'apply',
    'PROPORTIONAL',
    'EQUAL',
    # Reporting
    'ValidationReport',
    'report',
    'summary_frame',
    # Session
    'EditEvent',
    'EditSource',
    'AllocationPlanner',
    'PlanUpdate',
    'PlanStorage',
    # Errors
    'AllocationError',
    'UnknownBucket',
    'LockedBucketEditAttempt',
    'InvalidDuration',
    'InvalidEditSource',
    'InvalidBucketSet',
    'PlanNotSaveable',
]
