"""Plan storage and file I/O operations.

Saved plans are JSON files, one per plan name, under ``PLANS_DIR``. Storage
is the gatekeeper for the save rule: a plan whose validation report is not
valid is refused.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .buckets import BucketSet
from .config import PLANS_DIR
from .errors import InvalidBucketSet, PlanNotSaveable
from .file_operations import ensure_directory, safe_filename
from .formatting import format_percentage
from .validation import ValidationReport, report as build_report

logger = logging.getLogger(__name__)

PLAN_VERSION = 1


class PlanStorage:
    """Handles allocation plan file storage operations."""

    def __init__(self, plans_dir: Optional[Path] = None):
        """Initialize plan storage.

        Args:
            plans_dir: Optional custom directory for plan files.
                       Defaults to PLANS_DIR from config.
        """
        self.plans_dir = Path(plans_dir) if plans_dir is not None else PLANS_DIR

    def get_path(self, name: str) -> Path:
        return self.plans_dir / f"{safe_filename(name)}.json"

    def save(
        self,
        name: str,
        bucket_set: BucketSet,
        report: Optional[ValidationReport] = None,
    ) -> Path:
        """Save a plan to disk.

        Args:
            name: Plan name
            bucket_set: The plan's buckets
            report: Validation report for ``bucket_set`` (computed if omitted)

        Returns:
            Path of the written file

        Raises:
            ValueError: If plan name is empty
            PlanNotSaveable: If the plan does not allocate 100% of income
            OSError: If file cannot be written
        """
        if not name or not name.strip():
            raise ValueError("Plan name cannot be empty")

        report = report or build_report(bucket_set)
        if not report.is_valid:
            raise PlanNotSaveable(
                f"Plan '{name.strip()}' allocates {format_percentage(report.percentage)} of income; "
                f"it must allocate 100% before saving"
            )

        payload = {
            'name': name.strip(),
            'income': bucket_set.income,
            'buckets': [b.to_dict() for b in bucket_set],
            'total': report.total_allocated,
            'percentage': report.percentage,
            'saved_at': datetime.now(timezone.utc).isoformat(),
            'version': PLAN_VERSION,
        }

        target = self.get_path(name)
        ensure_directory(target.parent)

        try:
            with target.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
        except OSError as e:
            raise OSError(f"Failed to save plan to {target}: {e}") from e

        logger.info("Saved plan '%s' with %d bucket(s) to %s", payload['name'], len(bucket_set), target)
        return target

    def load(self, name: str) -> BucketSet:
        """Load one plan by name.

        Raises:
            FileNotFoundError: If no plan with that name exists
            InvalidBucketSet: If the stored buckets are malformed
        """
        target = self.get_path(name)
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
        return _bucket_set_from_payload(data)

    def load_all(self) -> Dict[str, Dict[str, Any]]:
        """Load all saved plans from disk.

        Returns:
            Dictionary mapping plan names to ``{'name', 'bucket_set',
            'saved_at', 'version'}``. Unreadable or malformed files are
            skipped with a warning.
        """
        plans: Dict[str, Dict[str, Any]] = {}

        if not self.plans_dir.exists():
            return plans

        for plan_file in sorted(self.plans_dir.glob('*.json')):
            name = plan_file.stem
            try:
                with plan_file.open('r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    continue
                plans[name] = {
                    'name': data.get('name', name),
                    'bucket_set': _bucket_set_from_payload(data),
                    'saved_at': data.get('saved_at'),
                    'version': data.get('version', PLAN_VERSION),
                }
            except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
                logger.warning("Could not load plan '%s': %s", name, e)
                continue

        return plans

    def delete(self, name: str) -> None:
        """Delete a plan file from disk; missing files are ignored.

        Raises:
            ValueError: If plan name is empty
            OSError: If file cannot be deleted
        """
        if not name or not name.strip():
            raise ValueError("Plan name cannot be empty")

        target = self.get_path(name)

        if not target.exists():
            return

        try:
            target.unlink()
        except OSError as e:
            raise OSError(f"Failed to delete plan file {target}: {e}") from e
        logger.info("Deleted plan '%s'", name)


def _bucket_set_from_payload(data: Dict[str, Any]) -> BucketSet:
    try:
        return BucketSet.from_dict(data)
    except (KeyError, TypeError) as e:
        raise InvalidBucketSet(f"Malformed plan payload: {e}") from e
