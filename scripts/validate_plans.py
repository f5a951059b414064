#!/usr/bin/env python3
"""Lightweight validator for saved allocation plans."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# Import package - handle both installed and script execution
try:
    from allocation_planner import PlanStorage, report
except ImportError:
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    from allocation_planner import PlanStorage, report


def main(plans_dir: Optional[Path] = None) -> int:
    storage = PlanStorage(plans_dir)
    if not storage.plans_dir.exists():
        print(f"Plan directory not found: {storage.plans_dir}")
        return 1

    plans = storage.load_all()
    if not plans:
        print("No saved plans found.")
        return 0

    issues = []
    for name, entry in sorted(plans.items()):
        result = report(entry['bucket_set'])
        if not result.is_valid:
            issues.append((name, f"allocates {result.percentage:.2f}% of income"))
        for warning in result.warnings:
            print(f"  ! {name}: {warning.message}")

    if issues:
        print("Plan validation failed:")
        for name, message in issues:
            print(f"  - {name}: {message}")
        return 1

    print(f"All {len(plans)} plan(s) validated successfully.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
