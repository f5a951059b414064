"""File operation utilities for safe plan filenames and directories."""

from __future__ import annotations

import re
from pathlib import Path

_UNSAFE = re.compile(r'[^\w\s-]')
_SEPARATORS = re.compile(r'[\s_]+')


def safe_filename(name: str, default: str = 'plan') -> str:
    """Turn a user-provided plan name into a filename stem.

    Punctuation is dropped and runs of whitespace or underscores collapse to
    a single underscore.

    Example:
        >>> safe_filename("My Plan 2024!")
        'My_Plan_2024'
        >>> safe_filename("***")
        'plan'
    """
    cleaned = _SEPARATORS.sub('_', _UNSAFE.sub('', name or '').strip())
    return cleaned.strip('_') or default


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path
