"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from typing import Union


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with proper formatting.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-50)
        '-$50.00'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = '-' if amount < 0 and round(abs(amount), 2) > 0 else ''
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def format_delta(amount: Union[float, int]) -> str:
    """Format a signed change, always showing the sign.

    Example:
        >>> format_delta(200)
        '+$200.00'
    """
    if round(amount, 2) == 0:
        return format_currency(0)
    sign = '+' if amount > 0 else '-'
    return f"{sign}{format_currency(abs(amount))}"


def format_percentage(value: float, decimals: int = 1) -> str:
    """Format a percentage value (already scaled to 0-100)."""
    return f"{value:.{decimals}f}%"
