"""Number and currency formatting utilities for Solar Private-Wire Analyzer."""

import math
from typing import Optional

CURRENCY = "£"


def format_currency(value: float, decimals: int = 0, prefix: str = CURRENCY) -> str:
    """Format a number as an abbreviated currency string.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "£20M").
    """
    if not math.isfinite(value):
        return "N/A"
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value >= 1e9:
        return f"{sign}{prefix}{value / 1e9:,.{decimals}f}B"
    if value >= 1e6:
        return f"{sign}{prefix}{value / 1e6:,.{decimals}f}M"
    if value >= 1e3:
        return f"{sign}{prefix}{value / 1e3:,.{decimals}f}K"
    return f"{sign}{prefix}{value:,.{decimals}f}"


def format_currency_exact(value: float, decimals: int = 0, prefix: str = CURRENCY) -> str:
    """Format a number as exact currency string without abbreviation."""
    if not math.isfinite(value):
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.{decimals}f}"


def format_per_mwh(value: float, decimals: int = 2, prefix: str = CURRENCY) -> str:
    """Format a levelized cost (e.g., "£58.12/MWh"); infinite costs read "N/A"."""
    if not math.isfinite(value):
        return "N/A"
    return f"{prefix}{value:,.{decimals}f}/MWh"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a decimal as percentage string.

    Args:
        value: Decimal value (e.g., 0.07 for 7%), or None/NaN.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string (e.g., "7.0%") or "N/A".
    """
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value * 100:,.{decimals}f}%"


def format_number(value: float, decimals: int = 1) -> str:
    """Format a number with comma separators (e.g., "1,234.5")."""
    return f"{value:,.{decimals}f}"


def format_payback(value: float, project_life: int) -> str:
    """Format a payback period in years.

    Args:
        value: Payback period in years.
        project_life: Project life; values beyond it mean no payback.

    Returns:
        Formatted string (e.g., "7.2 years" or "Not within 15 years").
    """
    if value > project_life:
        return f"Not within {project_life} years"
    return f"{value:.1f} years"
