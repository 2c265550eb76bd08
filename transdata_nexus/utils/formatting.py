"""
Formatting Utilities

Helper functions for formatting numbers in insight text and reports.
"""

import re
from typing import Optional


def format_large_number(value: Optional[float], decimals: int = 1) -> str:
    """
    Abbreviate a large number

    Args:
        value: Number to format
        decimals: Decimal places kept after abbreviation

    Returns:
        "1.2Bn", "3.4Mn", "5.6K" or the plain number
    """
    if value is None:
        return "N/A"

    magnitude = abs(value)
    if magnitude >= 1e9:
        return f"{value / 1e9:.{decimals}f}Bn"
    if magnitude >= 1e6:
        return f"{value / 1e6:.{decimals}f}Mn"
    if magnitude >= 1e3:
        return f"{value / 1e3:.{decimals}f}K"
    if float(value).is_integer():
        return f"{int(value)}"
    return f"{value:.{decimals}f}"


def safe_filename(value: str) -> str:
    """Replace every non-alphanumeric character with an underscore"""
    return re.sub(r'[^a-zA-Z0-9]', '_', value or '')


def format_plain_number(value: float, max_decimals: int = 3) -> str:
    """Thousands separators with trailing fractional zeros trimmed (1,234.5)"""
    text = f"{value:,.{max_decimals}f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text
