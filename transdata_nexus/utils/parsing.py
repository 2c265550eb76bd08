"""
Parsing helpers for the string-typed shipment fields.

Values, prices and quantities arrive as text (sometimes with thousands
separators, sometimes empty). Shipping bill dates mix ISO and day-first
Indian formats and occasionally carry placeholders such as "Not Released".
"""

import math
from datetime import date, datetime
from typing import Any, List, Optional


# Placeholders seen in the shipping_bill_date column
DATE_PLACEHOLDERS = {'not released', 'na', 'n/a', 'null', '-'}

# Tried in order after ISO parsing fails; slashed dates are day-first
DATE_FORMATS = [
    '%Y-%m-%d',      # YYYY-MM-DD
    '%Y/%m/%d',      # YYYY/MM/DD
    '%d/%m/%Y',      # DD/MM/YYYY
    '%d/%m/%y',      # DD/MM/YY
    '%d-%m-%Y',      # DD-MM-YYYY
    '%d-%m-%y',      # DD-MM-YY
    '%d-%b-%Y',      # DD-Mon-YYYY
    '%d-%b-%y',      # DD-Mon-YY
    '%d %b %Y',      # DD Mon YYYY
    '%d.%m.%Y',      # DD.MM.YYYY
]


def parse_number(value: Any) -> float:
    """
    Parse a numeric field, treating anything unusable as zero

    Args:
        value: String, number or None

    Returns:
        Float value (0.0 for None, blanks, NaN or unparseable text)
    """
    if value is None:
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        clean_value = str(value).replace(',', '').strip()
        if clean_value == '':
            return 0.0
        try:
            number = float(clean_value)
        except ValueError:
            return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def has_number(value: Any) -> bool:
    """True when the field holds a parseable number (zero included)"""
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return not math.isnan(value)
    try:
        float(str(value).replace(',', '').strip())
        return True
    except ValueError:
        return False


def parse_shipment_date(value: Any, formats: List[str] = None) -> Optional[date]:
    """
    Parse a shipping bill date

    ISO-8601 strings (with or without a time part) are tried first, then
    the configured formats.

    Args:
        value: Raw date field
        formats: Override the fallback strptime formats

    Returns:
        date, or None when the field is empty, a placeholder or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    value = str(value).strip()
    if value == '' or value.lower() in DATE_PLACEHOLDERS:
        return None

    iso_value = value[:-1] + '+00:00' if value.endswith('Z') else value
    try:
        return datetime.fromisoformat(iso_value).date()
    except ValueError:
        pass

    for fmt in formats or DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    return None


def month_key(day: date) -> str:
    """Bucket key for a date: YYYY-MM"""
    return f"{day.year:04d}-{day.month:02d}"


def clean_text(value: Any) -> str:
    """Stripped string, empty for None"""
    if value is None:
        return ''
    return str(value).strip()
