"""
Tests for field parsing and number formatting

Run with:
    pytest tests/test_parsing_formatting.py -v
"""

from datetime import date

from transdata_nexus.utils.parsing import parse_number, has_number, parse_shipment_date, month_key, clean_text
from transdata_nexus.utils.formatting import (
    format_large_number,
    format_plain_number,
    safe_filename,
)


class TestParseNumber:
    """Tests for numeric field parsing"""

    def test_thousands_separator(self):
        assert parse_number('1,234.5') == 1234.5

    def test_plain_numbers(self):
        assert parse_number(42) == 42.0
        assert parse_number(' 7.25 ') == 7.25

    def test_unusable_values_are_zero(self):
        """Test None, blanks, NaN and text give zero"""
        assert parse_number(None) == 0.0
        assert parse_number('') == 0.0
        assert parse_number('abc') == 0.0
        assert parse_number('nan') == 0.0
        assert parse_number(float('inf')) == 0.0

    def test_has_number(self):
        assert has_number('0') is True
        assert has_number('1,000') is True
        assert has_number('x') is False
        assert has_number(None) is False


class TestParseShipmentDate:
    """Tests for shipping bill date parsing"""

    def test_iso_date(self):
        assert parse_shipment_date('2024-01-15') == date(2024, 1, 15)

    def test_iso_timestamp_with_z(self):
        assert parse_shipment_date('2024-01-15T10:30:00Z') == date(2024, 1, 15)

    def test_slashed_dates_are_day_first(self):
        """Test DD/MM/YYYY is not read as month-first"""
        assert parse_shipment_date('05/03/2024') == date(2024, 3, 5)
        assert parse_shipment_date('15/03/2024') == date(2024, 3, 15)

    def test_month_name(self):
        assert parse_shipment_date('12-Jan-2024') == date(2024, 1, 12)

    def test_placeholders(self):
        """Test placeholder values give None"""
        assert parse_shipment_date('Not Released') is None
        assert parse_shipment_date('N/A') is None
        assert parse_shipment_date('') is None
        assert parse_shipment_date(None) is None

    def test_garbage(self):
        assert parse_shipment_date('sometime soon') is None

    def test_month_key(self):
        assert month_key(date(2024, 3, 5)) == '2024-03'

    def test_clean_text(self):
        assert clean_text(None) == ''
        assert clean_text('  Not Released ') == 'Not Released'


class TestFormatting:
    """Tests for number formatting helpers"""

    def test_large_numbers(self):
        assert format_large_number(2_000_000_000) == '2.0Bn'
        assert format_large_number(1_500_000) == '1.5Mn'
        assert format_large_number(5_600) == '5.6K'
        assert format_large_number(999) == '999'
        assert format_large_number(None) == 'N/A'

    def test_plain_number(self):
        """Test trailing fractional zeros are trimmed"""
        assert format_plain_number(1234.5) == '1,234.5'
        assert format_plain_number(1000) == '1,000'
        assert format_plain_number(0.125) == '0.125'

    def test_safe_filename(self):
        assert safe_filename('para cetamol/500mg') == 'para_cetamol_500mg'
        assert safe_filename('') == ''
