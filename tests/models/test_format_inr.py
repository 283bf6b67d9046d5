from decimal import Decimal

from ddms.models import format_inr, parse_amount


class TestFormatInr:
    def test_small(self):
        assert format_inr(Decimal("500")) == "₹ 500.00"

    def test_thousands(self):
        assert format_inr(Decimal("1500.5")) == "₹ 1,500.50"

    def test_lakhs_and_crores(self):
        assert format_inr(150000) == "₹ 1,50,000.00"
        assert format_inr(Decimal("12345678.9")) == "₹ 1,23,45,678.90"

    def test_negative(self):
        assert format_inr(Decimal("-2500")) == "₹ -2,500.00"


class TestParseAmount:
    def test_plain(self):
        assert parse_amount("1500") == Decimal("1500.00")

    def test_with_separators_and_symbol(self):
        assert parse_amount("₹ 1,50,000.5") == Decimal("150000.50")

    def test_invalid(self):
        assert parse_amount("") is None
        assert parse_amount("abc") is None
        assert parse_amount("NaN") is None
