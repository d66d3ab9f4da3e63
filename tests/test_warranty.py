"""Tests for RMA part warranty calculation."""

from datetime import date

from servicedesk.services.warranty import compute_warranty, warranty_end_date


class TestWarranty:
    def test_end_date_is_same_day_years_later(self):
        assert warranty_end_date("2023-05-10", 1) == date(2024, 5, 10)
        assert warranty_end_date("2023-05-10", 3) == date(2026, 5, 10)

    def test_leap_day_purchase(self):
        assert warranty_end_date("2024-02-29", 1) == date(2025, 2, 28)

    def test_under_warranty(self):
        result = compute_warranty("2024-01-01", 1, date(2024, 6, 15))
        assert result.is_under_warranty
        assert result.days_remaining == (date(2025, 1, 1) - date(2024, 6, 15)).days

    def test_last_day_still_covered(self):
        result = compute_warranty("2023-06-15", 1, date(2024, 6, 15))
        assert result.is_under_warranty
        assert result.days_remaining == 0

    def test_expired_never_negative(self):
        result = compute_warranty("2020-01-01", 1, date(2024, 6, 15))
        assert not result.is_under_warranty
        assert result.days_remaining == 0
