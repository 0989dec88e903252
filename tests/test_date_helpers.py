from datetime import date, datetime

import pytest

from utils.date_helpers import (
    add_months, add_years, add_weeks, add_days, to_calendar_date,
    parse_date, format_date, is_on_or_before, days_until,
)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)


def test_add_months_crosses_year():
    assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_add_years_leap_day():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)
    assert add_years(date(2023, 7, 4), 1) == date(2024, 7, 4)


def test_add_days_and_weeks():
    assert add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)
    assert add_weeks(date(2024, 12, 30), 1) == date(2025, 1, 6)


def test_to_calendar_date_truncates_time():
    assert to_calendar_date(datetime(2024, 6, 4, 23, 59, 59)) == date(2024, 6, 4)
    assert to_calendar_date(date(2024, 6, 4)) == date(2024, 6, 4)
    assert to_calendar_date("2024-06-04T18:30:00Z") == date(2024, 6, 4)


def test_to_calendar_date_rejects_garbage():
    with pytest.raises(ValueError):
        to_calendar_date("not a date")
    with pytest.raises(ValueError):
        to_calendar_date(20240604)


def test_parse_and_format():
    assert parse_date("2024-06-04") == date(2024, 6, 4)
    assert parse_date("2024/06/04") == date(2024, 6, 4)
    assert parse_date("") is None
    assert parse_date("06-04-2024") is None
    assert format_date(date(2024, 6, 4)) == "2024-06-04"


def test_comparisons():
    assert is_on_or_before(date(2024, 6, 4), date(2024, 6, 4))
    assert not is_on_or_before(date(2024, 6, 5), date(2024, 6, 4))
    assert days_until(date(2024, 6, 7), date(2024, 6, 4)) == 3
