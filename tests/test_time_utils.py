from datetime import date, datetime, timedelta, timezone

import pytest

from utils.time_utils import (
    format_date, format_long_date, format_price, get_available_dates, is_bookable_date, normalize_date
)


def test_normalize_date_keeps_calendar_day_of_datetime():
    evening_in_buenos_aires = datetime(2024, 6, 1, 23, 30, tzinfo=timezone(timedelta(hours=-3)))

    assert normalize_date(evening_in_buenos_aires) == "2024-06-01"


@pytest.mark.parametrize("value", [
    "2024-06-01",
    " 2024-06-01 ",
    "2024-06-01T23:30:00-03:00",
    "2024-06-01T02:00:00.000Z",
    date(2024, 6, 1),
])
def test_normalize_date_variants(value):
    assert normalize_date(value) == "2024-06-01"


@pytest.mark.parametrize("value", ["", "01/06/2024", "2024-02-30", None, 20240601])
def test_normalize_date_rejects_garbage(value):
    with pytest.raises(ValueError):
        normalize_date(value)


def test_available_dates_skip_closed_weekdays_and_blocked():
    monday = date(2024, 6, 3)

    dates = get_available_dates(["2024-06-08"], today=monday)

    assert dates[:3] == [date(2024, 6, 6), date(2024, 6, 7), date(2024, 6, 9)]
    assert all(day.weekday() in (3, 4, 5, 6) for day in dates)
    assert max(dates) < monday + timedelta(days=30)


def test_past_dates_are_not_bookable():
    today = date(2024, 6, 7)

    assert not is_bookable_date(date(2024, 6, 6), [], today)
    assert is_bookable_date(date(2024, 6, 7), [], today)


def test_formatting():
    assert format_date(date(2024, 6, 1)) == "Sáb 01/06"
    assert format_date("2024-06-06") == "Jue 06/06"
    assert format_long_date("2024-06-01") == "Sábado 1 de junio de 2024"
    assert format_price(12500) == "$12.500"
    assert format_price(500) == "$500"
