from datetime import datetime

from foodmap.recommendations.open_hours import is_open_now, open_status, weekday_name

MONDAY_NOON = datetime(2024, 1, 1, 12, 0)
MONDAY_3AM = datetime(2024, 1, 1, 3, 0)
SUNDAY_NOON = datetime(2024, 1, 7, 12, 0)

WEEKDAYS_ONLY = {
    "Monday": ["11:00-20:00"],
    "Tuesday": ["11:00-20:00"],
    "Wednesday": ["11:00-20:00"],
    "Thursday": ["11:00-20:00"],
    "Friday": ["11:00-20:00"],
}


def test_weekday_name():
    assert weekday_name(MONDAY_NOON) == "Monday"
    assert weekday_name(SUNDAY_NOON) == "Sunday"


def test_open_when_today_has_hours():
    assert is_open_now(WEEKDAYS_ONLY, MONDAY_NOON) is True


def test_closed_when_today_missing():
    assert is_open_now(WEEKDAYS_ONLY, SUNDAY_NOON) is False


def test_closed_when_today_entry_empty():
    assert is_open_now({"Monday": []}, MONDAY_NOON) is False


def test_time_of_day_is_ignored():
    # Presence check only: 03:00 is outside 11:00-20:00 but still "open"
    assert is_open_now(WEEKDAYS_ONLY, MONDAY_3AM) is True


def test_open_status_unknown_without_schedule():
    assert open_status(None, MONDAY_NOON) is None


def test_open_status_empty_schedule_is_closed():
    assert open_status({}, MONDAY_NOON) is False
