# tests/test_core.py

from datetime import date, datetime, timedelta

import pytest

from snipqueue.core import (
    available_start_times,
    blocking_intervals,
    bookable_days,
    find_window,
    is_day_bookable,
    overlaps,
    weekday_name,
)
from snipqueue.models import Appointment, Schedule

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 13)
# Well before any date used below
EARLIER = datetime(2030, 1, 1, 12, 0)


def at(day, hhmm):
    h, m = map(int, hhmm.split(":"))
    return datetime(day.year, day.month, day.day, h, m)


def week(start="09:00", end="12:00", days=("Monday",)):
    return [
        Schedule(id=f"schedule_b1_{d.lower()}", barber_id="b1", day_of_week=d, start_time=start, end_time=end)
        for d in days
    ]


def appt(start, end, status="Confirmed"):
    return Appointment(
        customer_id="c1", barber_id="b1", service_id="s1",
        start_time=start, end_time=end, status=status,
    )


def test_overlaps_is_half_open():
    assert overlaps(at(MONDAY, "09:00"), at(MONDAY, "10:00"), at(MONDAY, "09:30"), at(MONDAY, "10:30"))
    assert not overlaps(at(MONDAY, "09:00"), at(MONDAY, "10:00"), at(MONDAY, "10:00"), at(MONDAY, "10:30"))
    assert not overlaps(at(MONDAY, "10:30"), at(MONDAY, "11:00"), at(MONDAY, "10:00"), at(MONDAY, "10:30"))


def test_weekday_name_starts_week_on_sunday():
    assert weekday_name(SUNDAY) == "Sunday"
    assert weekday_name(MONDAY) == "Monday"
    assert weekday_name(date(2030, 1, 12)) == "Saturday"


def test_find_window():
    assert find_window(week(), MONDAY) == (at(MONDAY, "09:00"), at(MONDAY, "12:00"))
    assert find_window(week(), TUESDAY) is None
    assert find_window(week(start="", end=""), MONDAY) is None
    assert find_window(week(start="09:00", end=""), MONDAY) is None


def test_three_hour_window_with_45_minute_service():
    slots = available_start_times(week(), MONDAY, 45, [], EARLIER)

    assert slots[0] == at(MONDAY, "09:00")
    assert slots[1] == at(MONDAY, "09:15")
    assert slots[-1] == at(MONDAY, "11:15")
    assert at(MONDAY, "11:30") not in slots
    assert len(slots) == 10


def test_existing_appointment_leaves_only_first_slot():
    booked = [(at(MONDAY, "09:30"), at(MONDAY, "10:00"))]
    slots = available_start_times(week("09:00", "10:00"), MONDAY, 30, booked, EARLIER)
    assert slots == [at(MONDAY, "09:00")]


def test_touching_appointments_do_not_block():
    booked = [(at(MONDAY, "10:00"), at(MONDAY, "10:30"))]
    slots = available_start_times(week(), MONDAY, 60, booked, EARLIER)

    assert at(MONDAY, "09:00") in slots
    assert at(MONDAY, "09:15") not in slots
    assert at(MONDAY, "10:15") not in slots
    assert at(MONDAY, "10:30") in slots


def test_day_off_returns_no_slots():
    assert available_start_times(week(), TUESDAY, 30, [], EARLIER) == []
    assert available_start_times(week(start="", end=""), MONDAY, 30, [], EARLIER) == []
    assert available_start_times([], MONDAY, 30, [], EARLIER) == []


def test_duration_off_the_grid_still_steps_by_fifteen_minutes():
    slots = available_start_times(week("09:00", "11:00"), MONDAY, 50, [], EARLIER)
    assert slots == [at(MONDAY, t) for t in ("09:00", "09:15", "09:30", "09:45", "10:00")]


def test_service_longer_than_window():
    assert available_start_times(week("09:00", "10:00"), MONDAY, 90, [], EARLIER) == []


def test_today_drops_past_slots():
    now = at(MONDAY, "10:07")
    slots = available_start_times(week(), MONDAY, 30, [], now)
    assert slots[0] == at(MONDAY, "10:15")
    assert all(s >= now for s in slots)


def test_future_day_ignores_current_time_of_day():
    now = at(date(2030, 1, 6), "23:00")
    assert available_start_times(week(), MONDAY, 30, [], now)[0] == at(MONDAY, "09:00")


def test_overlapping_bookings_each_exclude_their_candidates():
    booked = [
        (at(MONDAY, "09:30"), at(MONDAY, "10:15")),
        (at(MONDAY, "10:00"), at(MONDAY, "10:30")),
    ]
    slots = available_start_times(week(), MONDAY, 15, booked, EARLIER)

    assert at(MONDAY, "09:15") in slots
    for blocked in ("09:30", "09:45", "10:00", "10:15"):
        assert at(MONDAY, blocked) not in slots
    assert at(MONDAY, "10:30") in slots


@pytest.mark.parametrize("duration", [15, 30, 45, 50, 90])
def test_slots_fit_window_and_avoid_bookings(duration):
    booked = [
        (at(MONDAY, "10:00"), at(MONDAY, "10:45")),
        (at(MONDAY, "13:30"), at(MONDAY, "15:00")),
    ]
    start, end = at(MONDAY, "09:00"), at(MONDAY, "17:00")
    slots = available_start_times(week("09:00", "17:00"), MONDAY, duration, booked, EARLIER)

    assert slots == sorted(slots)
    for s in slots:
        s_end = s + timedelta(minutes=duration)
        assert start <= s and s_end <= end
        assert not any(s < b_end and s_end > b_start for b_start, b_end in booked)


def test_cancelled_appointments_do_not_block():
    appointments = [
        appt(at(MONDAY, "09:00"), at(MONDAY, "09:45"), status="Cancelled"),
        appt(at(MONDAY, "10:00"), at(MONDAY, "10:45"), status="Completed"),
        appt(at(MONDAY, "11:00"), at(MONDAY, "11:30")),
    ]
    assert blocking_intervals(appointments) == [
        (at(MONDAY, "10:00"), at(MONDAY, "10:45")),
        (at(MONDAY, "11:00"), at(MONDAY, "11:30")),
    ]


def test_cancelling_only_adds_slots_back():
    confirmed = appt(at(MONDAY, "09:30"), at(MONDAY, "10:15"))
    other = appt(at(MONDAY, "11:00"), at(MONDAY, "11:30"))

    before = available_start_times(week(), MONDAY, 30, blocking_intervals([confirmed, other]), EARLIER)
    confirmed.status = "Cancelled"
    after = available_start_times(week(), MONDAY, 30, blocking_intervals([confirmed, other]), EARLIER)

    assert set(before) < set(after)


def test_day_bookability_follows_slot_list():
    schedules = week("09:00", "10:00")

    assert is_day_bookable(schedules, MONDAY, 30, [], EARLIER)
    assert not is_day_bookable(schedules, TUESDAY, 30, [], EARLIER)
    # Window exists but is fully booked
    full = [(at(MONDAY, "09:00"), at(MONDAY, "10:00"))]
    assert not is_day_bookable(schedules, MONDAY, 30, full, EARLIER)
    # Past day
    assert not is_day_bookable(schedules, MONDAY, 30, [], at(TUESDAY, "08:00"))
    # Today, but the last slot has already started
    assert not is_day_bookable(schedules, MONDAY, 30, [], at(MONDAY, "09:31"))


def test_bookable_days_matches_available_start_times():
    schedules = week(days=("Monday", "Wednesday", "Saturday"))
    booked = [(at(date(2030, 1, 9), "09:00"), at(date(2030, 1, 9), "12:00"))]

    result = bookable_days(schedules, MONDAY, 7, 30, booked, EARLIER)

    assert [d for d, _ in result] == [MONDAY + timedelta(days=i) for i in range(7)]
    for day, ok in result:
        assert ok == bool(available_start_times(schedules, day, 30, booked, EARLIER))
    assert dict(result)[MONDAY] is True
    assert dict(result)[date(2030, 1, 9)] is False  # Wednesday fully booked


def test_rejects_non_positive_duration():
    with pytest.raises(ValueError):
        available_start_times(week(), MONDAY, 0, [], EARLIER)
