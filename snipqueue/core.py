# snipqueue/core.py

from datetime import datetime, date, time, timedelta
from typing import Iterable, List, Optional, Tuple

from .config import SLOT_MINUTES
from .models import DAYS_OF_WEEK, CANCELLED

Interval = Tuple[datetime, datetime]


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # Half-open: [a_start, a_end) and [b_start, b_end), touching ends are fine
    return a_start < b_end and a_end > b_start


def weekday_name(on_date: date) -> str:
    # date.weekday(): 0 = Monday ... 6 = Sunday
    return DAYS_OF_WEEK[(on_date.weekday() + 1) % 7]


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    return datetime.strptime(value, "%H:%M").time()


def find_window(schedules, on_date: date) -> Optional[Interval]:
    """Return the barber's open window on ``on_date`` as datetimes.

    ``schedules`` is any iterable of rows with ``day_of_week``, ``start_time``
    and ``end_time``. A missing row or a blank start/end means the day is off
    and ``None`` is returned.
    """
    day = weekday_name(on_date)
    for s in schedules:
        if s.day_of_week != day:
            continue
        start = parse_hhmm(s.start_time)
        end = parse_hhmm(s.end_time)
        if start is None or end is None:
            return None
        return datetime.combine(on_date, start), datetime.combine(on_date, end)
    return None


def blocking_intervals(appointments) -> List[Interval]:
    # Confirmed and Completed occupy the chair, Cancelled frees it
    return [
        (a.start_time, a.end_time)
        for a in appointments
        if a.status != CANCELLED
    ]


def available_start_times(
    schedules,
    on_date: date,
    duration: int,
    booked: Iterable[Interval],
    now: Optional[datetime] = None,
    slot_minutes: int = SLOT_MINUTES,
) -> List[datetime]:
    """Bookable start times for one barber on one day, ascending.

    Candidates start at the window opening and move in fixed ``slot_minutes``
    steps while the whole service still fits. A candidate is dropped when it
    overlaps any interval in ``booked`` or, on today's date, when it is
    already in the past.
    """
    if duration <= 0:
        raise ValueError("duration must be a positive number of minutes")

    # 1) Day off?
    window = find_window(schedules, on_date)
    if window is None:
        return []
    work_start, work_end = window

    now = now or datetime.now()
    is_today = on_date == now.date()
    booked = list(booked)

    service_delta = timedelta(minutes=duration)
    slot_delta = timedelta(minutes=slot_minutes)

    # 2) Walk the grid
    available = []
    current = work_start
    while current + service_delta <= work_end:
        candidate_end = current + service_delta

        taken = any(overlaps(current, candidate_end, start, end) for start, end in booked)
        past = is_today and current < now

        if not taken and not past:
            available.append(current)
        current += slot_delta

    return available


def is_day_bookable(
    schedules,
    on_date: date,
    duration: int,
    booked: Iterable[Interval],
    now: Optional[datetime] = None,
    slot_minutes: int = SLOT_MINUTES,
) -> bool:
    # A window alone is not enough, the day may be fully booked
    now = now or datetime.now()
    if on_date < now.date():
        return False
    return len(available_start_times(schedules, on_date, duration, booked, now, slot_minutes)) > 0


def bookable_days(
    schedules,
    start: date,
    days: int,
    duration: int,
    booked: Iterable[Interval],
    now: Optional[datetime] = None,
    slot_minutes: int = SLOT_MINUTES,
) -> List[Tuple[date, bool]]:
    now = now or datetime.now()
    booked = list(booked)
    result = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        result.append((day, is_day_bookable(schedules, day, duration, booked, now, slot_minutes)))
    return result
