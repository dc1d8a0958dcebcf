# snipqueue/routers/schedules_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from snipqueue.auth import Identity, get_current_identity
from snipqueue.data import get_shop_hours, schedules_for
from snipqueue.db import get_session
from snipqueue.deps import require_admin
from snipqueue.models import Barber, Schedule, DAYS_OF_WEEK, schedule_id
from snipqueue.routers.barbers_routes import get_barber_or_404
from snipqueue.schemas import WeeklyScheduleIn, ScheduleEntryPublic, BarberScheduleOverview

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["schedules"],
)


def weekly_view(barber_id: str, rows) -> List[dict]:
    by_day = {r.day_of_week: r for r in rows}
    week = []
    for day in DAYS_OF_WEEK:
        row = by_day.get(day)
        if row is None:
            week.append({"id": None, "barber_id": barber_id, "day_of_week": day, "start_time": "", "end_time": ""})
        else:
            week.append({
                "id": row.id,
                "barber_id": barber_id,
                "day_of_week": day,
                "start_time": row.start_time,
                "end_time": row.end_time,
            })
    return week


def write_day(session: Session, barber_id: str, day: str, start_time: str, end_time: str):
    sid = schedule_id(barber_id, day)
    row = session.get(Schedule, sid)

    # Blank window = day off = no row
    if not (start_time and end_time):
        if row is not None:
            session.delete(row)
        return

    if row is None:
        row = Schedule(id=sid, barber_id=barber_id, day_of_week=day)
    row.start_time = start_time
    row.end_time = end_time
    session.add(row)


@router.get("/barbers/{barber_id}/schedules", response_model=List[ScheduleEntryPublic])
def get_barber_schedule(barber_id: str, session: Session = Depends(get_session)):
    get_barber_or_404(session, barber_id)
    return weekly_view(barber_id, schedules_for(session, barber_id))


@router.put("/barbers/{barber_id}/schedules", response_model=List[ScheduleEntryPublic])
def update_barber_schedule(
    barber_id: str,
    schedule: WeeklyScheduleIn,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    get_barber_or_404(session, barber_id)

    for entry in schedule.entries:
        write_day(session, barber_id, entry.day_of_week.value, entry.start_time, entry.end_time)
    session.commit()
    logger.info(f"Updated {len(schedule.entries)} schedule days for barber {barber_id}")

    return weekly_view(barber_id, schedules_for(session, barber_id))


@router.post("/barbers/{barber_id}/schedules/apply-shop-hours", response_model=List[ScheduleEntryPublic])
def apply_shop_hours(
    barber_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    get_barber_or_404(session, barber_id)
    hours = get_shop_hours(session)

    for day in DAYS_OF_WEEK:
        if day == "Sunday":
            write_day(session, barber_id, day, "", "")
        else:
            write_day(session, barber_id, day, hours.start_time, hours.end_time)
    session.commit()
    logger.info(f"Applied shop hours {hours.start_time}-{hours.end_time} to barber {barber_id}")

    return weekly_view(barber_id, schedules_for(session, barber_id))


@router.get("/schedules", response_model=List[BarberScheduleOverview])
def schedules_overview(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    overview = []
    for barber in session.exec(select(Barber).order_by(Barber.name)).all():
        week = {}
        for entry in weekly_view(barber.id, schedules_for(session, barber.id)):
            if entry["start_time"] and entry["end_time"]:
                week[entry["day_of_week"]] = f"{entry['start_time']} - {entry['end_time']}"
            else:
                week[entry["day_of_week"]] = "Day Off"
        overview.append({"barber_id": barber.id, "barber_name": barber.name, "schedule": week})
    return overview
