# snipqueue/routers/barbers_routes.py

import logging
from datetime import datetime, timedelta, date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from snipqueue.auth import Identity, get_current_identity
from snipqueue.core import available_start_times, bookable_days, blocking_intervals
from snipqueue.data import appointments_between, schedules_for, image_hint
from snipqueue.db import get_session
from snipqueue.deps import require_admin, get_now
from snipqueue.models import Barber, Service, Schedule
from snipqueue.schemas import (
    BarberIn, BarberPublic, AvailabilityResponse, BookableDay, BookableDaysResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)

MAX_CALENDAR_DAYS = 62


def get_barber_or_404(session: Session, barber_id: str) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")
    return barber


def get_service_or_422(session: Session, service_id: str) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=422, detail="Service not available")
    return service


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    return session.exec(select(Barber).order_by(Barber.name)).all()


@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(barber_id: str, session: Session = Depends(get_session)):
    return get_barber_or_404(session, barber_id)


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberIn,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    if barber.id and session.get(Barber, barber.id) is not None:
        raise HTTPException(status_code=409, detail="Barber already exists")

    db_barber = Barber(
        name=barber.name,
        specialties=barber.specialties,
        image_url=barber.image_url,
        image_hint=image_hint(barber.name, "barber portrait"),
    )
    if barber.id:
        db_barber.id = barber.id

    session.add(db_barber)
    session.commit()
    session.refresh(db_barber)
    logger.info(f"Created barber {db_barber.id}")
    return db_barber


@router.put("/{barber_id}", response_model=BarberPublic)
def update_barber(
    barber_id: str,
    barber: BarberIn,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    db_barber = get_barber_or_404(session, barber_id)

    db_barber.name = barber.name
    db_barber.specialties = list(barber.specialties)
    if barber.image_url:
        db_barber.image_url = barber.image_url

    session.add(db_barber)
    session.commit()
    session.refresh(db_barber)
    return db_barber


@router.delete("/{barber_id}", status_code=204)
def delete_barber(
    barber_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    db_barber = get_barber_or_404(session, barber_id)

    # Barber and schedule rows go in one commit
    schedules = session.exec(select(Schedule).where(Schedule.barber_id == barber_id)).all()
    for s in schedules:
        session.delete(s)
    session.delete(db_barber)

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to delete barber {barber_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete barber")

    logger.info(f"Deleted barber {barber_id} and {len(schedules)} schedule rows")


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: str,
    date: date,
    service_id: str,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    # 1) Lookup barber, service and weekly schedule
    get_barber_or_404(session, barber_id)
    service = get_service_or_422(session, service_id)
    schedules = schedules_for(session, barber_id)

    # 2) Existing bookings that touch the day
    day_start = datetime.combine(date, datetime.min.time())
    day_end = day_start + timedelta(days=1)
    booked = blocking_intervals(appointments_between(session, barber_id, day_start, day_end))

    # 3) Walk the grid
    slots = available_start_times(schedules, date, service.duration, booked, now)

    return {
        "barber_id": barber_id,
        "service_id": service.id,
        "date": date,
        "duration": service.duration,
        "available_starts": [s.strftime("%H:%M") for s in slots],
        "slots": slots,
    }


@router.get("/{barber_id}/bookable-days", response_model=BookableDaysResponse)
def barber_bookable_days(
    barber_id: str,
    service_id: str,
    start: Optional[date] = None,
    days: int = Query(default=14, ge=1, le=MAX_CALENDAR_DAYS),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    get_barber_or_404(session, barber_id)
    service = get_service_or_422(session, service_id)
    schedules = schedules_for(session, barber_id)

    start = start or now.date()
    range_start = datetime.combine(start, datetime.min.time())
    range_end = range_start + timedelta(days=days)
    booked = blocking_intervals(appointments_between(session, barber_id, range_start, range_end))

    result = bookable_days(schedules, start, days, service.duration, booked, now)
    return {
        "barber_id": barber_id,
        "service_id": service.id,
        "days": [BookableDay(date=d, bookable=ok) for d, ok in result],
    }
