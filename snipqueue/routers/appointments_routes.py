# snipqueue/routers/appointments_routes.py

import logging
from collections import Counter
from datetime import datetime, timedelta, date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from snipqueue.auth import Identity, get_current_identity
from snipqueue.core import available_start_times, blocking_intervals, find_window, weekday_name
from snipqueue.data import appointments_between, schedules_for
from snipqueue.db import get_session
from snipqueue.deps import require_admin, require_self_or_admin, get_now
from snipqueue.models import (
    Appointment, Barber, Customer, Service,
    CONFIRMED, COMPLETED, CANCELLED, DAYS_OF_WEEK,
)
from snipqueue.routers.barbers_routes import get_barber_or_404, get_service_or_422
from snipqueue.schemas import (
    AppointmentCreate,
    AdminAppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    TimelineResponse,
    DashboardResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["appointments"],
)

TIMELINE_STEP_MINUTES = 30
TIMELINE_FIRST_HOUR = 8
TIMELINE_LAST_HOUR = 21


def book_appointment(
    session: Session,
    customer: Customer,
    appt: AppointmentCreate,
    now: datetime,
) -> Appointment:
    # 1) Validate barber and service
    barber = get_barber_or_404(session, appt.barber_id)
    service = get_service_or_422(session, appt.service_id)

    # 2) Build appointment interval (naive shop-local time)
    appt_start = appt.start_time
    appt_end = appt_start + timedelta(minutes=service.duration)
    appt_date = appt_start.date()

    # 3) Prevent booking in the past (naive local time)
    if appt_start < now:
        raise HTTPException(status_code=422, detail="Cannot book an appointment in the past")

    # 4) Working day?
    schedules = schedules_for(session, barber.id)
    if find_window(schedules, appt_date) is None:
        raise HTTPException(status_code=422, detail="Barber is not scheduled to work that day")

    # 5) Must be one of the slots the engine offers right now
    day_start = datetime.combine(appt_date, datetime.min.time())
    booked = blocking_intervals(
        appointments_between(session, barber.id, day_start, day_start + timedelta(days=1))
    )
    slots = available_start_times(schedules, appt_date, service.duration, booked, now)
    if appt_start not in slots:
        raise HTTPException(status_code=409, detail="Selected time is no longer available")

    # 6) Create and save appointment
    # Nothing locks the barber between step 5 and this commit
    db_appt = Appointment(
        customer_id=customer.id,
        customer_name=customer.name or "Anonymous User",
        barber_id=barber.id,
        barber_name=barber.name,
        service_id=service.id,
        service_name=service.name,
        start_time=appt_start,
        end_time=appt_end,
        status=CONFIRMED,
    )

    session.add(db_appt)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Appointment already exists for that start time")

    session.refresh(db_appt)
    logger.info(
        f"Booked appointment {db_appt.id} for customer {customer.id} with barber {barber.id} "
        f"at {appt_start.isoformat()}"
    )
    return db_appt


def customer_from_identity(session: Session, identity: Identity) -> Customer:
    customer = session.get(Customer, identity.uid)
    if customer is None:
        customer = Customer(
            id=identity.uid,
            email=identity.email or f"anon_{identity.uid}@example.com",
            name=identity.display_name or "Anonymous User",
        )
        session.add(customer)
        session.commit()
        session.refresh(customer)
    return customer


def set_status(session: Session, appt_id: str, status: str, identity: Identity) -> Appointment:
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    if status == CANCELLED:
        require_self_or_admin(identity, target.customer_id)
    else:
        require_admin(identity)

    if target.status != CONFIRMED:
        raise HTTPException(status_code=409, detail=f"Appointment is already {target.status.lower()}")

    target.status = status
    session.add(target)
    session.commit()
    session.refresh(target)
    logger.info(f"Appointment {appt_id} marked {status} by {identity.uid}")
    return target


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    now: datetime = Depends(get_now),
):
    customer = customer_from_identity(session, identity)
    return book_appointment(session, customer, appt, now)


@router.post("/admin/appointments", response_model=AppointmentPublic, status_code=201)
def admin_create_appointment(
    appt: AdminAppointmentCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
    now: datetime = Depends(get_now),
):
    require_admin(identity)

    customer = session.get(Customer, appt.customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return book_appointment(session, customer, appt, now)


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return set_status(session, appt_id, CANCELLED, identity)


@router.patch("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return set_status(session, appt_id, COMPLETED, identity)


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_appointments(
    status: Optional[AppointmentStatus] = None,
    barber_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    stmt = select(Appointment)
    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)
    if barber_id is not None:
        stmt = stmt.where(Appointment.barber_id == barber_id)
    if customer_id is not None:
        stmt = stmt.where(Appointment.customer_id == customer_id)

    return session.exec(stmt.order_by(Appointment.start_time.desc())).all()


@router.get("/me/appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    stmt = (
        select(Appointment)
        .where(Appointment.customer_id == identity.uid)
        .order_by(Appointment.start_time.desc())
    )
    return session.exec(stmt).all()


@router.get("/barbers/{barber_id}/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    barber_id: str,
    status: Optional[AppointmentStatus] = None,
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    stmt = select(Appointment).where(Appointment.barber_id == barber_id)

    if on_date is not None:
        day_start_dt = datetime.combine(on_date, datetime.min.time())
        day_end_dt = day_start_dt + timedelta(days=1)
        stmt = stmt.where(Appointment.start_time >= day_start_dt).where(Appointment.start_time < day_end_dt)

    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)

    return session.exec(stmt.order_by(Appointment.start_time)).all()


@router.get("/admin/timeline", response_model=TimelineResponse)
def timeline(
    date: date,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    barbers = session.exec(select(Barber).order_by(Barber.name)).all()

    day_start = datetime.combine(date, datetime.min.time())
    day_end = day_start + timedelta(days=1)
    # Includes appointments that started the evening before
    booked = {
        barber.id: [
            a for a in appointments_between(session, barber.id, day_start, day_end)
            if a.status != CANCELLED
        ]
        for barber in barbers
    }

    rows = []
    slot = day_start + timedelta(hours=TIMELINE_FIRST_HOUR)
    last = day_start + timedelta(hours=TIMELINE_LAST_HOUR)
    while slot < last:
        cells = {}
        for barber in barbers:
            cells[barber.id] = next(
                (a for a in booked[barber.id] if a.start_time <= slot < a.end_time),
                None,
            )
        rows.append({"time": slot, "cells": cells})
        slot += timedelta(minutes=TIMELINE_STEP_MINUTES)

    return {"date": date, "barbers": barbers, "rows": rows}


@router.get("/admin/dashboard", response_model=DashboardResponse)
def dashboard(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    appointments = session.exec(select(Appointment)).all()
    prices = {s.id: s.price for s in session.exec(select(Service)).all()}
    total_barbers = len(session.exec(select(Barber.id)).all())

    revenue = sum(prices.get(a.service_id, 0) for a in appointments if a.status == COMPLETED)
    by_weekday = Counter(weekday_name(a.start_time.date()) for a in appointments)

    return {
        "total_revenue": revenue,
        "total_appointments": len(appointments),
        "unique_customers": len({a.customer_id for a in appointments}),
        "total_barbers": total_barbers,
        "appointments_by_weekday": {day: by_weekday.get(day, 0) for day in DAYS_OF_WEEK},
    }
