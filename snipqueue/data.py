# snipqueue/data.py

import logging
from datetime import datetime

from sqlmodel import Session, select

from .models import (
    Appointment, Barber, Service, Schedule, PageContent, ShopSettings,
    DAYS_OF_WEEK, schedule_id,
)

logger = logging.getLogger(__name__)

DEFAULT_SHOP_HOURS = {
    "start_time": "09:00",
    "end_time": "18:00",
}

# Fallback when an appointment points at a service that no longer exists
DEFAULT_DURATION_MINUTES = 30

SERVICES = [
    {"id": "s1", "name": "Classic Haircut", "description": "A timeless cut, tailored to your style.", "price": 40, "duration": 45},
    {"id": "s2", "name": "Beard Trim", "description": "Shape and refine your beard to perfection.", "price": 25, "duration": 30},
    {"id": "s3", "name": "Hot Towel Shave", "description": "A luxurious and close shave experience.", "price": 45, "duration": 45},
    {"id": "s4", "name": "Kid's Cut", "description": "A great haircut for our younger clients (under 12).", "price": 30, "duration": 30},
    {"id": "s5", "name": "Hair Coloring", "description": "Full-head professional hair coloring service.", "price": 80, "duration": 90},
]

DEFAULT_SCHEDULE = {
    "Monday": ("09:00", "18:00"),
    "Tuesday": ("09:00", "18:00"),
    "Wednesday": ("09:00", "18:00"),
    "Thursday": ("09:00", "20:00"),
    "Friday": ("09:00", "20:00"),
    "Saturday": ("08:00", "16:00"),
    "Sunday": ("", ""),  # day off
}

BARBERS = [
    {"id": "b1", "name": "Alex Johnson", "specialties": ["Fades", "Classic Cuts"]},
    {"id": "b2", "name": "Ben Carter", "specialties": ["Beards", "Shaves"]},
    {"id": "b3", "name": "Chloe Davis", "specialties": ["Long Hair", "Coloring"]},
    {"id": "b4", "name": "David Rodriguez", "specialties": ["Kid's Cuts", "Modern Styles"]},
]


def image_hint(name: str, fallback: str) -> str:
    return " ".join(name.lower().split()[:2]) or fallback


def get_shop_hours(session: Session) -> ShopSettings:
    settings = session.get(ShopSettings, "hours")
    if settings is None:
        return ShopSettings(id="hours", **DEFAULT_SHOP_HOURS)
    return settings


def get_page_content(session: Session) -> PageContent:
    return session.get(PageContent, "home") or PageContent(id="home")


def seed_catalog(session: Session) -> int:
    """Write the demo catalog in one commit and return the number of rows."""
    written = 0

    session.merge(ShopSettings(id="hours", **DEFAULT_SHOP_HOURS))
    session.merge(PageContent(id="home"))
    written += 2

    for s in SERVICES:
        session.merge(Service(
            image_url=f"https://picsum.photos/seed/{s['id']}/400/400",
            image_hint=image_hint(s["name"], "hair service"),
            **s,
        ))
        written += 1

    for b in BARBERS:
        session.merge(Barber(
            image_url=f"https://picsum.photos/seed/{b['id']}/400/400",
            image_hint="barber portrait",
            **b,
        ))
        written += 1

        for day in DAYS_OF_WEEK:
            start, end = DEFAULT_SCHEDULE[day]
            if not (start and end):
                continue
            session.merge(Schedule(
                id=schedule_id(b["id"], day),
                barber_id=b["id"],
                day_of_week=day,
                start_time=start,
                end_time=end,
            ))
            written += 1

    session.commit()
    logger.info(f"Seeded {written} rows")
    return written


def schedules_for(session: Session, barber_id: str):
    return session.exec(select(Schedule).where(Schedule.barber_id == barber_id)).all()


def appointments_between(session: Session, barber_id: str, start: datetime, end: datetime):
    # Anything that touches [start, end), whatever day it began on
    return session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.start_time < end)
        .where(Appointment.end_time > start)
        .order_by(Appointment.start_time)
    ).all()
