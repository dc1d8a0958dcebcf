# snipqueue/models.py

import uuid
from typing import Optional, List
from datetime import datetime

from sqlalchemy import Index, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

CONFIRMED = "Confirmed"
COMPLETED = "Completed"
CANCELLED = "Cancelled"
APPOINTMENT_STATUSES = (CONFIRMED, COMPLETED, CANCELLED)


def new_id() -> str:
    return uuid.uuid4().hex[:20]


def schedule_id(barber_id: str, day_of_week: str) -> str:
    # One row per (barber, day)
    return f"schedule_{barber_id}_{day_of_week.lower()}"


class Service(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    description: str = ""
    price: float = 0
    duration: int  # minutes
    image_url: str = ""
    image_hint: str = ""


class Barber(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    specialties: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    image_url: str = ""
    image_hint: str = ""


class Schedule(SQLModel, table=True):
    id: str = Field(primary_key=True)
    barber_id: str = Field(index=True)
    day_of_week: str
    start_time: str = ""  # "HH:mm", blank = day off
    end_time: str = ""


class Customer(SQLModel, table=True):
    id: str = Field(primary_key=True)  # identity uid
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    preferred_barber_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))


class Appointment(SQLModel, table=True):
    # Cancelled rows stay in the table but give their start back
    __table_args__ = (
        Index(
            "uq_barber_start",
            "barber_id",
            "start_time",
            unique=True,
            sqlite_where=text(f"status != '{CANCELLED}'"),
            postgresql_where=text(f"status != '{CANCELLED}'"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)

    customer_id: str = Field(index=True)
    customer_name: str = ""
    barber_id: str = Field(index=True)
    barber_name: str = ""
    service_id: str
    service_name: str = ""
    start_time: datetime = Field(index=True)
    end_time: datetime
    status: str = CONFIRMED
    created_at: datetime = Field(default_factory=datetime.now)


class PageContent(SQLModel, table=True):
    id: str = Field(default="home", primary_key=True)
    shop_name: str = "SnipQueue"
    hero_headline: str = "Style, Simplified."
    hero_subheadline: str = (
        "Experience seamless appointment booking with SnipQueue. "
        "Your next great haircut is just a few clicks away."
    )
    feature1_title: str = "Expert Barbers"
    feature1_description: str = "Choose from our team of professional and experienced barbers."
    feature2_title: str = "Easy Booking"
    feature2_description: str = "Book your appointment anytime, anywhere in just a few steps."
    feature3_title: str = "AI-Powered Queue"
    feature3_description: str = "Our smart system optimizes schedules to minimize your wait time."
    services_title: str = "Our Services"
    barbers_title: str = "Meet Our Barbers"


class ShopSettings(SQLModel, table=True):
    id: str = Field(default="hours", primary_key=True)
    start_time: str = "09:00"
    end_time: str = "18:00"


class IdentityRecord(SQLModel, table=True):
    uid: str = Field(primary_key=True)
    email: Optional[str] = Field(default=None, index=True)
    display_name: Optional[str] = None
    picture: Optional[str] = None
    claims: dict = Field(default_factory=dict, sa_column=Column(JSON))
