# snipqueue/schemas.py

import re
from enum import Enum
from datetime import datetime, date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DayOfWeek(str, Enum):
    sunday = "Sunday"
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"


class AppointmentStatus(str, Enum):
    confirmed = "Confirmed"
    completed = "Completed"
    cancelled = "Cancelled"


def _check_hhmm(value: str) -> str:
    value = (value or "").strip()
    if value and not HHMM.match(value):
        raise ValueError("time must use the HH:mm format")
    return value


# ---------- catalog ----------

class ServiceIn(BaseModel):
    id: Optional[str] = None
    name: str = Field(min_length=2)
    description: str = Field(min_length=10)
    price: float = Field(ge=0)
    duration: int = Field(ge=5)
    image_url: str = ""


class ServicePublic(BaseModel):
    id: str
    name: str
    description: str
    price: float
    duration: int
    image_url: str
    image_hint: str


class BarberIn(BaseModel):
    id: Optional[str] = None
    name: str = Field(min_length=2)
    specialties: List[str] = Field(min_length=1)
    image_url: str = ""

    @field_validator("specialties")
    @classmethod
    def no_blank_specialties(cls, v: List[str]) -> List[str]:
        cleaned = [s.strip() for s in v]
        if any(not s for s in cleaned):
            raise ValueError("Specialty can't be empty")
        return cleaned


class BarberPublic(BaseModel):
    id: str
    name: str
    specialties: List[str]
    image_url: str
    image_hint: str


# ---------- schedules ----------

class ScheduleEntry(BaseModel):
    day_of_week: DayOfWeek
    start_time: str = ""
    end_time: str = ""

    @field_validator("start_time", "end_time")
    @classmethod
    def hhmm(cls, v: str) -> str:
        return _check_hhmm(v)

    @model_validator(mode="after")
    def check_window(self):
        if bool(self.start_time) != bool(self.end_time):
            raise ValueError("start_time and end_time must both be set or both be blank")
        if self.start_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WeeklyScheduleIn(BaseModel):
    entries: List[ScheduleEntry]

    @field_validator("entries")
    @classmethod
    def one_entry_per_day(cls, v: List[ScheduleEntry]) -> List[ScheduleEntry]:
        days = [e.day_of_week for e in v]
        if len(days) != len(set(days)):
            raise ValueError("entries cannot contain the same day twice")
        return v


class ScheduleEntryPublic(BaseModel):
    id: Optional[str] = None
    barber_id: str
    day_of_week: str
    start_time: str
    end_time: str


class BarberScheduleOverview(BaseModel):
    barber_id: str
    barber_name: str
    schedule: Dict[str, str]


# ---------- availability ----------

class AvailabilityResponse(BaseModel):
    barber_id: str
    service_id: str
    date: date
    duration: int
    available_starts: List[str]
    slots: List[datetime]


class BookableDay(BaseModel):
    date: date
    bookable: bool


class BookableDaysResponse(BaseModel):
    barber_id: str
    service_id: str
    days: List[BookableDay]


# ---------- appointments ----------

class AppointmentCreate(BaseModel):
    barber_id: str
    service_id: str
    start_time: datetime

    @field_validator("start_time")
    @classmethod
    def shop_local(cls, v: datetime) -> datetime:
        # Shop wall-clock time, e.g. 2030-01-07T10:00:00
        if v.tzinfo is not None:
            raise ValueError("start_time must be shop-local time without a UTC offset")
        return v


class AdminAppointmentCreate(AppointmentCreate):
    customer_id: str = Field(min_length=1)


class AppointmentPublic(BaseModel):
    id: str
    customer_id: str
    customer_name: str
    barber_id: str
    barber_name: str
    service_id: str
    service_name: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus


class TimelineRow(BaseModel):
    time: datetime
    cells: Dict[str, Optional[AppointmentPublic]]


class TimelineResponse(BaseModel):
    date: date
    barbers: List[BarberPublic]
    rows: List[TimelineRow]


class DashboardResponse(BaseModel):
    total_revenue: float
    total_appointments: int
    unique_customers: int
    total_barbers: int
    appointments_by_weekday: Dict[str, int]


# ---------- customers ----------

class CustomerProfileUpdate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: str = Field(min_length=9)
    # None leaves the stored preference as it is
    preferred_barber_ids: Optional[List[str]] = None


class CustomerPublic(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    preferred_barber_ids: List[str] = []


class CustomerDetail(CustomerPublic):
    appointment_history: List[AppointmentPublic]


class MePublic(BaseModel):
    uid: str
    email: Optional[str]
    is_admin: bool
    customer: Optional[CustomerPublic] = None


# ---------- site content ----------

class PageContentIn(BaseModel):
    shop_name: str = Field(min_length=1)
    hero_headline: str = Field(min_length=1)
    hero_subheadline: str = Field(min_length=1)
    feature1_title: str = Field(min_length=1)
    feature1_description: str = Field(min_length=1)
    feature2_title: str = Field(min_length=1)
    feature2_description: str = Field(min_length=1)
    feature3_title: str = Field(min_length=1)
    feature3_description: str = Field(min_length=1)
    services_title: str = Field(min_length=1)
    barbers_title: str = Field(min_length=1)


class PageContentPublic(PageContentIn):
    id: str = "home"


class ShopHours(BaseModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def hhmm(cls, v: str) -> str:
        v = _check_hhmm(v)
        if not v:
            raise ValueError("time is required")
        return v

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class SeedResult(BaseModel):
    success: bool = True
    written: int


# ---------- identity ----------

class UidRequest(BaseModel):
    uid: Optional[str] = None


class AdminClaimResponse(BaseModel):
    admin: bool
    uid: str
    email: Optional[str] = None


class CheckAdminResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_admin: bool = Field(alias="isAdmin")


class LineLoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id_token: Optional[str] = Field(default=None, alias="idToken")


class LineLoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    firebase_token: str = Field(alias="firebaseToken")
