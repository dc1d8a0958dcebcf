# snipqueue/optimizer.py

import logging
from datetime import datetime, timedelta
from typing import List, Optional

import google.generativeai as genai
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel
from sqlmodel import Session, select

from .config import GEMINI_API_KEY, GEMINI_MODEL
from .core import find_window
from .data import DEFAULT_DURATION_MINUTES
from .models import Appointment, Barber, Customer, Schedule, Service, CONFIRMED

logger = logging.getLogger(__name__)

AVAILABILITY_HORIZON_DAYS = 7


class OptimizerError(Exception):
    pass


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeWindow(CamelModel):
    start_time: datetime
    end_time: datetime


class QueuedAppointment(CamelModel):
    appointment_id: str
    customer_id: str
    barber_id: str
    service_id: str
    start_time: datetime
    duration_minutes: int


class BarberAvailability(CamelModel):
    barber_id: str
    availability: List[TimeWindow]


class ServiceDuration(CamelModel):
    service_id: str
    duration_minutes: int


class CustomerPreference(CamelModel):
    customer_id: str
    preferred_barber_ids: Optional[List[str]] = None
    availability: Optional[List[TimeWindow]] = None


class OptimizeQueueRequest(CamelModel):
    appointments: List[QueuedAppointment]
    barber_schedules: List[BarberAvailability]
    service_durations: List[ServiceDuration]
    customer_preferences: List[CustomerPreference]


class RescheduledAppointment(CamelModel):
    appointment_id: str
    new_start_time: datetime


class OptimizeQueueResponse(CamelModel):
    rescheduled_appointments: List[RescheduledAppointment]
    optimization_summary: str


def build_optimize_request(session: Session, now: datetime) -> OptimizeQueueRequest:
    """Snapshot the shop into the optimizer's input shape."""
    services = session.exec(select(Service)).all()
    durations = {s.id: s.duration for s in services}

    confirmed = session.exec(
        select(Appointment)
        .where(Appointment.status == CONFIRMED)
        .order_by(Appointment.start_time)
    ).all()

    appointments = [
        QueuedAppointment(
            appointment_id=a.id,
            customer_id=a.customer_id,
            barber_id=a.barber_id,
            service_id=a.service_id,
            start_time=a.start_time,
            duration_minutes=durations.get(a.service_id, DEFAULT_DURATION_MINUTES),
        )
        for a in confirmed
    ]

    # Weekly rows become concrete windows for the coming days
    barber_schedules = []
    for barber in session.exec(select(Barber).order_by(Barber.name)).all():
        rows = session.exec(select(Schedule).where(Schedule.barber_id == barber.id)).all()
        windows = []
        for offset in range(AVAILABILITY_HORIZON_DAYS):
            window = find_window(rows, now.date() + timedelta(days=offset))
            if window is not None:
                windows.append(TimeWindow(start_time=window[0], end_time=window[1]))
        barber_schedules.append(BarberAvailability(barber_id=barber.id, availability=windows))

    customer_ids = {a.customer_id for a in confirmed}
    preferences = []
    if customer_ids:
        customers = session.exec(select(Customer).where(Customer.id.in_(customer_ids))).all()
        for c in customers:
            if c.preferred_barber_ids:
                preferences.append(CustomerPreference(
                    customer_id=c.id,
                    preferred_barber_ids=list(c.preferred_barber_ids),
                ))

    return OptimizeQueueRequest(
        appointments=appointments,
        barber_schedules=barber_schedules,
        service_durations=[
            ServiceDuration(service_id=s.id, duration_minutes=s.duration) for s in services
        ],
        customer_preferences=preferences,
    )


def render_prompt(request: OptimizeQueueRequest) -> str:
    lines = [
        "You are an AI assistant designed to optimize a barber shop's appointment queue.",
        "",
        "Given the following information about appointments, barber schedules, service durations, "
        "and customer preferences, reschedule appointments to maximize barber utilization and "
        "minimize customer wait times.",
        "",
        "Appointments:",
    ]
    for a in request.appointments:
        lines.append(
            f"- Appointment ID: {a.appointment_id}, Customer ID: {a.customer_id}, "
            f"Barber ID: {a.barber_id}, Service ID: {a.service_id}, "
            f"Start Time: {a.start_time.isoformat()}, Duration: {a.duration_minutes} minutes"
        )

    lines += ["", "Barber Schedules:"]
    for b in request.barber_schedules:
        lines.append(f"- Barber ID: {b.barber_id}, Availability:")
        for w in b.availability:
            lines.append(f"    {w.start_time.isoformat()} - {w.end_time.isoformat()}")

    lines += ["", "Service Durations:"]
    for s in request.service_durations:
        lines.append(f"- Service ID: {s.service_id}, Duration: {s.duration_minutes} minutes")

    lines += ["", "Customer Preferences:"]
    for p in request.customer_preferences:
        preferred = ", ".join(p.preferred_barber_ids or [])
        lines.append(f"- Customer ID: {p.customer_id}, Preferred Barbers: {preferred}, Availability:")
        for w in p.availability or []:
            lines.append(f"    {w.start_time.isoformat()} - {w.end_time.isoformat()}")

    lines += [
        "",
        "Consider the following constraints:",
        "- Appointments cannot be scheduled outside of barber availability.",
        "- Customer preferences for specific barbers should be respected when possible.",
        "- Minimize the number of rescheduled appointments.",
        "- Prioritize minimizing customer wait times and maximizing barber utilization.",
        "",
        "Output the rescheduled appointments with new start times and a summary of the "
        "optimization process.",
        'Return raw JSON only, shaped as {"rescheduledAppointments": [{"appointmentId": string, '
        '"newStartTime": ISO 8601 datetime}], "optimizationSummary": string}.',
    ]
    return "\n".join(lines)


def parse_proposal(content: str) -> OptimizeQueueResponse:
    if not content:
        raise OptimizerError("Empty response from optimizer")
    content = content.replace("```json", "").replace("```", "").strip()
    try:
        return OptimizeQueueResponse.model_validate_json(content)
    except ValidationError as e:
        raise OptimizerError(f"Optimizer response does not match schema: {e.error_count()} errors") from e


class QueueOptimizer:
    def optimize(self, request: OptimizeQueueRequest) -> OptimizeQueueResponse:
        raise NotImplementedError


class GeminiQueueOptimizer(QueueOptimizer):
    def __init__(self, api_key: Optional[str] = GEMINI_API_KEY, model_name: str = GEMINI_MODEL):
        self.api_key = api_key
        self.model_name = model_name

    def optimize(self, request: OptimizeQueueRequest) -> OptimizeQueueResponse:
        if not self.api_key:
            raise OptimizerError("GEMINI_API_KEY is not configured")

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(
            self.model_name,
            generation_config={"response_mime_type": "application/json"},
        )
        try:
            response = model.generate_content(render_prompt(request))
            content = response.text
        except Exception as e:
            raise OptimizerError(f"Gemini request failed: {e}") from e
        return parse_proposal(content)


def get_queue_optimizer() -> QueueOptimizer:
    return GeminiQueueOptimizer()


def run_queue_optimizer(session: Session, optimizer: QueueOptimizer, now: datetime) -> OptimizeQueueResponse:
    request = build_optimize_request(session, now)
    logger.info(
        f"Running queue optimizer on {len(request.appointments)} appointments "
        f"for {len(request.barber_schedules)} barbers"
    )
    try:
        proposal = optimizer.optimize(request)
    except OptimizerError as e:
        logger.error(f"Queue optimizer failed: {e}")
        raise
    except Exception as e:
        logger.error(f"Queue optimizer failed: {e}")
        raise OptimizerError(str(e)) from e

    logger.info(f"Queue optimizer proposed {len(proposal.rescheduled_appointments)} changes")
    return proposal
