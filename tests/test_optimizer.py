# tests/test_optimizer.py

from datetime import datetime

import pytest
from sqlmodel import Session, select

from snipqueue.main import app
from snipqueue.models import Appointment
from snipqueue.optimizer import (
    GeminiQueueOptimizer,
    OptimizeQueueRequest,
    OptimizeQueueResponse,
    OptimizerError,
    QueueOptimizer,
    build_optimize_request,
    get_queue_optimizer,
    parse_proposal,
    render_prompt,
)

from conftest import NOW

PROPOSAL = """```json
{
  "rescheduledAppointments": [
    {"appointmentId": "%s", "newStartTime": "2030-01-07T09:00:00"}
  ],
  "optimizationSummary": "Moved one appointment earlier to close a gap."
}
```"""


class FakeOptimizer(QueueOptimizer):
    def __init__(self, reply):
        self.reply = reply
        self.requests = []

    def optimize(self, request: OptimizeQueueRequest) -> OptimizeQueueResponse:
        self.requests.append(request)
        if isinstance(self.reply, Exception):
            raise self.reply
        return parse_proposal(self.reply)


@pytest.fixture
def booked(client, shop, customer_headers, admin_headers):
    first = client.post(
        "/appointments",
        json={"barber_id": "b1", "service_id": "s1", "start_time": "2030-01-07T10:00:00"},
        headers=customer_headers,
    ).json()
    second = client.post(
        "/appointments",
        json={"barber_id": "b2", "service_id": "s2", "start_time": "2030-01-07T11:00:00"},
        headers=customer_headers,
    ).json()
    client.patch(f"/appointments/{second['id']}/cancel", headers=customer_headers)
    return first, second


def snapshot(engine):
    with Session(engine) as session:
        return sorted(
            (a.id, a.start_time, a.end_time, a.status)
            for a in session.exec(select(Appointment)).all()
        )


def test_request_contains_confirmed_appointments_only(engine, booked):
    first, _ = booked
    with Session(engine) as session:
        request = build_optimize_request(session, NOW)

    assert [a.appointment_id for a in request.appointments] == [first["id"]]
    assert request.appointments[0].duration_minutes == 45
    assert len(request.service_durations) == 5
    assert request.customer_preferences == []

    alex = next(b for b in request.barber_schedules if b.barber_id == "b1")
    # Monday through Saturday of the coming week, Sunday off
    assert len(alex.availability) == 6
    assert alex.availability[0].start_time == datetime(2030, 1, 7, 9, 0)


def test_request_includes_customer_preferences(client, engine, booked, customer_headers):
    r = client.put(
        "/me/profile",
        json={"first_name": "John", "last_name": "Doe", "phone": "0812345678", "preferred_barber_ids": ["b1"]},
        headers=customer_headers,
    )
    assert r.status_code == 200

    with Session(engine) as session:
        request = build_optimize_request(session, NOW)

    assert request.customer_preferences[0].customer_id == "cust-1"
    assert request.customer_preferences[0].preferred_barber_ids == ["b1"]


def test_request_uses_camel_case_on_the_wire(engine, booked):
    with Session(engine) as session:
        payload = build_optimize_request(session, NOW).model_dump(by_alias=True)

    assert set(payload) == {"appointments", "barberSchedules", "serviceDurations", "customerPreferences"}
    assert "appointmentId" in payload["appointments"][0]


def test_prompt_lists_the_snapshot(engine, booked):
    first, _ = booked
    with Session(engine) as session:
        prompt = render_prompt(build_optimize_request(session, NOW))

    assert f"Appointment ID: {first['id']}" in prompt
    assert "Barber ID: b1, Availability:" in prompt
    assert "Service ID: s5, Duration: 90 minutes" in prompt


def test_parse_proposal():
    proposal = parse_proposal(PROPOSAL % "a1")
    assert proposal.rescheduled_appointments[0].appointment_id == "a1"
    assert proposal.rescheduled_appointments[0].new_start_time == datetime(2030, 1, 7, 9, 0)


@pytest.mark.parametrize("content", [
    "",
    "not json at all",
    '{"rescheduledAppointments": []}',
    '{"rescheduledAppointments": [{"appointmentId": "a1"}], "optimizationSummary": "x"}',
])
def test_parse_proposal_rejects_bad_output(content):
    with pytest.raises(OptimizerError):
        parse_proposal(content)


def test_gemini_optimizer_requires_key():
    with pytest.raises(OptimizerError):
        GeminiQueueOptimizer(api_key=None).optimize(
            OptimizeQueueRequest(appointments=[], barber_schedules=[], service_durations=[], customer_preferences=[])
        )


def test_queue_optimizer_endpoint(client, engine, booked, admin_headers):
    first, _ = booked
    fake = FakeOptimizer(PROPOSAL % first["id"])
    app.dependency_overrides[get_queue_optimizer] = lambda: fake
    before = snapshot(engine)

    r = client.post("/admin/queue-optimizer", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["optimizationSummary"].startswith("Moved one appointment")
    assert body["rescheduledAppointments"] == [
        {"appointmentId": first["id"], "newStartTime": "2030-01-07T09:00:00"}
    ]
    assert len(fake.requests) == 1

    # Proposal only
    assert snapshot(engine) == before


@pytest.mark.parametrize("reply", [
    "{not valid json",
    RuntimeError("connection reset"),
])
def test_queue_optimizer_failure_changes_nothing(client, engine, booked, admin_headers, reply):
    app.dependency_overrides[get_queue_optimizer] = lambda: FakeOptimizer(reply)
    before = snapshot(engine)

    r = client.post("/admin/queue-optimizer", headers=admin_headers)
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to run the queue optimizer."
    assert "rescheduledAppointments" not in r.json()
    assert snapshot(engine) == before


def test_queue_optimizer_is_admin_only(client, shop, customer_headers):
    app.dependency_overrides[get_queue_optimizer] = lambda: FakeOptimizer(PROPOSAL % "a1")
    assert client.post("/admin/queue-optimizer", headers=customer_headers).status_code == 403
