# snipqueue/routers/customers_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from snipqueue.auth import Identity, get_current_identity
from snipqueue.db import get_session
from snipqueue.deps import require_admin
from snipqueue.models import Appointment, Barber, Customer
from snipqueue.schemas import CustomerProfileUpdate, CustomerPublic, CustomerDetail, MePublic

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["customers"],
)


def apply_profile(session: Session, customer: Customer, data: CustomerProfileUpdate):
    customer.first_name = data.first_name.strip()
    customer.last_name = data.last_name.strip()
    customer.name = f"{customer.first_name} {customer.last_name}".strip()
    customer.phone = data.phone.strip()

    if data.preferred_barber_ids is not None:
        for barber_id in data.preferred_barber_ids:
            if session.get(Barber, barber_id) is None:
                raise HTTPException(status_code=422, detail=f"Unknown barber {barber_id}")
        # Order kept, duplicates dropped
        customer.preferred_barber_ids = list(dict.fromkeys(data.preferred_barber_ids))


@router.get("/me", response_model=MePublic)
def me(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return {
        "uid": identity.uid,
        "email": identity.email,
        "is_admin": identity.is_admin,
        "customer": session.get(Customer, identity.uid),
    }


@router.put("/me/profile", response_model=CustomerPublic)
def finish_profile(
    data: CustomerProfileUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    customer = session.get(Customer, identity.uid)
    if customer is None:
        customer = Customer(id=identity.uid, email=identity.email or "")

    apply_profile(session, customer, data)
    session.add(customer)
    session.commit()
    session.refresh(customer)
    logger.info(f"Profile saved for customer {customer.id}")
    return customer


@router.get("/customers", response_model=List[CustomerPublic])
def list_customers(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    return session.exec(select(Customer).order_by(Customer.name)).all()


@router.get("/customers/{customer_id}", response_model=CustomerDetail)
def get_customer(
    customer_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    customer = session.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    # History is always a query, never stored on the customer
    history = session.exec(
        select(Appointment)
        .where(Appointment.customer_id == customer_id)
        .order_by(Appointment.start_time.desc())
    ).all()

    return {**customer.model_dump(), "appointment_history": history}


@router.put("/customers/{customer_id}", response_model=CustomerPublic)
def update_customer(
    customer_id: str,
    data: CustomerProfileUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    customer = session.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    apply_profile(session, customer, data)
    session.add(customer)
    session.commit()
    session.refresh(customer)
    logger.info(f"Customer {customer_id} updated by {identity.uid}")
    return customer
