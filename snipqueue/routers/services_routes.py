# snipqueue/routers/services_routes.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from snipqueue.auth import Identity, get_current_identity
from snipqueue.data import image_hint
from snipqueue.db import get_session
from snipqueue.deps import require_admin
from snipqueue.models import Service
from snipqueue.schemas import ServiceIn, ServicePublic

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


def save_service(session: Session, service_id, service: ServiceIn) -> Service:
    db_service = session.get(Service, service_id) if service_id else None
    if db_service is None:
        db_service = Service(duration=service.duration, name=service.name)
        if service_id:
            db_service.id = service_id

    db_service.name = service.name
    db_service.description = service.description
    db_service.price = service.price
    # Booked appointments keep their own copy of name and end time
    db_service.duration = service.duration
    db_service.image_url = service.image_url
    db_service.image_hint = image_hint(service.name, "hair service")

    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(select(Service).order_by(Service.name)).all()


@router.get("/{service_id}", response_model=ServicePublic)
def get_service(service_id: str, session: Session = Depends(get_session)):
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceIn,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    if service.id and session.get(Service, service.id) is not None:
        raise HTTPException(status_code=409, detail="Service already exists")

    db_service = save_service(session, service.id, service)
    logger.info(f"Created service {db_service.id}")
    return db_service


@router.put("/{service_id}", response_model=ServicePublic)
def create_or_update_service(
    service_id: str,
    service: ServiceIn,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    db_service = save_service(session, service_id, service)
    logger.info(f"Saved service {db_service.id}")
    return db_service


@router.delete("/{service_id}", status_code=204)
def delete_service(
    service_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    session.delete(service)
    session.commit()
    logger.info(f"Deleted service {service_id}")
