# snipqueue/routers/content_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from snipqueue.auth import Identity, get_current_identity
from snipqueue.data import get_page_content, get_shop_hours, seed_catalog
from snipqueue.db import get_session
from snipqueue.deps import require_admin
from snipqueue.models import PageContent, ShopSettings
from snipqueue.schemas import PageContentIn, PageContentPublic, ShopHours, SeedResult

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["content"],
)


@router.get("/content/home", response_model=PageContentPublic)
def home_content(session: Session = Depends(get_session)):
    return get_page_content(session)


@router.put("/content/home", response_model=PageContentPublic)
def update_home_content(
    content: PageContentIn,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    db_content = session.get(PageContent, "home") or PageContent(id="home")
    for key, value in content.model_dump().items():
        setattr(db_content, key, value)

    session.add(db_content)
    session.commit()
    session.refresh(db_content)
    logger.info("Home page content updated")
    return db_content


@router.get("/settings/hours", response_model=ShopHours)
def shop_hours(session: Session = Depends(get_session)):
    hours = get_shop_hours(session)
    return {"start_time": hours.start_time, "end_time": hours.end_time}


@router.put("/settings/hours", response_model=ShopHours)
def update_shop_hours(
    hours: ShopHours,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)

    settings = session.get(ShopSettings, "hours") or ShopSettings(id="hours")
    settings.start_time = hours.start_time
    settings.end_time = hours.end_time

    session.add(settings)
    session.commit()
    logger.info(f"Shop hours set to {hours.start_time}-{hours.end_time}")
    return hours


@router.post("/admin/seed", response_model=SeedResult)
def seed(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    try:
        written = seed_catalog(session)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error seeding data: {e}")
        raise HTTPException(status_code=500, detail="Failed to seed data")
    return {"success": True, "written": written}
