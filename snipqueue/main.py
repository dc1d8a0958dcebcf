# snipqueue/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from snipqueue.config import LOG_LEVEL
from snipqueue.db import init_db
from snipqueue.errors import register_error_handlers
from snipqueue.routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    content_routes,
    customers_routes,
    optimizer_routes,
    schedules_routes,
    services_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(title="SnipQueue Booking API", lifespan=lifespan)
register_error_handlers(app)

app.include_router(auth_routes.router)
app.include_router(customers_routes.router)
app.include_router(services_routes.router)
app.include_router(barbers_routes.router)
app.include_router(schedules_routes.router)
app.include_router(appointments_routes.router)
app.include_router(content_routes.router)
app.include_router(optimizer_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
