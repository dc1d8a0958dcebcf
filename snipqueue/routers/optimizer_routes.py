# snipqueue/routers/optimizer_routes.py

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from snipqueue.auth import Identity, get_current_identity
from snipqueue.db import get_session
from snipqueue.deps import require_admin, get_now
from snipqueue.optimizer import (
    OptimizeQueueResponse, OptimizerError, QueueOptimizer,
    get_queue_optimizer, run_queue_optimizer,
)

router = APIRouter(
    prefix="/admin",
    tags=["optimizer"],
)


@router.post("/queue-optimizer", response_model=OptimizeQueueResponse, response_model_by_alias=True)
def queue_optimizer(
    session: Session = Depends(get_session),
    optimizer: QueueOptimizer = Depends(get_queue_optimizer),
    identity: Identity = Depends(get_current_identity),
    now: datetime = Depends(get_now),
):
    require_admin(identity)

    # Proposal only, appointments are left untouched
    try:
        return run_queue_optimizer(session, optimizer, now)
    except OptimizerError:
        raise HTTPException(status_code=502, detail="Failed to run the queue optimizer.")
