# snipqueue/deps.py

from datetime import datetime

import httpx

from .auth import Identity
from .errors import PermissionDenied


def require_admin(identity: Identity):
    if not identity.is_admin:
        raise PermissionDenied("Admin access required", uid=identity.uid)


def require_self_or_admin(identity: Identity, customer_id: str):
    if identity.uid != customer_id and not identity.is_admin:
        raise PermissionDenied("Forbidden", uid=identity.uid)


def get_now() -> datetime:
    # Shop-local wall clock
    return datetime.now()


def get_http_client():
    with httpx.Client(timeout=10.0) as client:
        yield client
