# snipqueue/routers/auth_routes.py

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException

from snipqueue import config
from snipqueue.auth import (
    Identity, IdentityError, IdentityProvider, UserNotFound,
    get_current_identity, get_identity_provider,
)
from snipqueue.deps import require_admin, get_http_client
from snipqueue.line import LineVerificationError, verify_line_token
from snipqueue.schemas import (
    UidRequest, AdminClaimResponse, CheckAdminResponse, LineLoginRequest, LineLoginResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["auth"],
)


@router.post("/admin/set-admin-claim", response_model=AdminClaimResponse)
def set_admin_claim(
    body: UidRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    identity: Identity = Depends(get_current_identity),
):
    require_admin(identity)
    if not body.uid:
        raise HTTPException(status_code=400, detail="User UID is required.")

    try:
        current = provider.get_user(body.uid)
        user = provider.set_role_claim(body.uid, {**current.claims, "admin": True})
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except IdentityError as e:
        logger.error(f"Failed to set admin claim for {body.uid}: {e}")
        raise HTTPException(status_code=500, detail="Failed to set admin claim")

    logger.info(f"User {body.uid} is now an admin (set by {identity.uid})")
    return {"admin": user.claims.get("admin") is True, "uid": user.uid, "email": user.email}


@router.post("/auth/check-and-set-admin", response_model=CheckAdminResponse)
def check_and_set_admin(
    body: UidRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    if not body.uid:
        raise HTTPException(status_code=400, detail="User UID is required.")

    try:
        user = provider.get_user(body.uid)
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")

    is_admin = user.claims.get("admin") is True
    allowlisted = bool(user.email) and user.email.lower() in config.ADMIN_EMAILS

    # Allowlist wins; the claim is persisted so later tokens carry it
    if allowlisted and not is_admin:
        try:
            user = provider.set_role_claim(user.uid, {**user.claims, "admin": True})
        except IdentityError as e:
            logger.error(f"Failed to persist admin claim for {user.uid}: {e}")
            raise HTTPException(status_code=500, detail="Failed to check admin status")
        is_admin = True
        logger.info(f"Persisted admin claim for allowlisted user {user.email}")

    logger.info(f"User {user.email} ({user.uid}) admin status: {is_admin}")
    # Unauthenticated endpoint, so nothing about the user is echoed back
    return {"isAdmin": is_admin or allowlisted}


@router.post("/auth/line", response_model=LineLoginResponse)
def line_login(
    body: LineLoginRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    client: httpx.Client = Depends(get_http_client),
):
    if not config.LINE_CHANNEL_ID:
        logger.error("LINE_CHANNEL_ID is not set")
        raise HTTPException(status_code=500, detail="Server configuration error: LINE_CHANNEL_ID is not set.")
    if not body.id_token:
        raise HTTPException(status_code=400, detail="ID token is required.")

    # 1) Verify ID token with LINE
    try:
        profile = verify_line_token(client, body.id_token, config.LINE_CHANNEL_ID)
    except LineVerificationError as e:
        raise HTTPException(status_code=401, detail=f"Unauthorized: {e}")

    # 2) Local identity keyed by the LINE user id, then a session token for it
    try:
        user = provider.get_or_create_user(
            profile["sub"],
            display_name=profile.get("name"),
            picture=profile.get("picture"),
        )
        token = provider.create_custom_token(user.uid)
    except IdentityError as e:
        logger.error(f"Error creating custom token: {e}")
        raise HTTPException(status_code=401, detail=f"Unauthorized: {e}")

    return {"firebaseToken": token}
