# snipqueue/auth.py

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

import firebase_admin
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from jose import jwt, JWTError
from sqlmodel import Session

from . import config
from .config import (
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES,
    FIREBASE_PROJECT_ID, SERVICE_ACCOUNT,
)
from .db import get_session
from .models import IdentityRecord

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class IdentityError(Exception):
    pass


class UserNotFound(IdentityError):
    pass


@dataclass
class IdentityUser:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    claims: dict = field(default_factory=dict)


@dataclass
class Identity:
    """The caller of the current request, resolved once per request."""
    uid: str
    email: Optional[str]
    is_admin: bool
    display_name: Optional[str] = None
    claims: dict = field(default_factory=dict)


def is_admin_identity(email: Optional[str], claims: dict) -> bool:
    if claims.get("admin") is True:
        return True
    return bool(email) and email.lower() in config.ADMIN_EMAILS


class IdentityProvider:
    """Boundary to the external auth service. Tokens are verified there, never here."""

    def verify_token(self, token: str) -> IdentityUser:
        raise NotImplementedError

    def get_user(self, uid: str) -> IdentityUser:
        raise NotImplementedError

    def get_or_create_user(self, uid: str, display_name: str = None, picture: str = None) -> IdentityUser:
        raise NotImplementedError

    def set_role_claim(self, uid: str, claims: dict) -> IdentityUser:
        raise NotImplementedError

    def create_custom_token(self, uid: str) -> str:
        raise NotImplementedError


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


class LocalIdentityProvider(IdentityProvider):
    """Identity records in our own database, HS256 tokens signed with SECRET_KEY."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _to_user(record: IdentityRecord) -> IdentityUser:
        return IdentityUser(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            claims=dict(record.claims or {}),
        )

    def verify_token(self, token: str) -> IdentityUser:
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError as e:
            raise IdentityError("Invalid token") from e
        uid = payload.get("sub")
        if uid is None:
            raise IdentityError("Invalid token")
        # Claims come from the record so a new claim applies to existing tokens
        return self.get_user(uid)

    def get_user(self, uid: str) -> IdentityUser:
        record = self.session.get(IdentityRecord, uid)
        if record is None:
            raise UserNotFound(f"User {uid} not found")
        return self._to_user(record)

    def create_user(self, uid: str, email: str = None, display_name: str = None, picture: str = None) -> IdentityUser:
        record = IdentityRecord(uid=uid, email=email, display_name=display_name, picture=picture, claims={})
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Created local identity {uid}")
        return self._to_user(record)

    def get_or_create_user(self, uid: str, display_name: str = None, picture: str = None) -> IdentityUser:
        try:
            return self.get_user(uid)
        except UserNotFound:
            return self.create_user(uid, display_name=display_name, picture=picture)

    def set_role_claim(self, uid: str, claims: dict) -> IdentityUser:
        record = self.session.get(IdentityRecord, uid)
        if record is None:
            raise UserNotFound(f"User {uid} not found")
        record.claims = dict(claims)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return self._to_user(record)

    def create_custom_token(self, uid: str) -> str:
        return create_access_token({"sub": uid})


class FirebaseIdentityProvider(IdentityProvider):
    """Firebase Authentication through the Admin SDK."""

    def __init__(self):
        try:
            self._app = firebase_admin.get_app()
        except ValueError:
            if SERVICE_ACCOUNT:
                try:
                    cred = credentials.Certificate(json.loads(SERVICE_ACCOUNT))
                except ValueError as e:
                    logger.error(f"Failed to parse SERVICE_ACCOUNT: {e}")
                    raise IdentityError("Invalid service account credentials") from e
            else:
                logger.info("Initializing Firebase Admin with default credentials")
                cred = credentials.ApplicationDefault()
            self._app = firebase_admin.initialize_app(cred, {"projectId": FIREBASE_PROJECT_ID})

    def _to_user(self, record) -> IdentityUser:
        return IdentityUser(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            claims=dict(record.custom_claims or {}),
        )

    def verify_token(self, token: str) -> IdentityUser:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._app)
        except (ValueError, firebase_auth.InvalidIdTokenError) as e:
            raise IdentityError("Invalid token") from e
        claims = {k: v for k, v in decoded.items() if k == "admin"}
        return IdentityUser(
            uid=decoded["uid"],
            email=decoded.get("email"),
            display_name=decoded.get("name"),
            claims=claims,
        )

    def get_user(self, uid: str) -> IdentityUser:
        try:
            return self._to_user(firebase_auth.get_user(uid, app=self._app))
        except firebase_auth.UserNotFoundError as e:
            raise UserNotFound(f"User {uid} not found") from e

    def get_or_create_user(self, uid: str, display_name: str = None, picture: str = None) -> IdentityUser:
        try:
            return self.get_user(uid)
        except UserNotFound:
            logger.info(f"Creating new Firebase user for UID: {uid}")
            record = firebase_auth.create_user(uid=uid, display_name=display_name, photo_url=picture, app=self._app)
            return self._to_user(record)

    def set_role_claim(self, uid: str, claims: dict) -> IdentityUser:
        try:
            firebase_auth.set_custom_user_claims(uid, claims, app=self._app)
        except firebase_auth.UserNotFoundError as e:
            raise UserNotFound(f"User {uid} not found") from e
        return self.get_user(uid)

    def create_custom_token(self, uid: str) -> str:
        token = firebase_auth.create_custom_token(uid, app=self._app)
        return token.decode() if isinstance(token, bytes) else token


_firebase_provider = None


def get_identity_provider(session: Session = Depends(get_session)) -> IdentityProvider:
    global _firebase_provider
    if config.IDENTITY_BACKEND == "firebase":
        if _firebase_provider is None:
            _firebase_provider = FirebaseIdentityProvider()
        return _firebase_provider
    return LocalIdentityProvider(session)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user = provider.verify_token(credentials.credentials)
    except IdentityError:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Identity(
        uid=user.uid,
        email=user.email,
        is_admin=is_admin_identity(user.email, user.claims),
        display_name=user.display_name,
        claims=user.claims,
    )
