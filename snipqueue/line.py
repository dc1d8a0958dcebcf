# snipqueue/line.py

import logging

import httpx

from .config import LINE_VERIFY_URL

logger = logging.getLogger(__name__)


class LineVerificationError(Exception):
    pass


def verify_line_token(client: httpx.Client, id_token: str, channel_id: str) -> dict:
    """Check a LIFF ID token with LINE and return the decoded profile.

    The profile carries ``sub`` (the LINE user id), ``name`` and ``picture``.
    """
    try:
        response = client.post(
            LINE_VERIFY_URL,
            data={"id_token": id_token, "client_id": channel_id},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.HTTPError as e:
        logger.error(f"LINE verification request failed: {e}")
        raise LineVerificationError("LINE verification request failed") from e

    if response.status_code != 200:
        logger.error(f"LINE rejected ID token: HTTP {response.status_code}")
        raise LineVerificationError(f"LINE rejected the ID token (HTTP {response.status_code})")

    try:
        profile = response.json()
    except ValueError as e:
        raise LineVerificationError("LINE returned an unreadable response") from e

    if not profile.get("sub"):
        raise LineVerificationError("LINE profile is missing the user id")
    return profile
