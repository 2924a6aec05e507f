"""
Google ID token helpers.

The credential handed over by Google Identity Services is a JWT. Only the
payload is read; the signature is not verified.
"""

import base64
import json
from typing import Optional

from loguru import logger


def decode_jwt_payload(token: str) -> Optional[dict]:
    """Return the decoded payload segment of a JWT, or None if malformed."""
    if not token or not isinstance(token, str):
        return None
    parts = token.split(".")
    if len(parts) < 2:
        return None
    segment = parts[1]
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
        data = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Error decoding JWT: {e}")
        return None
    return data if isinstance(data, dict) else None


def identity_from_payload(payload: Optional[dict], client_id: str = "") -> Optional[dict]:
    """Map Google claims onto the fields a user record is keyed by."""
    if not payload or not payload.get("sub"):
        return None
    audience = payload.get("aud")
    if isinstance(audience, str):
        audience = [audience]
    if client_id and client_id not in (audience or []):
        logger.warning(f"Rejected token issued for audience {payload.get('aud')}")
        return None
    return {
        "google_id": str(payload["sub"]),
        "name": payload.get("name") or payload.get("email") or "",
        "email": payload.get("email") or "",
        "picture": payload.get("picture"),
    }
