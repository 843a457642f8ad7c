from __future__ import annotations

import time
from typing import Any, Dict

import jwt

from .config import Settings
from .errors import Unauthorized

ALGORITHM = "HS256"


def issue_token(settings: Settings, claims: Dict[str, Any], now: float | None = None) -> str:
    """
    Sign `claims` (id, role, username) with a fixed validity window
    (settings.token_ttl_hours from issuance).
    """
    iat = int(now if now is not None else time.time())
    payload = dict(claims)
    payload["iat"] = iat
    payload["exp"] = iat + settings.token_ttl_hours * 3600
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(settings: Settings, token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.PyJWTError:
        raise Unauthorized("Invalid token")
