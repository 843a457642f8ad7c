from __future__ import annotations

from typing import Any, Dict, Iterable

import structlog
from sqlalchemy.engine import Engine

from . import repo
from .config import Settings
from .errors import Forbidden, NotFound, Unauthorized
from .models import (
    ROLE_ADMIN,
    ROLE_ANONYMOUS,
    ROLE_CREATOR,
    Actor,
    Administrator,
    AnonymousUser,
    Creator,
)
from .tokens import verify_token

logger = structlog.get_logger(__name__)

ADMIN_ID = "admin"


def creator_from_row(row: Dict[str, Any]) -> Creator:
    return Creator(
        id=int(row["id"]),
        username=row["username"],
        email=row["email"],
        phone_number=row["phone_number"],
        status=row["status"],
    )


def bearer_token(authorization: str | None) -> str | None:
    """
    Extract the token from an Authorization header value.

    IMPORTANT:
    - None (no header) means an anonymous caller, not an error.
    - Anything present but not "Bearer <token>" is Unauthorized.
    """
    if authorization is None:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("No token provided")
    return token.strip()


def resolve_actor(engine: Engine, settings: Settings, token: str | None) -> Actor:
    if token is None:
        return AnonymousUser()

    claims = verify_token(settings, token)
    role = claims.get("role")

    if role == ROLE_ADMIN:
        # administrators are never stored; the signed claims are the identity
        return Administrator(id=str(claims.get("id") or ADMIN_ID), username=str(claims.get("username") or ""))

    if role == ROLE_CREATOR:
        try:
            creator_id = int(claims["id"])
        except (KeyError, TypeError, ValueError):
            raise Unauthorized("Invalid token")
        try:
            creator = creator_from_row(repo.get_creator(engine, creator_id))
        except KeyError:
            raise NotFound("Creator not found")
        if not creator.is_active:
            logger.info("creator_token_rejected", creator_id=creator.id, creator_status=creator.status)
            raise Forbidden("Your account is not active")
        return creator

    raise Unauthorized("Invalid user role")


def require_role(actor: Actor, allowed: Iterable[str]) -> Actor:
    allowed_set = set(allowed)
    if actor.role in allowed_set:
        return actor
    if actor.role == ROLE_ANONYMOUS:
        raise Unauthorized("Authentication required")
    raise Forbidden("Access denied")
