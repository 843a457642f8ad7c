"""Creator accounts and administrator login.

Creators are stored rows with bcrypt password hashes. The administrator is a
single configured credential pair; its password is only ever compared
against a bcrypt hash.
"""

from __future__ import annotations

import hmac
from typing import Any, Dict, Optional

import bcrypt
import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from . import repo
from .config import Settings, hash_password
from .errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from .identity import ADMIN_ID
from .models import CREATOR_STATUSES, ROLE_ADMIN, ROLE_CREATOR
from .tokens import issue_token

logger = structlog.get_logger(__name__)


def _check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def _creator_token(settings: Settings, creator: Dict[str, Any]) -> str:
    return issue_token(
        settings,
        {"id": creator["id"], "username": creator["username"], "role": ROLE_CREATOR},
    )


def register_creator(
    engine: Engine,
    settings: Settings,
    username: Optional[str],
    email: Optional[str],
    phone_number: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
) -> Dict[str, Any]:
    if not all([username, email, phone_number, password, confirm_password]):
        raise BadRequest("All fields are required")

    if password != confirm_password:
        raise BadRequest("Passwords do not match")

    existing = repo.find_creator_by_email_or_username(engine, email, username)
    if existing:
        if existing["email"] == email:
            raise Conflict("Creator with this email already exists")
        raise Conflict("Creator with this username already exists")

    try:
        creator = repo.create_creator(
            engine,
            username=username,
            email=email,
            phone_number=phone_number,
            password_hash=hash_password(password),
        )
    except IntegrityError:
        # lost a race against a concurrent registration
        raise Conflict("Creator with this email or username already exists")

    logger.info("creator_registered", creator_id=creator["id"])
    return {"creator": creator, "token": _creator_token(settings, creator)}


def login_creator(
    engine: Engine,
    settings: Settings,
    phone_number: Optional[str],
    password: Optional[str],
) -> Dict[str, Any]:
    if not phone_number or not password:
        raise BadRequest("Mobile number and password are required")

    row = repo.get_creator_credentials_by_phone(engine, phone_number)
    if row is None or not _check_password(password, row.pop("password_hash")):
        raise Unauthorized("Invalid mobile number or password")

    if row["status"] != "active":
        raise Forbidden("Your account is not active. Please contact administrator.")

    return {"creator": row, "token": _creator_token(settings, row)}


def login_admin(settings: Settings, username: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    if not username or not password:
        raise BadRequest("Username and password are required")

    username_ok = hmac.compare_digest(username.encode("utf-8"), settings.admin_username.encode("utf-8"))
    # always run the hash check so timing does not reveal which half matched
    password_ok = _check_password(password, settings.admin_password_hash)
    if not (username_ok and password_ok):
        logger.warning("admin_login_failed")
        raise Unauthorized("Invalid username or password")

    token = issue_token(
        settings,
        {"id": ADMIN_ID, "username": settings.admin_username, "role": ROLE_ADMIN},
    )
    return {"admin": {"username": settings.admin_username, "role": ROLE_ADMIN}, "token": token}


def list_creators(engine: Engine) -> list[Dict[str, Any]]:
    return repo.list_creators(engine)


def set_creator_status(engine: Engine, creator_id: int, status: Optional[str]) -> Dict[str, Any]:
    if status not in CREATOR_STATUSES:
        raise BadRequest("Valid status (active, inactive, suspended) is required")
    try:
        creator = repo.update_creator_status(engine, creator_id, status)
    except KeyError:
        raise NotFound("Creator not found")
    logger.info("creator_status_changed", creator_id=creator_id, status=status)
    return creator
