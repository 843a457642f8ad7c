from __future__ import annotations

from .errors import BadRequest, Forbidden
from .models import ROLE_ADMIN, ROLE_CREATOR, Actor

STATUSES: list[str] = [
    "pending",
    "published",
    "rejected",
]

_INITIAL_STATUS: dict[str, str] = {
    ROLE_CREATOR: "pending",
    ROLE_ADMIN: "published",
}


def list_states() -> list[str]:
    return list(STATUSES)


def initial_status(created_by_role: str) -> str:
    try:
        return _INITIAL_STATUS[created_by_role]
    except KeyError:
        raise ValueError(f"Unknown creating role: {created_by_role}")


def allowed_transitions(from_status: str) -> list[str]:
    """
    Moderation is permissive: an administrator may move any status to any
    other, including to itself. There is no terminal status.
    """
    if from_status not in STATUSES:
        return []
    return list(STATUSES)


def validate_status(status: str | None) -> str:
    """
    Exact match only: "Published" or " published" is not a status.
    """
    if status not in STATUSES:
        raise BadRequest("Valid status (pending, published, rejected) is required")
    return status


def validate_transition(actor: Actor, from_status: str, to_status: str | None) -> str:
    if actor.role != ROLE_ADMIN:
        raise Forbidden("Access denied. Admin privileges required.")

    s_to = validate_status(to_status)
    if s_to not in allowed_transitions(from_status):
        raise BadRequest(f"Transition not allowed: {from_status} -> {s_to}")
    return s_to
