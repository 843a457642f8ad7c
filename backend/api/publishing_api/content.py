from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from . import repo
from .assets import AssetPlacer, Upload
from .errors import BadRequest, Conflict, NotFound
from .identity import require_role
from .models import (
    AUDIOBOOK,
    GRAPHIC_NOVEL,
    ROLE_ADMIN,
    ROLE_CREATOR,
    Actor,
    ContentKind,
)
from .workflow import initial_status, validate_transition

logger = structlog.get_logger(__name__)

PUBLISHED = "published"


def _owner_scope(actor: Actor) -> Optional[int]:
    """Creators only ever see their own items; administrators see everything."""
    return actor.id if actor.role == ROLE_CREATOR else None


def _not_found(kind: ContentKind, scoped: bool) -> NotFound:
    if scoped:
        return NotFound(f"{kind.label} not found or you don't have permission")
    return NotFound(f"{kind.label} not found")


# ----------------------------
# Content items
# ----------------------------

def create_content(
    engine: Engine,
    placer: AssetPlacer,
    actor: Actor,
    kind: ContentKind,
    title: Optional[str],
    type_: Optional[str] = None,
    icon: Optional[Upload] = None,
) -> Dict[str, Any]:
    require_role(actor, {ROLE_CREATOR, ROLE_ADMIN})

    title = (title or "").strip()
    if not title:
        raise BadRequest("Title is required")

    icon_ref = placer.place_icon(kind, icon) if icon is not None else None

    values: Dict[str, Any] = {
        "title": title,
        "icon": icon_ref,
        "owner_id": actor.id if actor.role == ROLE_CREATOR else None,
        "created_by_role": actor.role,
        "status": initial_status(actor.role),
    }
    if kind.has_type:
        values["type"] = (type_ or "").strip() or None

    item = repo.create_content(engine, kind, values)
    logger.info(
        "content_created",
        kind=kind.name,
        content_id=item["id"],
        actor_role=actor.role,
        status=item["status"],
    )
    return item


def list_owned_content(engine: Engine, actor: Actor, kind: ContentKind) -> List[Dict[str, Any]]:
    require_role(actor, {ROLE_CREATOR})
    return repo.list_content(engine, kind, owner_id=actor.id)


def get_owned_content_detail(engine: Engine, actor: Actor, kind: ContentKind, content_id: int) -> Dict[str, Any]:
    require_role(actor, {ROLE_CREATOR})
    try:
        return repo.get_content(engine, kind, content_id, owner_id=actor.id)
    except KeyError:
        raise _not_found(kind, scoped=True)


def list_all_content(engine: Engine, actor: Actor, kind: ContentKind) -> List[Dict[str, Any]]:
    require_role(actor, {ROLE_ADMIN})
    return repo.list_content(engine, kind, with_owner=True)


def get_content_detail(engine: Engine, actor: Actor, kind: ContentKind, content_id: int) -> Dict[str, Any]:
    require_role(actor, {ROLE_ADMIN})
    try:
        return repo.get_content(engine, kind, content_id, with_owner=True)
    except KeyError:
        raise _not_found(kind, scoped=False)


def set_status(
    engine: Engine,
    actor: Actor,
    kind: ContentKind,
    content_id: int,
    new_status: Optional[str],
) -> Dict[str, Any]:
    require_role(actor, {ROLE_ADMIN})
    try:
        current = repo.get_content(engine, kind, content_id)
    except KeyError:
        raise _not_found(kind, scoped=False)

    to_status = validate_transition(actor, current["status"], new_status)

    try:
        updated = repo.update_content_status(engine, kind, content_id, to_status)
    except KeyError:
        raise _not_found(kind, scoped=False)

    logger.info(
        "content_status_changed",
        kind=kind.name,
        content_id=content_id,
        from_status=updated.pop("from_status"),
        to_status=to_status,
    )
    return updated


def list_published(engine: Engine, kind: ContentKind) -> List[Dict[str, Any]]:
    return repo.list_content(engine, kind, status=PUBLISHED)


def list_published_content(engine: Engine) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "graphic_novels": list_published(engine, GRAPHIC_NOVEL),
        "audiobooks": list_published(engine, AUDIOBOOK),
    }


def get_published_by_id(engine: Engine, kind: ContentKind, content_id: int) -> Dict[str, Any]:
    """
    Public single-item lookup. Only published items are visible, matching
    list_published(); anything else reads as absent.
    """
    try:
        return repo.get_content(engine, kind, content_id, status=PUBLISHED)
    except KeyError:
        raise _not_found(kind, scoped=False)


# ----------------------------
# Episodes
# ----------------------------

def add_episode(
    engine: Engine,
    placer: AssetPlacer,
    actor: Actor,
    kind: ContentKind,
    content_id: int,
    uploads: Mapping[str, Optional[Upload]],
    link: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Numbering, file writes and the row insert share one transaction with the
    parent row locked, so concurrent calls on one parent are serialized.
    Files are written before the insert; a failed write aborts the insert.
    Directories created along the way are left behind.
    """
    require_role(actor, {ROLE_CREATOR, ROLE_ADMIN})
    owner_id = _owner_scope(actor)

    try:
        with engine.begin() as conn:
            if not repo.lock_parent(conn, kind, content_id, owner_id=owner_id):
                raise _not_found(kind, scoped=owner_id is not None)

            episode_number = repo.next_episode_number(conn, kind, content_id)
            placer.prepare_episode(kind, content_id, episode_number)

            values: Dict[str, Any] = {
                "content_id": content_id,
                "episode_number": episode_number,
            }
            for asset in kind.episode_assets:
                upload = uploads.get(asset.field)
                values[asset.column] = (
                    placer.place_episode_asset(kind, content_id, episode_number, asset.prefix, upload)
                    if upload is not None
                    else None
                )
            if kind.episode_link_column:
                values[kind.episode_link_column] = (link or "").strip() or None

            episode = repo.insert_episode(conn, kind, values)
    except IntegrityError:
        # only reachable where the backend cannot lock the parent row
        raise Conflict("Episode number already taken, please retry")

    logger.info(
        "episode_added",
        kind=kind.name,
        content_id=content_id,
        episode_number=episode["episode_number"],
        actor_role=actor.role,
    )
    return episode


def get_episode(engine: Engine, kind: ContentKind, content_id: int, episode_id: int) -> Dict[str, Any]:
    try:
        return repo.get_episode(engine, kind, content_id, episode_id)
    except KeyError:
        raise NotFound(f"Episode not found for the given {kind.label.lower()}")
