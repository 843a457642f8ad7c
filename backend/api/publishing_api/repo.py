from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Table, func, insert, or_, select, update
from sqlalchemy.engine import Connection, Engine

from .db import (
    audiobook_episodes,
    audiobooks,
    creators,
    graphic_novel_episodes,
    graphic_novels,
    utcnow,
)
from .models import ContentKind

_TABLES: Dict[str, tuple[Table, Table]] = {
    "graphic_novel": (graphic_novels, graphic_novel_episodes),
    "audiobook": (audiobooks, audiobook_episodes),
}

_CREATOR_PUBLIC_COLUMNS = (
    creators.c.id,
    creators.c.username,
    creators.c.email,
    creators.c.phone_number,
    creators.c.status,
    creators.c.profile_picture,
    creators.c.created_at,
    creators.c.updated_at,
)

_OWNER_SUMMARY_COLUMNS = (
    creators.c.id,
    creators.c.username,
    creators.c.email,
    creators.c.phone_number,
)


def tables_for(kind: ContentKind) -> tuple[Table, Table]:
    return _TABLES[kind.name]


# ----------------------------
# Creators
# ----------------------------

def create_creator(
    engine: Engine,
    username: str,
    email: str,
    phone_number: str,
    password_hash: str,
) -> Dict[str, Any]:
    now = utcnow()
    stmt = (
        insert(creators)
        .values(
            username=username,
            email=email,
            phone_number=phone_number,
            password_hash=password_hash,
            status="active",
            created_at=now,
            updated_at=now,
        )
        .returning(*_CREATOR_PUBLIC_COLUMNS)
    )
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().one()
    return dict(row)


def find_creator_by_email_or_username(engine: Engine, email: str, username: str) -> Optional[Dict[str, Any]]:
    stmt = select(*_CREATOR_PUBLIC_COLUMNS).where(
        or_(creators.c.email == email, creators.c.username == username)
    )
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def get_creator(engine: Engine, creator_id: int) -> Dict[str, Any]:
    """
    Raises KeyError when the creator does not exist.
    """
    stmt = select(*_CREATOR_PUBLIC_COLUMNS).where(creators.c.id == creator_id)
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    if row is None:
        raise KeyError(f"Creator {creator_id} not found")
    return dict(row)


def get_creator_credentials_by_phone(engine: Engine, phone_number: str) -> Optional[Dict[str, Any]]:
    stmt = select(*_CREATOR_PUBLIC_COLUMNS, creators.c.password_hash).where(
        creators.c.phone_number == phone_number
    )
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def list_creators(engine: Engine) -> List[Dict[str, Any]]:
    stmt = select(*_CREATOR_PUBLIC_COLUMNS).order_by(creators.c.created_at.desc(), creators.c.id.desc())
    with engine.begin() as conn:
        rows = conn.execute(stmt).mappings().all()
    return [dict(r) for r in rows]


def update_creator_status(engine: Engine, creator_id: int, status: str) -> Dict[str, Any]:
    stmt = (
        update(creators)
        .where(creators.c.id == creator_id)
        .values(status=status, updated_at=utcnow())
        .returning(*_CREATOR_PUBLIC_COLUMNS)
    )
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    if row is None:
        raise KeyError(f"Creator {creator_id} not found")
    return dict(row)


def _owner_summaries(conn: Connection, owner_ids: Iterable[Optional[int]]) -> Dict[int, Dict[str, Any]]:
    ids = sorted({i for i in owner_ids if i is not None})
    if not ids:
        return {}
    rows = conn.execute(select(*_OWNER_SUMMARY_COLUMNS).where(creators.c.id.in_(ids))).mappings().all()
    return {r["id"]: dict(r) for r in rows}


# ----------------------------
# Content items
# ----------------------------

def create_content(engine: Engine, kind: ContentKind, values: Dict[str, Any]) -> Dict[str, Any]:
    content, _ = tables_for(kind)
    now = utcnow()
    stmt = insert(content).values(**values, created_at=now, updated_at=now).returning(*content.c)
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().one()
    item = dict(row)
    item["episodes"] = []
    return item


def _attach_episodes(conn: Connection, kind: ContentKind, items: List[Dict[str, Any]]) -> None:
    _, episodes = tables_for(kind)
    ids = [item["id"] for item in items]
    by_parent: Dict[int, List[Dict[str, Any]]] = {i: [] for i in ids}
    if ids:
        rows = conn.execute(
            select(episodes)
            .where(episodes.c.content_id.in_(ids))
            .order_by(episodes.c.content_id, episodes.c.episode_number.asc())
        ).mappings().all()
        for r in rows:
            by_parent[r["content_id"]].append(dict(r))
    for item in items:
        item["episodes"] = by_parent[item["id"]]


def _attach_owners(conn: Connection, items: List[Dict[str, Any]]) -> None:
    owners = _owner_summaries(conn, (item["owner_id"] for item in items))
    for item in items:
        item["owner"] = owners.get(item["owner_id"])


def list_content(
    engine: Engine,
    kind: ContentKind,
    owner_id: Optional[int] = None,
    status: Optional[str] = None,
    with_owner: bool = False,
) -> List[Dict[str, Any]]:
    """
    Newest first; episodes eager-loaded ascending by episode_number.
    """
    content, _ = tables_for(kind)
    stmt = select(content)
    if owner_id is not None:
        stmt = stmt.where(content.c.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(content.c.status == status)
    stmt = stmt.order_by(content.c.created_at.desc(), content.c.id.desc())

    with engine.begin() as conn:
        items = [dict(r) for r in conn.execute(stmt).mappings().all()]
        _attach_episodes(conn, kind, items)
        if with_owner:
            _attach_owners(conn, items)

    return items


def get_content(
    engine: Engine,
    kind: ContentKind,
    content_id: int,
    owner_id: Optional[int] = None,
    status: Optional[str] = None,
    with_owner: bool = False,
) -> Dict[str, Any]:
    """
    Raises KeyError when no row matches. An owner or status mismatch is
    reported exactly like a missing row.
    """
    content, _ = tables_for(kind)
    stmt = select(content).where(content.c.id == content_id)
    if owner_id is not None:
        stmt = stmt.where(content.c.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(content.c.status == status)

    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
        if row is None:
            raise KeyError(f"{kind.label} {content_id} not found")
        items = [dict(row)]
        _attach_episodes(conn, kind, items)
        if with_owner:
            _attach_owners(conn, items)

    return items[0]


def update_content_status(engine: Engine, kind: ContentKind, content_id: int, to_status: str) -> Dict[str, Any]:
    content, _ = tables_for(kind)
    sql_get = select(content.c.status).where(content.c.id == content_id)
    sql_update = (
        update(content)
        .where(content.c.id == content_id)
        .values(status=to_status, updated_at=utcnow())
    )

    with engine.begin() as conn:
        cur = conn.execute(sql_get).mappings().first()
        if cur is None:
            raise KeyError(f"{kind.label} {content_id} not found")
        conn.execute(sql_update)
        row = conn.execute(select(content).where(content.c.id == content_id)).mappings().one()
        items = [dict(row)]
        _attach_episodes(conn, kind, items)

    item = items[0]
    item["from_status"] = cur["status"]
    return item


# ----------------------------
# Episodes
# ----------------------------

def lock_parent(conn: Connection, kind: ContentKind, content_id: int, owner_id: Optional[int] = None) -> bool:
    """
    Locks the parent row for the rest of the transaction (FOR UPDATE; a
    no-op on SQLite). Returns False when no matching parent exists.
    """
    content, _ = tables_for(kind)
    stmt = select(content.c.id).where(content.c.id == content_id)
    if owner_id is not None:
        stmt = stmt.where(content.c.owner_id == owner_id)
    return conn.execute(stmt.with_for_update()).first() is not None


def next_episode_number(conn: Connection, kind: ContentKind, content_id: int) -> int:
    _, episodes = tables_for(kind)
    count = conn.execute(
        select(func.count()).select_from(episodes).where(episodes.c.content_id == content_id)
    ).scalar_one()
    return int(count) + 1


def insert_episode(conn: Connection, kind: ContentKind, values: Dict[str, Any]) -> Dict[str, Any]:
    _, episodes = tables_for(kind)
    now = utcnow()
    stmt = insert(episodes).values(**values, created_at=now, updated_at=now).returning(*episodes.c)
    return dict(conn.execute(stmt).mappings().one())


def get_episode(engine: Engine, kind: ContentKind, content_id: int, episode_id: int) -> Dict[str, Any]:
    _, episodes = tables_for(kind)
    stmt = select(episodes).where(
        episodes.c.id == episode_id,
        episodes.c.content_id == content_id,
    )
    with engine.begin() as conn:
        row = conn.execute(stmt).mappings().first()
    if row is None:
        raise KeyError(f"Episode {episode_id} not found for {kind.label.lower()} {content_id}")
    return dict(row)
