# backend/api/publishing_api/db.py
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Depends
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine

from .config import Settings, get_settings

# Deterministic constraint/index names (prevents Alembic churn)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamps() -> list[Column]:
    return [
        Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
        Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    ]


creators = Table(
    "creators",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone_number", String(64), nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("status", String(16), nullable=False, server_default="active"),
    Column("profile_picture", String(512), nullable=True),
    *_timestamps(),
)


def _content_table(name: str, *extra: Column) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("title", String(400), nullable=False),
        *extra,
        Column("icon", String(512), nullable=True),
        # null when the item was created by an administrator
        Column("owner_id", Integer, ForeignKey("creators.id"), nullable=True, index=True),
        Column("created_by_role", String(16), nullable=False),
        Column("status", String(16), nullable=False, index=True),
        *_timestamps(),
    )


def _episode_table(name: str, parent: str, *extra: Column) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column(
            "content_id",
            Integer,
            ForeignKey(f"{parent}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        Column("episode_number", Integer, nullable=False),
        Column("icon_path", String(512), nullable=True),
        *extra,
        *_timestamps(),
        UniqueConstraint("content_id", "episode_number", name=f"uq_{name}_content_id_episode_number"),
    )


graphic_novels = _content_table(
    "graphic_novels",
    Column("type", String(100), nullable=True),
)
graphic_novel_episodes = _episode_table(
    "graphic_novel_episodes",
    "graphic_novels",
    Column("pdf_path", String(512), nullable=True),
)

audiobooks = _content_table("audiobooks")
audiobook_episodes = _episode_table(
    "audiobook_episodes",
    "audiobooks",
    Column("youtube_url", String(1024), nullable=True),
)


def make_engine(db_url: str) -> Engine:
    connect_args: dict[str, object] = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(db_url, pool_pre_ping=True, future=True, connect_args=connect_args)


_engines: dict[str, Engine] = {}


def engine_for(db_url: str) -> Engine:
    """One engine (and pool) per database URL for the life of the process."""
    engine = _engines.get(db_url)
    if engine is None:
        engine = _engines[db_url] = make_engine(db_url)
    return engine


def get_engine(settings: Settings = Depends(get_settings)) -> Engine:
    return engine_for(settings.database_url)


def db_ping(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
