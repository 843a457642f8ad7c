"""Baseline: creators, graphic novels, audiobooks and their episodes

- creators (unique username/email, status active|inactive|suspended)
- graphic_novels / audiobooks (owner_id null for admin-created rows)
- graphic_novel_episodes / audiobook_episodes, unique (content_id, episode_number)
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20261019_0001_content_baseline"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _content_table(name: str, *extra: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(400), nullable=False),
        *extra,
        sa.Column("icon", sa.String(512), nullable=True),
        sa.Column("owner_id", sa.Integer, sa.ForeignKey("creators.id", name=f"fk_{name}_owner_id_creators"), nullable=True),
        sa.Column("created_by_role", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        *_timestamps(),
    )
    op.create_index(f"ix_{name}_owner_id", name, ["owner_id"])
    op.create_index(f"ix_{name}_status", name, ["status"])


def _episode_table(name: str, parent: str, *extra: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "content_id",
            sa.Integer,
            sa.ForeignKey(f"{parent}.id", name=f"fk_{name}_content_id_{parent}", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("episode_number", sa.Integer, nullable=False),
        sa.Column("icon_path", sa.String(512), nullable=True),
        *extra,
        *_timestamps(),
        sa.UniqueConstraint("content_id", "episode_number", name=f"uq_{name}_content_id_episode_number"),
    )
    op.create_index(f"ix_{name}_content_id", name, ["content_id"])


def upgrade() -> None:
    op.create_table(
        "creators",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone_number", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("profile_picture", sa.String(512), nullable=True),
        *_timestamps(),
    )

    _content_table("graphic_novels", sa.Column("type", sa.String(100), nullable=True))
    _episode_table("graphic_novel_episodes", "graphic_novels", sa.Column("pdf_path", sa.String(512), nullable=True))

    _content_table("audiobooks")
    _episode_table("audiobook_episodes", "audiobooks", sa.Column("youtube_url", sa.String(1024), nullable=True))


def downgrade() -> None:
    op.drop_table("audiobook_episodes")
    op.drop_table("audiobooks")
    op.drop_table("graphic_novel_episodes")
    op.drop_table("graphic_novels")
    op.drop_table("creators")
