from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

ROLE_ADMIN = "admin"
ROLE_CREATOR = "creator"
ROLE_ANONYMOUS = "anonymous"

CREATOR_STATUSES: tuple[str, ...] = ("active", "inactive", "suspended")


# ----------------------------
# Actors
# ----------------------------

@dataclass(frozen=True)
class AnonymousUser:
    role: str = ROLE_ANONYMOUS


@dataclass(frozen=True)
class Creator:
    id: int
    username: str
    email: str
    phone_number: str
    status: str
    role: str = ROLE_CREATOR

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class Administrator:
    id: str
    username: str
    role: str = ROLE_ADMIN


Actor = Union[AnonymousUser, Creator, Administrator]


# ----------------------------
# Content kinds
# ----------------------------

@dataclass(frozen=True)
class EpisodeAsset:
    """An uploadable file on an episode: form field -> column, file-name prefix."""
    field: str
    column: str
    prefix: str


@dataclass(frozen=True)
class ContentKind:
    name: str
    label: str
    # directory under the uploads root, e.g. "graphic-novels"
    root: str
    # icon file name prefix, e.g. "novel" -> novel-icon-<millis>.png
    icon_prefix: str
    episode_assets: tuple[EpisodeAsset, ...]
    has_type: bool = False
    # plain (non-file) episode column, e.g. the audiobook's external video url
    episode_link_column: Optional[str] = None


GRAPHIC_NOVEL = ContentKind(
    name="graphic_novel",
    label="Graphic novel",
    root="graphic-novels",
    icon_prefix="novel",
    episode_assets=(
        EpisodeAsset(field="icon", column="icon_path", prefix="icon"),
        EpisodeAsset(field="pdf", column="pdf_path", prefix="pdf"),
    ),
    has_type=True,
)

AUDIOBOOK = ContentKind(
    name="audiobook",
    label="Audiobook",
    root="audiobooks",
    icon_prefix="book",
    episode_assets=(
        EpisodeAsset(field="icon", column="icon_path", prefix="icon"),
    ),
    episode_link_column="youtube_url",
)
