"""Asset placement: where uploaded files land in the uploads tree.

Layout under the uploads root:

    <kind-root>/icons/<prefix>-icon-<millis><ext>
    <kind-root>/<content_id>/<episode_number>/<asset>-<millis><ext>

Names are unique per millisecond only; two uploads to the same scope in the
same millisecond overwrite each other.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .models import ContentKind
from .storage import LocalBlobStore

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_EXT_RE = re.compile(r"[^A-Za-z0-9]")
_MAX_EXT_LEN = 16


@dataclass(frozen=True)
class Upload:
    filename: str
    data: bytes


def now_millis() -> int:
    return int(time.time() * 1000)


def _segment(value: object) -> str:
    s = str(value)
    if not _SEGMENT_RE.match(s):
        raise ValueError(f"Unsafe path segment: {s!r}")
    return s


def file_extension(filename: Optional[str]) -> str:
    """
    ".png" for "cover.PNG.png"; "" when there is none. Only alphanumerics
    survive, so the extension can never carry a separator.
    """
    if not filename:
        return ""
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in base.lstrip("."):
        return ""
    ext = _EXT_RE.sub("", base.rsplit(".", 1)[1])[:_MAX_EXT_LEN]
    return f".{ext}" if ext else ""


def icon_dir(kind: ContentKind) -> str:
    return f"{_segment(kind.root)}/icons"


def icon_path(kind: ContentKind, filename: Optional[str], millis: int) -> str:
    name = f"{_segment(kind.icon_prefix)}-icon-{int(millis)}{file_extension(filename)}"
    return f"{icon_dir(kind)}/{name}"


def episode_dir(kind: ContentKind, content_id: int, episode_number: int) -> str:
    if int(episode_number) < 1:
        raise ValueError(f"episode_number must be positive, got {episode_number}")
    return f"{_segment(kind.root)}/{_segment(int(content_id))}/{_segment(int(episode_number))}"


def episode_asset_path(
    kind: ContentKind,
    content_id: int,
    episode_number: int,
    asset_prefix: str,
    filename: Optional[str],
    millis: int,
) -> str:
    name = f"{_segment(asset_prefix)}-{int(millis)}{file_extension(filename)}"
    return f"{episode_dir(kind, content_id, episode_number)}/{name}"


class AssetPlacer:
    """Derives paths and writes uploads through the blob store."""

    def __init__(self, store: LocalBlobStore, clock: Callable[[], int] = now_millis) -> None:
        self.store = store
        self.clock = clock

    def place_icon(self, kind: ContentKind, upload: Upload) -> str:
        self.store.ensure_directory(icon_dir(kind))
        return self.store.write_file(icon_path(kind, upload.filename, self.clock()), upload.data)

    def prepare_episode(self, kind: ContentKind, content_id: int, episode_number: int) -> None:
        self.store.ensure_directory(episode_dir(kind, content_id, episode_number))

    def place_episode_asset(
        self,
        kind: ContentKind,
        content_id: int,
        episode_number: int,
        asset_prefix: str,
        upload: Upload,
    ) -> str:
        path = episode_asset_path(kind, content_id, episode_number, asset_prefix, upload.filename, self.clock())
        return self.store.write_file(path, upload.data)
