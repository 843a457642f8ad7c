from __future__ import annotations

from pathlib import Path, PurePosixPath

import structlog

from .errors import BadRequest

logger = structlog.get_logger(__name__)

URL_PREFIX = "/uploads"


class LocalBlobStore:
    """
    Uploaded assets on the local filesystem, under one root directory.

    Paths handed in are relative POSIX paths ("audiobooks/3/1/icon-1.png").
    write_file() returns the root-relative reference served statically
    under /uploads. Asset bytes are never read back.
    """

    def __init__(self, root: Path, max_bytes: int) -> None:
        self.root = Path(root).resolve()
        self.max_bytes = max_bytes

    def resolve(self, relative: str) -> Path:
        rel = PurePosixPath(relative)
        if rel.is_absolute() or any(part in ("", ".", "..") for part in rel.parts):
            raise ValueError(f"Unsafe storage path: {relative!r}")
        target = (self.root / Path(*rel.parts)).resolve()
        if target != self.root and self.root not in target.parents:
            raise ValueError(f"Storage path escapes uploads root: {relative!r}")
        return target

    def ensure_directory(self, relative: str) -> Path:
        path = self.resolve(relative)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def write_file(self, relative: str, data: bytes) -> str:
        if len(data) > self.max_bytes:
            raise BadRequest("File size limit has been reached")

        target = self.resolve(relative)
        # write-then-rename: a partially written file never sits at the final path
        tmp = target.with_name(f".{target.name}.part")
        tmp.write_bytes(data)
        tmp.replace(target)

        logger.info("upload_stored", path=relative, size_bytes=len(data))
        return self.reference(relative)

    @staticmethod
    def reference(relative: str) -> str:
        return f"{URL_PREFIX}/{PurePosixPath(relative).as_posix()}"
