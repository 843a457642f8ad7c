# backend/api/publishing_api/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import bcrypt
from dotenv import load_dotenv

# backend/api/publishing_api/config.py -> parents[1] == backend/api
API_DIR = Path(__file__).resolve().parents[1]

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_CORS_ORIGINS = ("http://localhost:3000",)


def _load_env_once() -> None:
    """
    Loads .env from:
      1) ENV_PATH if provided
      2) backend/api/.env (project default)
      3) current working directory .env (fallback)
    """
    env_path = os.getenv("ENV_PATH")
    if env_path:
        p = Path(env_path)
        if p.exists():
            load_dotenv(p, override=False)
            return

    p2 = API_DIR / ".env"
    if p2.exists():
        load_dotenv(p2, override=False)
        return

    p3 = Path.cwd() / ".env"
    if p3.exists():
        load_dotenv(p3, override=False)


def _split_csv(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str
    secret_key: str
    admin_username: str
    admin_password_hash: str = field(repr=False)
    uploads_dir: Path
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"
    token_ttl_hours: int = 24


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _admin_password_hash() -> str:
    """
    ADMIN_PASSWORD_HASH wins. A plain ADMIN_PASSWORD is hashed once here so
    the login path only ever compares against a bcrypt hash.
    """
    hashed = os.getenv("ADMIN_PASSWORD_HASH")
    if hashed:
        return hashed

    plain = os.getenv("ADMIN_PASSWORD")
    if not plain:
        raise RuntimeError("ADMIN_PASSWORD_HASH (or ADMIN_PASSWORD) is not set.")
    return hash_password(plain)


def load_settings() -> Settings:
    _load_env_once()

    db_url = os.getenv("DATABASE_URL") or os.getenv("DB_URL")
    if not db_url:
        tried = [
            f"ENV_PATH={os.getenv('ENV_PATH')}",
            str(API_DIR / ".env"),
            str(Path.cwd() / ".env"),
        ]
        raise RuntimeError(
            "DATABASE_URL is not set. Ensure it exists in backend/api/.env or set ENV_PATH.\n"
            f"Tried: {', '.join(tried)}"
        )

    secret = os.getenv("APP_SUPER_SECRET_KEY")
    if not secret:
        raise RuntimeError("APP_SUPER_SECRET_KEY is not set.")

    admin_username = os.getenv("ADMIN_USERNAME")
    if not admin_username:
        raise RuntimeError("ADMIN_USERNAME is not set.")

    uploads_dir = Path(os.getenv("UPLOADS_DIR") or (API_DIR / "uploads"))

    return Settings(
        database_url=db_url,
        secret_key=secret,
        admin_username=admin_username,
        admin_password_hash=_admin_password_hash(),
        uploads_dir=uploads_dir,
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES") or DEFAULT_MAX_UPLOAD_BYTES),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()

