"""
Test fixtures for the publishing API.

Every test gets its own SQLite file database (schema from db.metadata) and
its own uploads root under tmp_path.
"""

from __future__ import annotations

from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient

from publishing_api import repo
from publishing_api.assets import AssetPlacer
from publishing_api.config import Settings, hash_password
from publishing_api.db import get_engine, make_engine, metadata
from publishing_api.identity import ADMIN_ID, creator_from_row
from publishing_api.main import create_app
from publishing_api.models import Administrator, Creator
from publishing_api.routes import get_placer
from publishing_api.storage import LocalBlobStore
from publishing_api.tokens import issue_token

ADMIN_USERNAME = "AhamCore"
ADMIN_PASSWORD = "Admin@123"
CREATOR_PASSWORD = "s3cret-pass"


class TickingClock:
    """Millisecond clock that advances by one on every read."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.value = start

    def __call__(self) -> int:
        self.value += 1
        return self.value


@pytest.fixture(scope="session")
def admin_password_hash() -> str:
    return hash_password(ADMIN_PASSWORD)


@pytest.fixture(scope="session")
def creator_password_hash() -> str:
    return hash_password(CREATOR_PASSWORD)


@pytest.fixture
def settings(tmp_path, admin_password_hash) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        secret_key="test-secret-key",
        admin_username=ADMIN_USERNAME,
        admin_password_hash=admin_password_hash,
        uploads_dir=tmp_path / "uploads",
        max_upload_bytes=1024,
        log_level="WARNING",
    )


@pytest.fixture
def engine(settings):
    engine = make_engine(settings.database_url)
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(settings) -> LocalBlobStore:
    return LocalBlobStore(settings.uploads_dir, settings.max_upload_bytes)


@pytest.fixture
def placer(store) -> AssetPlacer:
    return AssetPlacer(store, clock=TickingClock())


@pytest.fixture
def client(settings, engine, placer):
    app = create_app(settings)
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_placer] = lambda: placer
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_creator(engine, creator_password_hash) -> Callable[..., Creator]:
    counter = {"n": 0}

    def _make(username: str | None = None, status: str = "active") -> Creator:
        counter["n"] += 1
        name = username or f"creator{counter['n']}"
        row = repo.create_creator(
            engine,
            username=name,
            email=f"{name}@example.com",
            phone_number=f"900000{counter['n']:04d}",
            password_hash=creator_password_hash,
        )
        if status != "active":
            row = repo.update_creator_status(engine, row["id"], status)
        return creator_from_row(row)

    return _make


@pytest.fixture
def admin() -> Administrator:
    return Administrator(id=ADMIN_ID, username=ADMIN_USERNAME)


@pytest.fixture
def admin_headers(settings) -> Dict[str, str]:
    token = issue_token(settings, {"id": ADMIN_ID, "username": ADMIN_USERNAME, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(settings) -> Callable[[Creator], Dict[str, str]]:
    def _headers(creator: Creator) -> Dict[str, str]:
        token = issue_token(settings, {"id": creator.id, "username": creator.username, "role": "creator"})
        return {"Authorization": f"Bearer {token}"}

    return _headers
