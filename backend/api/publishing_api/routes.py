from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.engine import Engine

from . import accounts, content
from .assets import AssetPlacer, Upload
from .config import Settings, get_settings
from .db import get_engine
from .errors import NotFound
from .identity import bearer_token, require_role, resolve_actor
from .models import AUDIOBOOK, GRAPHIC_NOVEL, ROLE_ADMIN, ROLE_CREATOR, Actor, ContentKind
from .schemas import (
    AdminLoginIn,
    ContentOut,
    CreatorLoginIn,
    CreatorOut,
    CreatorRegisterIn,
    EpisodeOut,
    Envelope,
    StatusIn,
)
from .storage import LocalBlobStore

MSG_SAVE = "Saved successfully"
MSG_FETCH = "Fetched successfully"

# envelope data keys: (single item, list)
_DATA_KEYS: Dict[str, tuple[str, str]] = {
    GRAPHIC_NOVEL.name: ("graphicNovel", "graphicNovels"),
    AUDIOBOOK.name: ("audiobook", "audiobooks"),
}


# -----------------------------
# Dependencies
# -----------------------------
def get_blob_store(settings: Settings = Depends(get_settings)) -> LocalBlobStore:
    return LocalBlobStore(settings.uploads_dir, settings.max_upload_bytes)


def get_placer(store: LocalBlobStore = Depends(get_blob_store)) -> AssetPlacer:
    return AssetPlacer(store)


def current_actor(
    authorization: str | None = Header(default=None),
    engine: Engine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
) -> Actor:
    return resolve_actor(engine, settings, bearer_token(authorization))


def requires(*roles: str) -> Callable[..., Actor]:
    """Route-level role gate, applied after identity resolution."""
    allowed = frozenset(roles)

    def _dependency(actor: Actor = Depends(current_actor)) -> Actor:
        return require_role(actor, allowed)

    return _dependency


creator_only = requires(ROLE_CREATOR)
admin_only = requires(ROLE_ADMIN)


# -----------------------------
# Envelope helpers
# -----------------------------
def respond(status: int, message: str, data: Optional[Dict[str, Any]] = None) -> JSONResponse:
    body = Envelope(ok=True, status=status, message=message, data=data)
    return JSONResponse(status_code=status, content=body.model_dump(mode="json"))


def content_out(kind: ContentKind, item: Dict[str, Any]) -> Dict[str, Any]:
    return ContentOut.model_validate({**item, "kind": kind.name}).model_dump(mode="json")


def contents_out(kind: ContentKind, items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [content_out(kind, item) for item in items]


def episode_out(episode: Dict[str, Any]) -> Dict[str, Any]:
    return EpisodeOut.model_validate(episode).model_dump(mode="json")


def creator_out(creator: Dict[str, Any]) -> Dict[str, Any]:
    return CreatorOut.model_validate(creator).model_dump(mode="json")


def to_upload(file: Optional[UploadFile], max_bytes: int) -> Optional[Upload]:
    if file is None or not file.filename:
        return None
    # one byte over the cap is enough for the store to reject it
    data = file.file.read(max_bytes + 1)
    return Upload(filename=file.filename, data=data)


# -----------------------------
# Shared handlers (both kinds, both scopes)
# -----------------------------
def _create(kind, engine, placer, settings, actor, title, type_, icon) -> JSONResponse:
    item = content.create_content(
        engine, placer, actor, kind, title,
        type_=type_,
        icon=to_upload(icon, settings.max_upload_bytes),
    )
    return respond(201, MSG_SAVE, {_DATA_KEYS[kind.name][0]: content_out(kind, item)})


def _add_episode(kind, engine, placer, settings, actor, content_id, files, link=None) -> JSONResponse:
    uploads = {field: to_upload(f, settings.max_upload_bytes) for field, f in files.items()}
    episode = content.add_episode(engine, placer, actor, kind, content_id, uploads, link=link)
    return respond(201, MSG_SAVE, {"episode": episode_out(episode)})


def _get_episode(kind, engine, content_id, episode_id) -> JSONResponse:
    episode = content.get_episode(engine, kind, content_id, episode_id)
    return respond(200, "Episode fetched successfully", {"episode": episode_out(episode)})


# -----------------------------
# Creator accounts
# -----------------------------
creators_router = APIRouter(prefix="/api/creators", tags=["creators"])


@creators_router.post("/register")
def register_creator(
    body: CreatorRegisterIn,
    engine: Engine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    result = accounts.register_creator(
        engine, settings,
        username=body.username,
        email=body.email,
        phone_number=body.phone_number,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    return respond(201, MSG_SAVE, {"creator": creator_out(result["creator"]), "token": result["token"]})


@creators_router.post("/login")
def login_creator(
    body: CreatorLoginIn,
    engine: Engine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    result = accounts.login_creator(engine, settings, body.mobile_no, body.password)
    return respond(200, "Login successful", {"creator": creator_out(result["creator"]), "token": result["token"]})


# -----------------------------
# Creator-scoped graphic novels
# -----------------------------
graphic_novels_router = APIRouter(prefix="/api/graphic-novels", tags=["graphic-novels"])


@graphic_novels_router.get("/{content_id}/episodes/{episode_id}")
def get_graphic_novel_episode(content_id: int, episode_id: int, engine: Engine = Depends(get_engine)):
    return _get_episode(GRAPHIC_NOVEL, engine, content_id, episode_id)


@graphic_novels_router.post("")
def create_graphic_novel(
    title: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    novel_icon: Optional[UploadFile] = File(None, alias="novelIcon"),
    actor: Actor = Depends(creator_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _create(GRAPHIC_NOVEL, engine, placer, settings, actor, title, type, novel_icon)


@graphic_novels_router.get("")
def list_my_graphic_novels(actor: Actor = Depends(creator_only), engine: Engine = Depends(get_engine)):
    items = content.list_owned_content(engine, actor, GRAPHIC_NOVEL)
    return respond(200, MSG_FETCH, {"graphicNovels": contents_out(GRAPHIC_NOVEL, items)})


@graphic_novels_router.get("/{content_id}")
def get_my_graphic_novel(content_id: int, actor: Actor = Depends(creator_only), engine: Engine = Depends(get_engine)):
    item = content.get_owned_content_detail(engine, actor, GRAPHIC_NOVEL, content_id)
    return respond(200, MSG_FETCH, {"graphicNovel": content_out(GRAPHIC_NOVEL, item)})


@graphic_novels_router.post("/{content_id}/episodes")
def add_graphic_novel_episode(
    content_id: int,
    icon: Optional[UploadFile] = File(None),
    pdf: Optional[UploadFile] = File(None),
    actor: Actor = Depends(creator_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _add_episode(GRAPHIC_NOVEL, engine, placer, settings, actor, content_id, {"icon": icon, "pdf": pdf})


# -----------------------------
# Creator-scoped audiobooks
# -----------------------------
audiobooks_router = APIRouter(prefix="/api/audiobooks", tags=["audiobooks"])


@audiobooks_router.get("/{content_id}/episodes/{episode_id}")
def get_audiobook_episode(content_id: int, episode_id: int, engine: Engine = Depends(get_engine)):
    return _get_episode(AUDIOBOOK, engine, content_id, episode_id)


@audiobooks_router.post("")
def create_audiobook(
    title: Optional[str] = Form(None),
    book_icon: Optional[UploadFile] = File(None, alias="bookIcon"),
    actor: Actor = Depends(creator_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _create(AUDIOBOOK, engine, placer, settings, actor, title, None, book_icon)


@audiobooks_router.get("")
def list_my_audiobooks(actor: Actor = Depends(creator_only), engine: Engine = Depends(get_engine)):
    items = content.list_owned_content(engine, actor, AUDIOBOOK)
    return respond(200, MSG_FETCH, {"audiobooks": contents_out(AUDIOBOOK, items)})


@audiobooks_router.get("/{content_id}")
def get_my_audiobook(content_id: int, actor: Actor = Depends(creator_only), engine: Engine = Depends(get_engine)):
    item = content.get_owned_content_detail(engine, actor, AUDIOBOOK, content_id)
    return respond(200, MSG_FETCH, {"audiobook": content_out(AUDIOBOOK, item)})


@audiobooks_router.post("/{content_id}/episodes")
def add_audiobook_episode(
    content_id: int,
    icon: Optional[UploadFile] = File(None),
    youtube_url: Optional[str] = Form(None, alias="youtubeUrl"),
    actor: Actor = Depends(creator_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _add_episode(AUDIOBOOK, engine, placer, settings, actor, content_id, {"icon": icon}, link=youtube_url)


# -----------------------------
# Admin
# -----------------------------
admin_router = APIRouter(prefix="/api/admin", tags=["admin"])


@admin_router.post("/login")
def admin_login(body: AdminLoginIn, settings: Settings = Depends(get_settings)):
    result = accounts.login_admin(settings, body.username, body.password)
    return respond(200, "Admin login successful", result)


@admin_router.get("/graphic-novels")
def admin_list_graphic_novels(actor: Actor = Depends(admin_only), engine: Engine = Depends(get_engine)):
    items = content.list_all_content(engine, actor, GRAPHIC_NOVEL)
    return respond(200, MSG_FETCH, {"graphicNovels": contents_out(GRAPHIC_NOVEL, items)})


@admin_router.get("/graphic-novels/{content_id}")
def admin_get_graphic_novel(content_id: int, actor: Actor = Depends(admin_only), engine: Engine = Depends(get_engine)):
    item = content.get_content_detail(engine, actor, GRAPHIC_NOVEL, content_id)
    return respond(200, MSG_FETCH, {"graphicNovel": content_out(GRAPHIC_NOVEL, item)})


@admin_router.put("/graphic-novels/{content_id}/status")
def admin_set_graphic_novel_status(
    content_id: int,
    body: StatusIn,
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
):
    item = content.set_status(engine, actor, GRAPHIC_NOVEL, content_id, body.status)
    return respond(200, "Graphic novel status updated successfully", {"graphicNovel": content_out(GRAPHIC_NOVEL, item)})


@admin_router.post("/graphic-novels")
def admin_create_graphic_novel(
    title: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    novel_icon: Optional[UploadFile] = File(None, alias="novelIcon"),
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _create(GRAPHIC_NOVEL, engine, placer, settings, actor, title, type, novel_icon)


@admin_router.post("/graphic-novels/{content_id}/episodes")
def admin_add_graphic_novel_episode(
    content_id: int,
    icon: Optional[UploadFile] = File(None),
    pdf: Optional[UploadFile] = File(None),
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _add_episode(GRAPHIC_NOVEL, engine, placer, settings, actor, content_id, {"icon": icon, "pdf": pdf})


@admin_router.get("/audiobooks")
def admin_list_audiobooks(actor: Actor = Depends(admin_only), engine: Engine = Depends(get_engine)):
    items = content.list_all_content(engine, actor, AUDIOBOOK)
    return respond(200, MSG_FETCH, {"audiobooks": contents_out(AUDIOBOOK, items)})


@admin_router.get("/audiobooks/{content_id}")
def admin_get_audiobook(content_id: int, actor: Actor = Depends(admin_only), engine: Engine = Depends(get_engine)):
    item = content.get_content_detail(engine, actor, AUDIOBOOK, content_id)
    return respond(200, MSG_FETCH, {"audiobook": content_out(AUDIOBOOK, item)})


@admin_router.put("/audiobooks/{content_id}/status")
def admin_set_audiobook_status(
    content_id: int,
    body: StatusIn,
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
):
    item = content.set_status(engine, actor, AUDIOBOOK, content_id, body.status)
    return respond(200, "Audiobook status updated successfully", {"audiobook": content_out(AUDIOBOOK, item)})


@admin_router.post("/audiobooks")
def admin_create_audiobook(
    title: Optional[str] = Form(None),
    book_icon: Optional[UploadFile] = File(None, alias="bookIcon"),
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _create(AUDIOBOOK, engine, placer, settings, actor, title, None, book_icon)


@admin_router.post("/audiobooks/{content_id}/episodes")
def admin_add_audiobook_episode(
    content_id: int,
    icon: Optional[UploadFile] = File(None),
    youtube_url: Optional[str] = Form(None, alias="youtubeUrl"),
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
    placer: AssetPlacer = Depends(get_placer),
    settings: Settings = Depends(get_settings),
):
    return _add_episode(AUDIOBOOK, engine, placer, settings, actor, content_id, {"icon": icon}, link=youtube_url)


@admin_router.get("/creators")
def admin_list_creators(actor: Actor = Depends(admin_only), engine: Engine = Depends(get_engine)):
    creators = accounts.list_creators(engine)
    return respond(200, MSG_FETCH, {"creators": [creator_out(c) for c in creators]})


@admin_router.put("/creators/{creator_id}/status")
def admin_set_creator_status(
    creator_id: int,
    body: StatusIn,
    actor: Actor = Depends(admin_only),
    engine: Engine = Depends(get_engine),
):
    creator = accounts.set_creator_status(engine, creator_id, body.status)
    return respond(200, "Creator status updated successfully", {"creator": creator_out(creator)})


# -----------------------------
# Public browsing
# -----------------------------
user_router = APIRouter(prefix="/api/user", tags=["public"])


@user_router.get("/published-content")
def published_content(engine: Engine = Depends(get_engine)):
    result = content.list_published_content(engine)
    return respond(
        200,
        "Published content fetched successfully",
        {
            "graphicNovels": contents_out(GRAPHIC_NOVEL, result["graphic_novels"]),
            "audiobooks": contents_out(AUDIOBOOK, result["audiobooks"]),
        },
    )


@user_router.get("/graphic-novels")
def published_graphic_novels(engine: Engine = Depends(get_engine)):
    items = content.list_published(engine, GRAPHIC_NOVEL)
    return respond(200, "Published Graphic Novels fetched successfully", {"graphicNovels": contents_out(GRAPHIC_NOVEL, items)})


@user_router.get("/audiobooks")
def published_audiobooks(engine: Engine = Depends(get_engine)):
    items = content.list_published(engine, AUDIOBOOK)
    return respond(200, "Published Audiobooks fetched successfully", {"audiobooks": contents_out(AUDIOBOOK, items)})


@user_router.get("/graphic-novels/{content_id}")
def published_graphic_novel(content_id: int, engine: Engine = Depends(get_engine)):
    item = content.get_published_by_id(engine, GRAPHIC_NOVEL, content_id)
    return respond(200, MSG_FETCH, {"graphicNovel": content_out(GRAPHIC_NOVEL, item)})


@user_router.get("/audiobooks/{content_id}")
def published_audiobook(content_id: int, engine: Engine = Depends(get_engine)):
    item = content.get_published_by_id(engine, AUDIOBOOK, content_id)
    return respond(200, MSG_FETCH, {"audiobook": content_out(AUDIOBOOK, item)})


# -----------------------------
# Static assets
# -----------------------------
uploads_router = APIRouter(tags=["uploads"])


@uploads_router.get("/uploads/{path:path}")
def serve_upload(path: str, store: LocalBlobStore = Depends(get_blob_store)):
    try:
        target = store.resolve(path)
    except ValueError:
        raise NotFound("File not found")
    if not target.is_file():
        raise NotFound("File not found")
    return FileResponse(target)


ROUTERS = (
    creators_router,
    graphic_novels_router,
    audiobooks_router,
    admin_router,
    user_router,
    uploads_router,
)
