from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


ContentStatus = Literal["pending", "published", "rejected"]
CreatedByRole = Literal["creator", "admin"]


class _In(BaseModel):
    # fields are optional here; services report missing ones with their own messages
    model_config = ConfigDict(populate_by_name=True)


class CreatorRegisterIn(_In):
    username: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")


class CreatorLoginIn(_In):
    mobile_no: Optional[str] = Field(None, alias="mobileNo")
    password: Optional[str] = None


class AdminLoginIn(_In):
    username: Optional[str] = None
    password: Optional[str] = None


class StatusIn(_In):
    status: Optional[str] = None


class CreatorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    phone_number: str
    status: str
    profile_picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OwnerSummaryOut(BaseModel):
    id: int
    username: str
    email: str
    phone_number: str


class EpisodeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_id: int
    episode_number: int
    icon_path: Optional[str] = None
    pdf_path: Optional[str] = None
    youtube_url: Optional[str] = None
    created_at: datetime


class ContentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    title: str
    type: Optional[str] = None
    icon: Optional[str] = None
    owner_id: Optional[int] = None
    created_by_role: CreatedByRole
    status: ContentStatus
    created_at: datetime
    updated_at: datetime
    episodes: List[EpisodeOut] = []
    owner: Optional[OwnerSummaryOut] = None


class Envelope(BaseModel):
    ok: bool
    status: int
    message: str
    data: Optional[Dict[str, Any]] = None
