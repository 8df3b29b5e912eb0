"""
Pydantic schemas for the pupi map API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from shared.constants import (
    MAX_CHAT_HISTORY_ITEMS,
    MAX_CHAT_MESSAGE_LENGTH,
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MAX_PUPO_ID,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)

TEXT_FIELDS = ("name", "description", "image", "artist", "theme")


def _check_coordinates(lat: Optional[float], lng: Optional[float]) -> None:
    if lat is not None and not MIN_LATITUDE <= lat <= MAX_LATITUDE:
        raise ValueError("Invalid coordinates")
    if lng is not None and not MIN_LONGITUDE <= lng <= MAX_LONGITUDE:
        raise ValueError("Invalid coordinates")


class PupoFields(BaseModel):
    """A complete pupo, as submitted by the admin form or a bulk import."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    lat: float = Field(allow_inf_nan=False)
    lng: float = Field(allow_inf_nan=False)
    # Older exports call this field imageUrl.
    image: str = Field(validation_alias=AliasChoices("image", "imageUrl"))
    artist: str
    theme: str
    address: Optional[str] = None

    @field_validator(*TEXT_FIELDS)
    @classmethod
    def strip_required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Missing required fields")
        return value

    @field_validator("address")
    @classmethod
    def blank_address_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def coordinates_in_range(self) -> "PupoFields":
        _check_coordinates(self.lat, self.lng)
        return self


class PupoUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    lat: Optional[float] = Field(default=None, allow_inf_nan=False)
    lng: Optional[float] = Field(default=None, allow_inf_nan=False)
    image: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("image", "imageUrl")
    )
    artist: Optional[str] = None
    theme: Optional[str] = None
    address: Optional[str] = None

    @model_validator(mode="after")
    def coordinates_in_range(self) -> "PupoUpdate":
        _check_coordinates(self.lat, self.lng)
        return self


class PupoResponse(BaseModel):
    id: int
    name: str
    description: str
    lat: float
    lng: float
    image: str
    artist: str
    theme: str
    address: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True


class AdminLoginRequest(BaseModel):
    password: Optional[str] = None


class BulkImportResponse(BaseModel):
    success: bool = True
    message: str
    imported: int
    total: int


class UploadResponse(BaseModel):
    url: str


class VoteToggleRequest(BaseModel):
    pupoId: int = Field(..., strict=True, ge=1, le=MAX_PUPO_ID)


class VotesResponse(BaseModel):
    voteCounts: dict[int, int]
    userVotes: list[int]


class VoteToggleResponse(VotesResponse):
    action: Literal["added", "removed"]


class UserResponse(BaseModel):
    id: str
    name: str
    firstName: str
    lastName: str
    email: Optional[str] = None
    avatar: Optional[str] = None


class GeocodeResponse(BaseModel):
    lat: float
    lng: float
    display_name: Optional[str] = None


class ChatTurn(BaseModel):
    role: Literal["user", "model"]
    text: str = Field(..., max_length=MAX_CHAT_MESSAGE_LENGTH)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=MAX_CHAT_MESSAGE_LENGTH)
    history: list[ChatTurn] = Field(
        default_factory=list, max_length=MAX_CHAT_HISTORY_ITEMS
    )


class ChatResponse(BaseModel):
    reply: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    database: str
