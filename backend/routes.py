"""
HTTP routes for the pupi map API.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from backend.auth import (
    check_admin_password,
    get_current_user,
    get_optional_user,
    require_admin,
)
from backend.config import Settings, get_settings
from backend.db import DbClient, PupoRecord
from backend.dependencies import get_db_client, get_geocoder, get_storage_client
from backend.errors import describe_validation_errors
from backend.geocoding import Geocoder, GeocodingError
from backend.importer import ImportValidationError, import_pupi
from backend.images import InvalidImageError, build_object_key, validate_image
from backend.schemas import (
    AdminLoginRequest,
    BulkImportResponse,
    ChatRequest,
    ChatResponse,
    GeocodeResponse,
    HealthResponse,
    PupoFields,
    PupoResponse,
    PupoUpdate,
    SuccessResponse,
    UploadResponse,
    UserResponse,
    VoteToggleRequest,
    VoteToggleResponse,
    VotesResponse,
)
from backend.storage import StorageClient
from models import gemini
from shared.constants import MAX_PUPO_ID
from shared.types import User, VoteAction

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_pupo_id(raw_id: str) -> int:
    try:
        pupo_id = int(raw_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID format")
    # No stored pupo can have an id outside the column range.
    if not 1 <= pupo_id <= MAX_PUPO_ID:
        raise HTTPException(status_code=404, detail="Pupo not found")
    return pupo_id


def _to_response(record: PupoRecord) -> PupoResponse:
    return PupoResponse(**record.as_dict())


def _validate_pupo(values: dict) -> dict:
    try:
        return PupoFields.model_validate(values).model_dump()
    except ValidationError as e:
        raise HTTPException(
            status_code=400, detail=describe_validation_errors(e.errors())
        )


def _run_import(db: DbClient, payload: Any) -> BulkImportResponse:
    try:
        result = import_pupi(db, payload)
    except ImportValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BulkImportResponse(
        message=result.message, imported=result.imported, total=result.total
    )


def toggle_vote(db: DbClient, user_id: str, pupo_id: int) -> VoteAction:
    """Flip the user's vote on a pupo and report what happened."""
    if db.has_vote(user_id, pupo_id):
        db.remove_vote(user_id, pupo_id)
        return VoteAction.REMOVED
    db.add_vote(user_id, pupo_id)
    return VoteAction.ADDED


@router.get("/health", response_model=HealthResponse)
def health(db: DbClient = Depends(get_db_client)):
    return HealthResponse(status="ok", database=db.backend_name)


@router.get("/pupi", response_model=list[PupoResponse])
def list_pupi(db: DbClient = Depends(get_db_client)):
    return [_to_response(record) for record in db.list_pupi()]


@router.post(
    "/pupi",
    response_model=PupoResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_pupo(payload: PupoFields, db: DbClient = Depends(get_db_client)):
    record = db.create_pupo(payload.model_dump())
    logger.info("Created pupo %s (%s)", record.id, record.name)
    return _to_response(record)


@router.get("/pupi/{pupo_id}", response_model=PupoResponse)
def get_pupo(pupo_id: str, db: DbClient = Depends(get_db_client)):
    record = db.get_pupo(_parse_pupo_id(pupo_id))
    if not record:
        raise HTTPException(status_code=404, detail="Pupo not found")
    return _to_response(record)


@router.put(
    "/pupi/{pupo_id}",
    response_model=PupoResponse,
    dependencies=[Depends(require_admin)],
)
def update_pupo(
    pupo_id: str,
    payload: PupoUpdate,
    db: DbClient = Depends(get_db_client),
):
    numeric_id = _parse_pupo_id(pupo_id)
    current = db.get_pupo(numeric_id)
    if not current:
        raise HTTPException(status_code=404, detail="Pupo not found")

    # Validate the merged record so a partial update cannot break invariants.
    merged = {**current.as_dict(), **payload.model_dump(exclude_unset=True)}
    updated = db.update_pupo(numeric_id, _validate_pupo(merged))
    if not updated:
        raise HTTPException(status_code=404, detail="Pupo not found")
    return _to_response(updated)


@router.delete(
    "/pupi/{pupo_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
def delete_pupo(pupo_id: str, db: DbClient = Depends(get_db_client)):
    if not db.delete_pupo(_parse_pupo_id(pupo_id)):
        raise HTTPException(status_code=404, detail="Pupo not found")
    return SuccessResponse()


@router.post("/admin/login", response_model=SuccessResponse)
def admin_login(
    payload: AdminLoginRequest,
    settings: Settings = Depends(get_settings),
):
    if not payload.password:
        raise HTTPException(status_code=400, detail="Password is required")
    if not check_admin_password(payload.password, settings.admin_password):
        raise HTTPException(status_code=401, detail="Invalid password")
    return SuccessResponse()


@router.post(
    "/admin/seed",
    response_model=BulkImportResponse,
    dependencies=[Depends(require_admin)],
)
def seed_pupi(
    payload: Any = Body(...),
    db: DbClient = Depends(get_db_client),
):
    return _run_import(db, payload)


@router.post("/upload", dependencies=[Depends(require_admin)])
async def upload(
    request: Request,
    db: DbClient = Depends(get_db_client),
    storage: Optional[StorageClient] = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    """
    Upload a pupo image (multipart field `file`) or bulk-import pupi from a
    JSON body.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        return _run_import(db, payload)

    if storage is None:
        raise HTTPException(status_code=503, detail="Object storage not configured")

    form = await request.form()
    file = form.get("file")
    if not isinstance(file, UploadFile):
        raise HTTPException(status_code=400, detail="No file provided")

    data = await file.read()
    try:
        validate_image(data, file.content_type, settings.max_upload_bytes)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))

    path = build_object_key(file.filename)
    try:
        url = storage.upload_bytes(path, data, file.content_type)
    except (BotoCoreError, ClientError):
        logger.exception("Error uploading %s", path)
        raise HTTPException(status_code=500, detail="Failed to upload file")
    logger.info("Uploaded image to %s", path)
    return UploadResponse(url=url)


@router.get("/votes", response_model=VotesResponse)
def get_votes(
    user: Optional[User] = Depends(get_optional_user),
    db: DbClient = Depends(get_db_client),
):
    return VotesResponse(
        voteCounts=db.get_vote_counts(),
        userVotes=db.get_user_votes(user.id) if user else [],
    )


@router.post("/votes", response_model=VoteToggleResponse)
def post_vote(
    payload: VoteToggleRequest,
    user: User = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    if not db.get_pupo(payload.pupoId):
        raise HTTPException(status_code=404, detail="Pupo not found")
    action = toggle_vote(db, user.id, payload.pupoId)
    return VoteToggleResponse(
        voteCounts=db.get_vote_counts(),
        userVotes=db.get_user_votes(user.id),
        action=action.value,
    )


@router.get("/auth/me", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)):
    return UserResponse(
        id=user.id,
        name=user.name,
        firstName=user.first_name,
        lastName=user.last_name,
        email=user.email,
        avatar=user.avatar,
    )


@router.get(
    "/geocode",
    response_model=GeocodeResponse,
    dependencies=[Depends(require_admin)],
)
def geocode(
    address: str = Query(..., min_length=1, max_length=512),
    geocoder: Geocoder = Depends(get_geocoder),
):
    try:
        result = geocoder.geocode(address)
    except GeocodingError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if result is None:
        raise HTTPException(
            status_code=404, detail="No coordinates found for this address"
        )
    return GeocodeResponse(**result.as_dict())


@router.post("/chat", response_model=ChatResponse)
def guide_chat(payload: ChatRequest, settings: Settings = Depends(get_settings)):
    history = [(turn.role, turn.text) for turn in payload.history]
    reply = gemini.reply_as_guide(
        payload.message,
        history,
        model=settings.gemini_model,
        api_key=settings.gemini_api_key,
    )
    return ChatResponse(reply=reply)
