"""
Bulk import of pupi from JSON payloads (admin upload and seed script).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from backend.db import DbClient
from backend.errors import describe_validation_errors
from backend.schemas import PupoFields

logger = logging.getLogger(__name__)


class ImportValidationError(ValueError):
    pass


@dataclass
class ImportResult:
    imported: int
    total: int

    @property
    def message(self) -> str:
        return f"Successfully imported {self.imported} pupi"


def extract_import_items(payload: Any) -> list:
    # Accept both a bare array and the {"pupi": [...]} envelope.
    items = payload.get("pupi") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ImportValidationError(
            "Invalid data format. Expected an array of pupi."
        )
    return items


def validate_import_items(items: list) -> list[dict]:
    validated: list[dict] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ImportValidationError(
                f"Invalid pupo data at index {index}: expected an object"
            )
        try:
            validated.append(PupoFields.model_validate(item).model_dump())
        except ValidationError as e:
            raise ImportValidationError(
                f"Invalid pupo data at index {index}: "
                f"{describe_validation_errors(e.errors())}"
            ) from e
    return validated


def import_pupi(db: DbClient, payload: Any) -> ImportResult:
    """
    Validate every item, then insert them all.

    Nothing is written if any item is invalid. Incoming ids are ignored and
    the store assigns new ones, so importing the same file twice duplicates
    its pupi.
    """
    validated = validate_import_items(extract_import_items(payload))
    db.insert_bulk_pupi(validated)
    result = ImportResult(imported=len(validated), total=db.count_pupi())
    logger.info("Imported %d pupi (%d total)", result.imported, result.total)
    return result
