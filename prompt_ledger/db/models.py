"""Record types for prompts and their versions.

These mirror the storage tables; rows coming back from a ``StorageClient``
are validated into these models before they leave the core.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Prompt(BaseModel):
    """Row from the prompts table."""

    id: str
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    current_version_id: str
    version_count: int = Field(ge=1)


class Version(BaseModel):
    """Row from the prompt_versions table. Immutable once written."""

    model_config = {"frozen": True}

    id: str
    prompt_id: str
    content: str
    note: str | None = None
    created_at: datetime
    version_number: int = Field(ge=1)
    is_rollback: bool = False
    source_version_id: str | None = None


def stamp(moment: datetime) -> str:
    """Fixed-width UTC ISO-8601 text, so stored timestamps sort lexically."""
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def to_row(record: BaseModel) -> dict[str, Any]:
    """Dump a record into a storage row."""
    return {
        key: stamp(value) if isinstance(value, datetime) else value
        for key, value in record.model_dump().items()
    }
