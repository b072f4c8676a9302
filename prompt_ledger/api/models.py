"""Pydantic request/response models for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from prompt_ledger.db.models import Prompt, Version


# --- Prompts ---


class PromptCreate(BaseModel):
    """Create a new prompt (and its first version)."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    note: str | None = None


class PromptUpdate(BaseModel):
    """Update a prompt. Sending changed content appends a version."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    note: str | None = None


class PromptResponse(Prompt):
    """Prompt response."""


class PromptStatsResponse(BaseModel):
    total_prompts: int
    total_versions: int
    average_versions_per_prompt: float


# --- Versions ---


class VersionResponse(Version):
    """Version response."""


class RollbackRequest(BaseModel):
    """Rollback to a specific version."""

    version_id: str
    note: str | None = None


class RollbackResponse(BaseModel):
    new_version: VersionResponse
    prompt: PromptResponse


class VersionStatsResponse(BaseModel):
    total_versions: int
    rollback_count: int
    first_version_date: datetime | None
    last_version_date: datetime | None


# --- Diffs ---


class DiffRequest(BaseModel):
    """Ad hoc diff of two strings."""

    content1: str
    content2: str
    ignore_whitespace: bool = False
    ignore_case: bool = False
    context_lines: int | None = Field(default=None, ge=0)


class DiffResponse(BaseModel):
    """Full line/word/character diff."""

    summary: dict[str, int]
    line_diff: list[dict[str, Any]]
    word_diff: list[dict[str, Any]]
    char_diff: list[dict[str, Any]]
    unified: str
    side_by_side: list[dict[str, Any]]


class CompareResponse(BaseModel):
    version1: VersionResponse
    version2: VersionResponse
    diff: DiffResponse
