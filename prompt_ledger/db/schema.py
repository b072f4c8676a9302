"""SQLAlchemy table definitions for the prompt ledger."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

prompts = Table(
    "prompts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("title", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("tags", JSON, nullable=False, default=list),
    Column("created_at", String(40), nullable=False),
    Column("updated_at", String(40), nullable=False),
    Column("current_version_id", String(36), nullable=False),
    Column("version_count", Integer, nullable=False, default=1),
)

prompt_versions = Table(
    "prompt_versions",
    metadata,
    Column("id", String(36), primary_key=True),
    Column(
        "prompt_id",
        String(36),
        ForeignKey("prompts.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("content", Text, nullable=False),
    Column("note", Text, nullable=True),
    Column("created_at", String(40), nullable=False),
    Column("version_number", Integer, nullable=False),
    Column("is_rollback", Boolean, nullable=False, default=False),
    Column("source_version_id", String(36), nullable=True),
    # One row per (prompt, version number)
    UniqueConstraint("prompt_id", "version_number", name="uq_prompt_versions_number"),
    Index("ix_prompt_versions_prompt_id", "prompt_id"),
)

TABLES: dict[str, Table] = {table.name: table for table in (prompts, prompt_versions)}
