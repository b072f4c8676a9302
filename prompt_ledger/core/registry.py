"""Prompt registry: prompt CRUD with content-aware versioning."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any
from uuid import uuid4

import structlog

from prompt_ledger.core.errors import LedgerError, NotFoundError, TransactionError, ValidationError
from prompt_ledger.core.locks import KeyedLock
from prompt_ledger.db.client import StorageClient, get_storage_client
from prompt_ledger.db.models import Prompt, Version, stamp, to_row

logger = structlog.get_logger()

PROMPTS = "prompts"
VERSIONS = "prompt_versions"


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_tags(tags: list[str] | None) -> list[str]:
    """Strip tags, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        tag = tag.strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


def _require(field: str, value: str | None) -> None:
    if value is None or not value.strip():
        raise ValidationError(field)


class PromptRegistry:
    """Owns prompts and their version chains.

    Every mutation of a prompt runs under that prompt's lock and inside one
    storage transaction, so the version insert and the prompt update land
    together or not at all.
    """

    def __init__(self, db: StorageClient, locks: KeyedLock | None = None) -> None:
        self.db = db
        self.locks = locks or KeyedLock()

    @contextmanager
    def mutation(self, prompt_id: str) -> Iterator[None]:
        """Serialize on ``prompt_id`` and run the block as one transaction.

        Domain errors pass through untouched; anything else raised by the
        store is reported as ``TransactionError``.
        """
        with self.locks.hold(prompt_id):
            try:
                with self.db.transaction():
                    yield
            except LedgerError:
                raise
            except Exception as e:
                logger.error("storage.transaction_failed", prompt_id=prompt_id, error=str(e))
                raise TransactionError(f"Mutation of prompt '{prompt_id}' failed: {e}") from e

    # --- Reads ---

    def _load_prompt(self, prompt_id: str) -> Prompt:
        row = self.db.find_by_id(PROMPTS, prompt_id)
        if row is None:
            raise NotFoundError("prompt", prompt_id)
        return Prompt.model_validate(row)

    def get_prompt(self, prompt_id: str) -> Prompt:
        """Get a prompt by id."""
        return self._load_prompt(prompt_id)

    def get_version(self, version_id: str) -> Version:
        """Get a single version by id."""
        row = self.db.find_by_id(VERSIONS, version_id)
        if row is None:
            raise NotFoundError("version", version_id)
        return Version.model_validate(row)

    def get_current_version(self, prompt_id: str) -> Version:
        """The version HEAD points at."""
        return self.get_version(self._load_prompt(prompt_id).current_version_id)

    def list_versions(self, prompt_id: str) -> list[Version]:
        """All versions of a prompt, in storage order."""
        return [
            Version.model_validate(row)
            for row in self.db.select(VERSIONS, filters={"prompt_id": prompt_id})
        ]

    def list_prompts(
        self,
        limit: int = 50,
        offset: int = 0,
        tag: str | None = None,
    ) -> list[Prompt]:
        """List prompts, most recently updated first."""
        if tag:
            # Tags are stored serialized, so filter client-side
            rows = self.db.select(PROMPTS, order_by="updated_at", ascending=False)
            rows = [r for r in rows if tag in r.get("tags", [])]
            rows = rows[offset:offset + limit]
        else:
            rows = self.db.select(
                PROMPTS, order_by="updated_at", ascending=False, limit=limit, offset=offset
            )
        return [Prompt.model_validate(r) for r in rows]

    def stats(self) -> dict[str, Any]:
        """Totals across the whole store."""
        total_prompts = len(self.db.select(PROMPTS))
        total_versions = len(self.db.select(VERSIONS))
        average = round(total_versions / total_prompts, 2) if total_prompts else 0
        return {
            "total_prompts": total_prompts,
            "total_versions": total_versions,
            "average_versions_per_prompt": average,
        }

    # --- Mutations ---

    def create_prompt(
        self,
        title: str,
        content: str,
        tags: list[str] | None = None,
        note: str | None = None,
    ) -> Prompt:
        """Create a prompt together with its first version."""
        _require("title", title)
        _require("content", content)

        prompt_id = new_id()
        now = utcnow()
        version = Version(
            id=new_id(),
            prompt_id=prompt_id,
            content=content,
            note=note or "Initial version",
            created_at=now,
            version_number=1,
        )
        prompt = Prompt(
            id=prompt_id,
            title=title.strip(),
            content=content,
            tags=_clean_tags(tags),
            created_at=now,
            updated_at=now,
            current_version_id=version.id,
            version_count=1,
        )

        with self.mutation(prompt_id):
            self.db.create(PROMPTS, to_row(prompt))
            self.db.create(VERSIONS, to_row(version))

        logger.info("prompt.created", prompt_id=prompt_id, version_id=version.id)
        return prompt

    def update_prompt(
        self,
        prompt_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
        note: str | None = None,
    ) -> Prompt:
        """Update a prompt. Only a change of content appends a version.

        Title/tag-only updates (or re-sending the current content) touch
        ``updated_at`` but leave ``version_count`` and HEAD alone.
        """
        if title is not None:
            _require("title", title)
        if content is not None:
            _require("content", content)

        with self.mutation(prompt_id):
            prompt = self._load_prompt(prompt_id)
            now = utcnow()
            changes: dict[str, Any] = {"updated_at": stamp(now)}

            if title is not None:
                changes["title"] = title.strip()
            if tags is not None:
                changes["tags"] = _clean_tags(tags)

            version = None
            if content is not None and content != prompt.content:
                version = self.append_version(prompt, content, note, created_at=now)
                changes.update(
                    content=content,
                    current_version_id=version.id,
                    version_count=version.version_number,
                )

            row = self.db.update(PROMPTS, prompt_id, changes)
            if row is None:
                raise NotFoundError("prompt", prompt_id)

        logger.info(
            "prompt.updated",
            prompt_id=prompt_id,
            fields=sorted(k for k in changes if k != "updated_at"),
            version=version.version_number if version else None,
        )
        return Prompt.model_validate(row)

    def append_version(
        self,
        prompt: Prompt,
        content: str,
        note: str | None = None,
        *,
        created_at: datetime | None = None,
        source_version_id: str | None = None,
    ) -> Version:
        """Write the next version in ``prompt``'s chain.

        Must run inside ``mutation(prompt.id)``; the caller is responsible for
        pointing the prompt at the returned version in the same transaction.
        """
        number = prompt.version_count + 1
        version = Version(
            id=new_id(),
            prompt_id=prompt.id,
            content=content,
            note=note or f"Version {number}",
            created_at=created_at or utcnow(),
            version_number=number,
            is_rollback=source_version_id is not None,
            source_version_id=source_version_id,
        )
        self.db.create(VERSIONS, to_row(version))
        return version

    def delete_prompt(self, prompt_id: str) -> None:
        """Delete a prompt and, with it, its whole version chain."""
        with self.mutation(prompt_id):
            self._load_prompt(prompt_id)
            removed = self.db.delete_where(VERSIONS, {"prompt_id": prompt_id})
            self.db.delete(PROMPTS, prompt_id)

        logger.info("prompt.deleted", prompt_id=prompt_id, versions_removed=removed)


@lru_cache
def get_registry() -> PromptRegistry:
    """Get cached registry instance."""
    return PromptRegistry(get_storage_client())
