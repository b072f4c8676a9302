"""Version control over the registry: history, rollback, comparison and stats."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

import structlog

from prompt_ledger.config import get_settings
from prompt_ledger.core.differ import DiffOptions, DiffResult, TextDiffer
from prompt_ledger.core.errors import InvalidReferenceError, NotFoundError
from prompt_ledger.core.registry import PROMPTS, PromptRegistry, get_registry
from prompt_ledger.db.models import Prompt, Version, stamp

logger = structlog.get_logger()


def _as_utc(moment: datetime | None) -> datetime | None:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass
class RollbackResult:
    new_version: Version
    prompt: Prompt


@dataclass
class Comparison:
    version1: Version
    version2: Version
    diff: DiffResult


@dataclass
class VersionStats:
    total_versions: int
    rollback_count: int
    first_version_date: datetime | None
    last_version_date: datetime | None


class VersionControl:
    """Linear, append-only version control over a prompt registry.

    HEAD only ever moves forward: a rollback appends a copy of the target
    version's content as a new version rather than re-pointing at the old one.
    """

    def __init__(
        self,
        registry: PromptRegistry,
        differ: TextDiffer | None = None,
    ) -> None:
        self.registry = registry
        self.differ = differ or TextDiffer()

    def history(self, prompt_id: str) -> list[Version]:
        """Get the full version chain of a prompt, newest first."""
        self.registry.get_prompt(prompt_id)
        versions = self.registry.list_versions(prompt_id)
        return sorted(versions, key=lambda v: v.version_number, reverse=True)

    def rollback_versions(self, prompt_id: str) -> list[Version]:
        """Versions created by rollbacks, newest first."""
        return [v for v in self.history(prompt_id) if v.is_rollback]

    def versions_between(
        self,
        prompt_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Version]:
        """Versions created within ``[start, end]``, newest first.

        Either bound may be omitted. Naive datetimes are taken to be UTC.
        """
        start, end = _as_utc(start), _as_utc(end)
        return [
            v
            for v in self.history(prompt_id)
            if (start is None or v.created_at >= start) and (end is None or v.created_at <= end)
        ]

    def rollback(
        self,
        prompt_id: str,
        target_version_id: str,
        note: str | None = None,
    ) -> RollbackResult:
        """Restore an earlier version's content by appending it as a new version."""
        registry = self.registry

        with registry.mutation(prompt_id):
            prompt = registry.get_prompt(prompt_id)
            target = registry.get_version(target_version_id)
            if target.prompt_id != prompt_id:
                raise InvalidReferenceError(target_version_id, prompt_id)

            new_version = registry.append_version(
                prompt,
                target.content,
                note or f"Rollback to version {target.version_number}",
                source_version_id=target.id,
            )
            row = registry.db.update(
                PROMPTS,
                prompt_id,
                {
                    "content": new_version.content,
                    "current_version_id": new_version.id,
                    "version_count": new_version.version_number,
                    "updated_at": stamp(new_version.created_at),
                },
            )
            if row is None:
                raise NotFoundError("prompt", prompt_id)

        logger.info(
            "vcs.rollback",
            prompt_id=prompt_id,
            target_version=target.version_number,
            version=new_version.version_number,
        )
        return RollbackResult(new_version=new_version, prompt=Prompt.model_validate(row))

    def compare(
        self,
        version_id_1: str,
        version_id_2: str,
        *,
        ignore_whitespace: bool = False,
        ignore_case: bool = False,
        context_lines: int | None = None,
    ) -> Comparison:
        """Diff two versions' content. The versions may belong to different prompts."""
        version1 = self.registry.get_version(version_id_1)
        version2 = self.registry.get_version(version_id_2)

        if context_lines is None:
            context_lines = self.differ.options.context_lines
        options = DiffOptions(
            ignore_whitespace=ignore_whitespace,
            ignore_case=ignore_case,
            context_lines=context_lines,
        )
        diff = self.differ.generate_diff(version1.content, version2.content, options)

        logger.info(
            "vcs.compare",
            version1=version_id_1,
            version2=version_id_2,
            total_changes=diff.summary.total_changes,
        )
        return Comparison(version1=version1, version2=version2, diff=diff)

    def stats(self, prompt_id: str) -> VersionStats:
        """Summary statistics of a prompt's version chain."""
        versions = self.history(prompt_id)
        dates = [v.created_at for v in versions]
        return VersionStats(
            total_versions=len(versions),
            rollback_count=sum(1 for v in versions if v.is_rollback),
            first_version_date=min(dates) if dates else None,
            last_version_date=max(dates) if dates else None,
        )


@lru_cache
def get_vcs() -> VersionControl:
    """Get cached VCS instance."""
    settings = get_settings()
    return VersionControl(
        get_registry(),
        TextDiffer(DiffOptions(context_lines=settings.diff_context_lines)),
    )
