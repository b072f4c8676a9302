"""Tests for the prompt registry."""

import pytest
from structlog.testing import capture_logs

from prompt_ledger.core.errors import NotFoundError, ValidationError
from prompt_ledger.core.registry import PROMPTS, VERSIONS, PromptRegistry


class TestCreatePrompt:
    def test_create(self, registry):
        prompt = registry.create_prompt("T", "hello")
        assert prompt.version_count == 1
        assert prompt.content == "hello"
        assert prompt.title == "T"
        assert prompt.created_at == prompt.updated_at

    def test_initial_version(self, registry):
        prompt = registry.create_prompt("T", "hello")
        version = registry.get_current_version(prompt.id)
        assert version.id == prompt.current_version_id
        assert version.version_number == 1
        assert version.content == "hello"
        assert version.note == "Initial version"
        assert version.is_rollback is False
        assert version.source_version_id is None

    def test_custom_note(self, registry):
        prompt = registry.create_prompt("T", "hello", note="seed")
        assert registry.get_current_version(prompt.id).note == "seed"

    def test_tags_are_cleaned(self, registry):
        prompt = registry.create_prompt("T", "hello", tags=[" a ", "b", "", "a"])
        assert prompt.tags == ["a", "b"]

    @pytest.mark.parametrize("title,content", [("", "x"), ("   ", "x"), ("T", ""), ("T", "  \n")])
    def test_blank_fields_rejected(self, registry, mock_db, title, content):
        with pytest.raises(ValidationError):
            registry.create_prompt(title, content)
        assert mock_db.select(PROMPTS) == []
        assert mock_db.select(VERSIONS) == []

    def test_unique_ids(self, registry):
        ids = {registry.create_prompt("T", "hello").id for _ in range(20)}
        assert len(ids) == 20


class TestUpdatePrompt:
    def test_content_change_appends_version(self, registry):
        prompt = registry.create_prompt("T", "hello")
        updated = registry.update_prompt(prompt.id, content="hello world")
        assert updated.version_count == 2
        assert updated.content == "hello world"

        head = registry.get_current_version(prompt.id)
        assert head.version_number == 2
        assert head.content == "hello world"
        assert head.note == "Version 2"
        assert updated.current_version_id == head.id

    def test_update_note(self, registry):
        prompt = registry.create_prompt("T", "hello")
        registry.update_prompt(prompt.id, content="v2", note="tightened wording")
        assert registry.get_current_version(prompt.id).note == "tightened wording"

    def test_metadata_only_update(self, registry):
        prompt = registry.create_prompt("T", "hello", tags=["a"])
        updated = registry.update_prompt(prompt.id, title="New title", tags=["b"])
        assert updated.title == "New title"
        assert updated.tags == ["b"]
        assert updated.version_count == 1
        assert updated.current_version_id == prompt.current_version_id
        assert updated.updated_at >= prompt.updated_at

    def test_same_content_is_not_a_version(self, registry):
        prompt = registry.create_prompt("T", "hello")
        updated = registry.update_prompt(prompt.id, content="hello")
        assert updated.version_count == 1
        assert len(registry.list_versions(prompt.id)) == 1

    def test_blank_content_rejected(self, registry):
        prompt = registry.create_prompt("T", "hello")
        with pytest.raises(ValidationError):
            registry.update_prompt(prompt.id, content=" ")
        assert registry.get_prompt(prompt.id).version_count == 1

    def test_unknown_prompt(self, registry):
        with pytest.raises(NotFoundError):
            registry.update_prompt("missing", content="x")

    def test_version_numbers_are_dense(self, registry):
        prompt = registry.create_prompt("T", "v1")
        for n in range(2, 6):
            registry.update_prompt(prompt.id, content=f"v{n}")
        numbers = sorted(v.version_number for v in registry.list_versions(prompt.id))
        assert numbers == [1, 2, 3, 4, 5]
        assert registry.get_prompt(prompt.id).version_count == 5


class TestReads:
    def test_get_prompt_not_found(self, registry):
        with pytest.raises(NotFoundError) as exc:
            registry.get_prompt("missing")
        assert exc.value.code == "not_found"
        assert "missing" in exc.value.message

    def test_get_version_not_found(self, registry):
        with pytest.raises(NotFoundError):
            registry.get_version("missing")

    def test_list_prompts_newest_update_first(self, registry):
        first = registry.create_prompt("First", "1")
        second = registry.create_prompt("Second", "2")
        registry.update_prompt(first.id, content="1b")
        ids = [p.id for p in registry.list_prompts()]
        assert ids == [first.id, second.id]

    def test_list_prompts_paging(self, registry):
        for n in range(5):
            registry.create_prompt(f"P{n}", "x")
        assert len(registry.list_prompts(limit=2)) == 2
        assert len(registry.list_prompts(limit=10, offset=3)) == 2

    def test_list_prompts_by_tag(self, registry):
        registry.create_prompt("A", "x", tags=["review"])
        registry.create_prompt("B", "x", tags=["other"])
        titles = [p.title for p in registry.list_prompts(tag="review")]
        assert titles == ["A"]

    def test_stats(self, registry):
        assert registry.stats() == {
            "total_prompts": 0,
            "total_versions": 0,
            "average_versions_per_prompt": 0,
        }
        a = registry.create_prompt("A", "x")
        registry.create_prompt("B", "x")
        registry.update_prompt(a.id, content="y")
        stats = registry.stats()
        assert stats["total_prompts"] == 2
        assert stats["total_versions"] == 3
        assert stats["average_versions_per_prompt"] == 1.5


class TestDeletePrompt:
    def test_delete_cascades(self, registry, mock_db):
        prompt = registry.create_prompt("T", "v1")
        registry.update_prompt(prompt.id, content="v2")
        other = registry.create_prompt("Other", "x")

        registry.delete_prompt(prompt.id)

        with pytest.raises(NotFoundError):
            registry.get_prompt(prompt.id)
        assert registry.list_versions(prompt.id) == []
        assert len(registry.list_versions(other.id)) == 1

    def test_delete_unknown(self, registry):
        with pytest.raises(NotFoundError):
            registry.delete_prompt("missing")


class TestRegistryOnSQL:
    def test_roundtrip(self, sql_db):
        registry = PromptRegistry(sql_db)
        prompt = registry.create_prompt("T", "hello", tags=["a", "b"])
        registry.update_prompt(prompt.id, content="hello world")

        loaded = registry.get_prompt(prompt.id)
        assert loaded.tags == ["a", "b"]
        assert loaded.version_count == 2
        assert loaded.created_at == prompt.created_at
        assert registry.get_current_version(prompt.id).content == "hello world"

    def test_delete_cascades(self, sql_db):
        registry = PromptRegistry(sql_db)
        prompt = registry.create_prompt("T", "v1")
        registry.update_prompt(prompt.id, content="v2")
        registry.delete_prompt(prompt.id)
        assert sql_db.select(VERSIONS) == []


class TestEvents:
    def test_lifecycle_is_logged(self, registry):
        with capture_logs() as logs:
            prompt = registry.create_prompt("T", "hello")
            registry.update_prompt(prompt.id, content="hello world")
            registry.delete_prompt(prompt.id)

        events = [entry["event"] for entry in logs]
        assert events == ["prompt.created", "prompt.updated", "prompt.deleted"]
        assert logs[1]["version"] == 2
        assert logs[2]["versions_removed"] == 2
