# =============================================================================
# Unit Tests — Working Group Registry and Repositories
# =============================================================================

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from pydantic import ValidationError

from agent_hub.config import Settings
from agent_hub.db.engine import build_engine, build_session_factory, init_models
from agent_hub.exceptions import WorkingGroupNotFound
from agent_hub.models.domain import (
    DocumentMetadata,
    DocumentUpload,
    ModelInfo,
    ModelSettings,
    ProcessingStatus,
    WorkingGroupConfiguration,
)
from agent_hub.models.responses import WorkingGroupModelsResponse
from agent_hub.services.registry import WorkingGroupRegistry, deep_merge
from agent_hub.services.repositories import (
    InMemoryDocumentRepository,
    InMemoryWorkingGroupRepository,
    SqlDocumentRepository,
    SqlWorkingGroupRepository,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _settings() -> Settings:
    return Settings(
        default_primary_model="gpt-3.5-turbo",
        default_fallback_models=["gpt-4", "claude-3-haiku"],
        _env_file=None,
    )


def _memory_registry() -> tuple[WorkingGroupRegistry, InMemoryDocumentRepository]:
    documents = InMemoryDocumentRepository()
    return WorkingGroupRegistry(InMemoryWorkingGroupRepository(), documents, _settings()), documents


def _document(doc_id: str, group_id: str, status=ProcessingStatus.COMPLETED) -> DocumentUpload:
    return DocumentUpload(
        id=doc_id,
        working_group_id=group_id,
        file_name=f"{doc_id}.txt",
        original_name="notes.txt",
        file_size=5,
        mime_type="text/plain",
        content="hello",
        metadata=DocumentMetadata(title="Notes"),
        processing_status=status,
    )


class TestDeepMerge:
    def test_nested_keys_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        assert deep_merge(base, {"a": {"y": 3}}) == {"a": {"x": 1, "y": 3}, "b": 1}

    def test_lists_are_replaced(self):
        assert deep_merge({"l": [1, 2]}, {"l": [3]}) == {"l": [3]}

    def test_base_is_not_mutated(self):
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestCreate:
    def test_defaults(self):
        registry, _ = _memory_registry()
        group = _run(registry.create("Tech", "Standards work", "technical-standards", "system"))

        config = group.configuration
        assert group.id.startswith("wg_")
        assert group.status == "active"
        assert config.model_settings.primary_model == "gpt-3.5-turbo"
        assert config.model_settings.fallback_models == ["gpt-4", "claude-3-haiku"]
        assert config.privacy_settings.privacy_level == "selective"
        assert config.intelligence_disclosure.disclosure_level == "partial"
        assert config.document_processing.supported_formats == ["pdf", "txt", "md", "docx", "html"]
        assert config.rag_container.container_id == f"container_{group.id}"
        assert group.metadata.document_count == 0
        assert group.metadata.participant_count == 0
        assert group.metadata.created_by == "system"

    def test_overrides_are_deep_merged(self):
        registry, _ = _memory_registry()
        group = _run(registry.create(
            "Privacy Research", "", "privacy-rights", "alice",
            {"model_settings": {"primary_model": "model-A"},
             "privacy_settings": {"privacy_level": "maximum"}},
        ))

        assert group.configuration.model_settings.primary_model == "model-A"
        # Sibling keys keep their defaults
        assert group.configuration.model_settings.fallback_models == ["gpt-4", "claude-3-haiku"]
        assert group.configuration.privacy_settings.privacy_level == "maximum"
        assert group.configuration.privacy_settings.data_retention == 365

    def test_invalid_override_rejected(self):
        registry, _ = _memory_registry()
        with pytest.raises(ValidationError):
            _run(registry.create(
                "Bad", "", "d", "x",
                {"intelligence_disclosure": {"disclosure_level": "everything"}},
            ))
        assert _run(registry.list()) == []

    def test_model_prefixed_fields_are_allowed(self):
        for cls in (ModelSettings, ModelInfo, WorkingGroupConfiguration, WorkingGroupModelsResponse):
            assert cls.model_config["protected_namespaces"] == ()

    def test_ids_are_unique(self):
        registry, _ = _memory_registry()
        ids = {_run(registry.create(f"g{i}", "", "d", "x")).id for i in range(5)}
        assert len(ids) == 5


class TestLookups:
    def test_get_unknown(self):
        registry, _ = _memory_registry()
        with pytest.raises(WorkingGroupNotFound):
            _run(registry.get("wg_missing"))

    def test_list_in_creation_order(self):
        registry, _ = _memory_registry()
        for name in ("one", "two", "three"):
            _run(registry.create(name, "", "d", "x"))
        assert [g.name for g in _run(registry.list())] == ["one", "two", "three"]

    def test_returned_copies_do_not_alias_storage(self):
        registry, _ = _memory_registry()
        group = _run(registry.create("g", "", "d", "x"))
        fetched = _run(registry.get(group.id))
        fetched.metadata.document_count = 99
        assert _run(registry.get(group.id)).metadata.document_count == 0


class TestRecordDocumentAdded:
    def test_count_matches_completed_documents(self):
        registry, documents = _memory_registry()
        group = _run(registry.create("g", "", "d", "x"))
        _run(documents.add(_document("doc_1", group.id)))
        _run(documents.add(_document("doc_2", group.id, ProcessingStatus.FAILED)))

        updated = _run(registry.record_document_added(group.id))

        assert updated.metadata.document_count == 1

    def test_last_activity_advances_and_never_regresses(self):
        registry, _ = _memory_registry()
        group = _run(registry.create("g", "", "d", "x"))
        created = group.metadata.last_activity

        later = _run(registry.record_document_added(group.id, at=created + timedelta(seconds=5)))
        assert later.metadata.last_activity == created + timedelta(seconds=5)

        earlier = _run(registry.record_document_added(group.id, at=created))
        assert earlier.metadata.last_activity == created + timedelta(seconds=5)


class TestSqlRepositories:
    def test_round_trip(self, tmp_path):
        async def scenario():
            engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'groups.db'}")
            try:
                await init_models(engine)
                factory = build_session_factory(engine)
                documents = SqlDocumentRepository(factory)
                registry = WorkingGroupRegistry(
                    SqlWorkingGroupRepository(factory), documents, _settings(),
                )

                group = await registry.create(
                    "Privacy Research", "desc", "privacy-rights", "alice",
                    {"model_settings": {"primary_model": "model-A"}},
                )
                await documents.add(_document("doc_1", group.id))
                await documents.add(_document("doc_2", group.id, ProcessingStatus.FAILED))
                await registry.record_document_added(group.id)

                return (
                    group,
                    await registry.get(group.id),
                    await registry.list(),
                    await documents.list_for_group(group.id),
                    await documents.list_for_group(group.id, status=ProcessingStatus.FAILED),
                    await documents.list_for_group(group.id, limit=1, offset=1),
                    await documents.get("doc_1"),
                )
            finally:
                await engine.dispose()

        created, fetched, listed, all_docs, failed, page, doc = _run(scenario())

        assert fetched.id == created.id
        assert fetched.configuration == created.configuration
        assert fetched.metadata.document_count == 1
        assert [g.id for g in listed] == [created.id]
        assert {d.id for d in all_docs} == {"doc_1", "doc_2"}
        assert [d.id for d in failed] == ["doc_2"]
        assert len(page) == 1
        assert doc.content == "hello"
        assert doc.metadata.title == "Notes"
