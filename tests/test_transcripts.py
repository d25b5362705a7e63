# =============================================================================
# Unit Tests — Chat Transcript Store
# =============================================================================
#
# The same scenarios run against the in-memory store and the SQL store
# (aiosqlite on a temporary file).
# =============================================================================

from __future__ import annotations

import asyncio

import pytest

from agent_hub.db.engine import build_engine, build_session_factory, init_models
from agent_hub.exceptions import SessionNotFound, TranscriptConflict
from agent_hub.models.domain import ChatMessage
from agent_hub.services.transcripts import InMemoryTranscriptStore, SqlTranscriptStore


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _messages(*contents: str) -> list[ChatMessage]:
    return [
        ChatMessage(
            id=f"m{i}",
            role="user" if i % 2 == 0 else "assistant",
            content=content,
            agent_type="archive",
        )
        for i, content in enumerate(contents)
    ]


@pytest.fixture(params=["memory", "sql"])
def with_store(request, tmp_path):
    """
    Yields a runner: with_store(scenario) runs `await scenario(store)` on a
    fresh store inside one event loop.
    """

    def runner(scenario):
        async def main():
            if request.param == "memory":
                return await scenario(InMemoryTranscriptStore())

            engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'transcripts.db'}")
            try:
                await init_models(engine)
                return await scenario(SqlTranscriptStore(build_session_factory(engine)))
            finally:
                await engine.dispose()

        return _run(main())

    return runner


class TestSaveAndLoad:
    def test_load_returns_saved_messages_in_order(self, with_store):
        async def scenario(store):
            msgs = _messages("first", "second", "third")
            await store.save("proj", "sess", msgs, {"title": "Intro"})
            return await store.load("proj", "sess")

        transcript = with_store(scenario)

        assert [m.content for m in transcript.messages] == ["first", "second", "third"]
        assert [m.id for m in transcript.messages] == ["m0", "m1", "m2"]
        assert transcript.metadata == {"title": "Intro"}
        assert transcript.revision == 1

    def test_later_save_wins(self, with_store):
        async def scenario(store):
            await store.save("proj", "sess", _messages("a", "b", "c"))
            await store.save("proj", "sess", _messages("x"))
            return await store.load("proj", "sess")

        transcript = with_store(scenario)

        assert [m.content for m in transcript.messages] == ["x"]
        assert transcript.revision == 2

    def test_load_unknown_session_is_empty(self, with_store):
        transcript = with_store(lambda store: store.load("proj", "nope"))
        assert transcript.messages == []
        assert transcript.revision == 0
        assert transcript.record_id is None

    def test_sessions_are_isolated(self, with_store):
        async def scenario(store):
            await store.save("proj", "s1", _messages("one"))
            await store.save("proj", "s2", _messages("two"))
            await store.save("other", "s1", _messages("three"))
            return (
                await store.load("proj", "s1"),
                await store.load("proj", "s2"),
                await store.load("other", "s1"),
            )

        s1, s2, other = with_store(scenario)
        assert s1.messages[0].content == "one"
        assert s2.messages[0].content == "two"
        assert other.messages[0].content == "three"

    def test_extra_message_fields_survive(self, with_store):
        async def scenario(store):
            msg = ChatMessage(id="m", role="user", content="hi", reaction="thumbs-up")
            await store.save("p", "s", [msg])
            return await store.load("p", "s")

        transcript = with_store(scenario)
        assert transcript.messages[0].model_extra == {"reaction": "thumbs-up"}


class TestRevisions:
    def test_matching_revision_is_accepted(self, with_store):
        async def scenario(store):
            first = await store.save("p", "s", _messages("a"))
            return await store.save("p", "s", _messages("a", "b"), expected_revision=first.revision)

        assert with_store(scenario).revision == 2

    def test_stale_revision_conflicts(self, with_store):
        async def scenario(store):
            await store.save("p", "s", _messages("a"))
            # Client B saves after both loaded revision 1
            await store.save("p", "s", _messages("a", "b"), expected_revision=1)
            with pytest.raises(TranscriptConflict) as exc_info:
                await store.save("p", "s", _messages("a", "c"), expected_revision=1)
            return exc_info.value, await store.load("p", "s")

        error, transcript = with_store(scenario)

        assert error.expected == 1
        assert error.actual == 2
        # The rejected save left nothing behind
        assert [m.content for m in transcript.messages] == ["a", "b"]

    def test_first_save_expects_revision_zero(self, with_store):
        async def scenario(store):
            return await store.save("p", "new", _messages("a"), expected_revision=0)

        assert with_store(scenario).revision == 1


class TestListAndDelete:
    def test_list_is_newest_first(self, with_store):
        async def scenario(store):
            await store.save("p", "old", _messages("a"), {"title": "Old"})
            await store.save("p", "new", _messages("a", "b"), {"title": "New"})
            return await store.list()

        summaries = with_store(scenario)

        assert [s.session_id for s in summaries] == ["new", "old"]
        assert summaries[0].message_count == 2
        assert summaries[0].title == "New"

    def test_list_filters_by_project(self, with_store):
        async def scenario(store):
            await store.save("p1", "s", _messages("a"))
            await store.save("p2", "s", _messages("a"))
            return await store.list(project_id="p2")

        assert [s.project_id for s in with_store(scenario)] == ["p2"]

    def test_delete_latest_falls_back_to_previous(self, with_store):
        async def scenario(store):
            await store.save("p", "s", _messages("v1"))
            latest = await store.save("p", "s", _messages("v2"))
            await store.delete(latest.record_id)
            return await store.load("p", "s")

        transcript = with_store(scenario)
        assert [m.content for m in transcript.messages] == ["v1"]

    def test_delete_unknown_record(self, with_store):
        async def scenario(store):
            with pytest.raises(SessionNotFound):
                await store.delete(9999)

        with_store(scenario)
