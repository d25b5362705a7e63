# =============================================================================
# Unit Tests — Database Engine and Session Factory
# =============================================================================

from __future__ import annotations

import asyncio

from sqlalchemy import inspect

from agent_hub.db.engine import build_engine, build_session_factory, init_models


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


class TestBuildEngine:
    def test_sqlite_parent_directory_is_created(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "hub.db"
        engine = build_engine(f"sqlite+aiosqlite:///{path}")
        try:
            assert path.parent.is_dir()
        finally:
            _run(engine.dispose())

    def test_init_models_creates_tables(self, tmp_path):
        async def scenario():
            engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'hub.db'}")
            try:
                await init_models(engine)
                async with engine.connect() as conn:
                    return await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
            finally:
                await engine.dispose()

        assert {"chat_transcripts", "working_groups", "document_uploads"} <= _run(scenario())

    def test_session_factory_keeps_rows_loaded_after_commit(self, tmp_path):
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'hub.db'}")
        try:
            factory = build_session_factory(engine)
            assert factory.kw["expire_on_commit"] is False
        finally:
            _run(engine.dispose())
