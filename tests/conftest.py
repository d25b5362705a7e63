# =============================================================================
# Test Configuration
# =============================================================================
#
# Pins settings before any agent_hub module is imported: in-memory storage,
# an in-memory SQLite URL for the module-level engine, and no provider
# credentials, so no test can reach a real LLM endpoint or write ./data.
# Environment variables take priority over a developer's .env file.
# =============================================================================

import os

os.environ["STORAGE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RETRIEVAL_STRATEGY"] = "all"
for _key in ("KWAAI_API_KEY", "OPENAI_API_KEY", "PHALA_API_KEY", "ANTHROPIC_API_KEY"):
    os.environ[_key] = ""
