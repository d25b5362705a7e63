# =============================================================================
# Agent Hub — Multi-Agent Governance Research Service
# =============================================================================
# Persona chat over an ordered provider fallback chain, saved chat
# transcripts, and working groups: isolated document containers that answer
# queries with sources and an intelligence disclosure.
#
# Package structure:
#   agent_hub/
#   ├── api/          → FastAPI route handlers (status, chat, working groups)
#   ├── agents/       → personas, analyst, LangGraph query graph
#   ├── db/           → async engine, session factory, ORM records
#   ├── models/       → Pydantic V2 domain records and API schemas
#   └── services/     → provider chain, stores, registry, ingestion,
#                        retrieval, scoring, disclosure
# =============================================================================
