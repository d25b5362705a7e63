# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the core business logic, separated from API handlers:
#   - llm.py: LLM providers (Anthropic, OpenAI-compatible) and tiers
#   - provider_chain.py: ordered fallback across tiers
#   - transcripts.py: chat transcript stores (memory, SQL)
#   - repositories.py: working group and document stores (memory, SQL)
#   - registry.py: working group creation and lookup
#   - parser.py: text extraction (UTF-8, Docling)
#   - ingestion.py: upload validation and processing
#   - retrieval.py / scoring.py / disclosure.py: query-time helpers
# =============================================================================
