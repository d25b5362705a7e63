# =============================================================================
# Database Package
# =============================================================================
# Provides the async SQLAlchemy engine, session factory and ORM records.
#
# Key exports:
#   - build_engine / build_session_factory / init_models (engine.py)
#   - Base and the ChatTranscript, WorkingGroup, DocumentUpload records
#     (models.py)
# =============================================================================
