# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
#   - domain.py: records shared by services and storage (transcripts,
#     working groups, documents, disclosures, query results)
#   - requests.py / responses.py: API-only shapes
#
# ORM rows live separately in agent_hub/db/models.py and store these
# records as JSON.
# =============================================================================
