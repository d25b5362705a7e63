# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - status.py: health, persona catalogue, provider status and probe
#   - chat.py: persona chat and transcript persistence
#   - working_groups.py: registry, document uploads, queries, models
#   - deps.py: process-wide service instances for Depends()
# =============================================================================
