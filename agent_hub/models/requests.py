# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API. FastAPI uses
# them for request body validation (automatic 422 errors) and for the
# OpenAPI docs at /docs.
#
# Document uploads are multipart forms, so their fields are declared as
# Form(...) parameters in agent_hub/api/working_groups.py instead.
# =============================================================================

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agent_hub.models.domain import ChatMessage


class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    Example:
        {
            "message": "What are the current approaches to stablecoin regulation?",
            "agent_type": "codex",
            "session_type": "regulatory",
            "multi_agent": false
        }
    """

    message: str = Field(..., min_length=1, max_length=10000)

    # Unknown agent types are answered by the multi-agent persona
    agent_type: str | None = Field(
        default="archive",
        description="Persona: archive, codex, discourse or multi",
        examples=["archive"],
    )
    session_type: str = Field(
        default="general",
        max_length=200,
        description="Session label injected into the persona prompt",
        examples=["regulatory"],
    )
    multi_agent: bool = Field(
        default=False,
        description="Answer as the multi-agent coordinator regardless of agent_type",
    )


class SaveTranscriptRequest(BaseModel):
    """
    Request body for POST /chat/transcripts.

    `expected_revision` is the revision the client last loaded. When given,
    the save fails with 409 if someone else saved in between. Omit it for
    last-writer-wins.
    """

    project_id: str = Field(..., min_length=1, max_length=255)
    session_id: str = Field(..., min_length=1, max_length=255)
    messages: list[ChatMessage] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    expected_revision: int | None = Field(default=None, ge=0)


class CreateWorkingGroupRequest(BaseModel):
    """
    Request body for POST /working-groups.

    `config` is deep-merged onto the default configuration, so only the
    keys being changed need to be sent.
    """

    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field(default="", max_length=5000)
    domain: str = Field(..., min_length=1, max_length=255)
    created_by: str = Field(default="anonymous", max_length=255)
    config: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Privacy Research",
                    "description": "Privacy-preserving governance research",
                    "domain": "privacy-rights",
                    "created_by": "alice",
                    "config": {
                        "model_settings": {"primary_model": "gpt-4"},
                        "intelligence_disclosure": {"disclosure_level": "full"},
                    },
                }
            ]
        }
    )


class QueryRequest(BaseModel):
    """Request body for POST /working-groups/{id}/query."""

    query: str = Field(..., min_length=1, max_length=4000)
    model_override: str | None = Field(default=None, max_length=200)
    include_disclosure: bool = True
    max_results: int | None = Field(default=None, ge=1, le=100)
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)

    model_config = ConfigDict(protected_namespaces=())
