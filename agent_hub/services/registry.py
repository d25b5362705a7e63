# =============================================================================
# Working Group Registry
# =============================================================================
#
# Creates working groups from a default configuration template and serves
# read-only lookups. Groups are append-only once created: there is no
# public update or delete. The only mutation after creation is the usage
# metadata (document_count, last_activity) maintained by the ingestion
# pipeline through record_document_added().
#
# DEFAULT TEMPLATE (overridable per group via deep merge):
#   rag_container        qdrant, text-embedding-3-small, 1000/200 chunks,
#                        threshold 0.75, max 20 results
#   model_settings       settings.default_primary_model + fallbacks,
#                        temperature 0.3, max_tokens 4000
#   privacy_settings     selective, 365 days retention
#   disclosure           enabled, partial
#   document_processing  pdf/txt/md/docx/html, 50 MB
# =============================================================================

from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime
from typing import Any

from agent_hub.config import Settings
from agent_hub.exceptions import WorkingGroupNotFound
from agent_hub.models.domain import (
    ModelSettings,
    RagContainerConfig,
    WorkingGroup,
    WorkingGroupConfiguration,
    WorkingGroupMetadata,
    utcnow,
)
from agent_hub.services.repositories import DocumentRepository, WorkingGroupRepository

logger = logging.getLogger(__name__)


def deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge `overrides` onto a copy of `base`.

    Nested dicts are merged key by key; any other value (including lists)
    replaces the base value outright.
    """
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def new_working_group_id() -> str:
    return f"wg_{uuid.uuid4().hex[:12]}"


class WorkingGroupRegistry:
    def __init__(
        self,
        groups: WorkingGroupRepository,
        documents: DocumentRepository,
        settings: Settings,
    ) -> None:
        self._groups = groups
        self._documents = documents
        self._settings = settings

    def default_configuration(self, working_group_id: str) -> dict[str, Any]:
        """The configuration template every new group starts from."""
        rag = RagContainerConfig(
            container_id=f"container_{working_group_id}",
            metadata={
                "collection_name": f"wg_{working_group_id}",
                "dimensions": 1536,
                "distance_metric": "cosine",
            },
        )
        models = ModelSettings(
            primary_model=self._settings.default_primary_model,
            fallback_models=list(self._settings.default_fallback_models),
            model_provider=self._settings.default_model_provider,
        )
        return WorkingGroupConfiguration(
            rag_container=rag, model_settings=models,
        ).model_dump(mode="json")

    async def create(
        self,
        name: str,
        description: str,
        domain: str,
        created_by: str,
        config_overrides: dict[str, Any] | None = None,
    ) -> WorkingGroup:
        """
        Create a working group.

        Raises:
            pydantic.ValidationError: if the merged configuration is invalid.
        """
        working_group_id = new_working_group_id()
        configuration = deep_merge(
            self.default_configuration(working_group_id), config_overrides or {},
        )

        now = utcnow()
        group = WorkingGroup(
            id=working_group_id,
            name=name,
            description=description,
            domain=domain,
            configuration=WorkingGroupConfiguration.model_validate(configuration),
            metadata=WorkingGroupMetadata(
                created_at=now, updated_at=now, last_activity=now, created_by=created_by,
            ),
        )
        await self._groups.add(group)

        logger.info(
            "Created working group %s ('%s', domain=%s, primary_model=%s)",
            group.id, name, domain,
            group.configuration.model_settings.primary_model,
        )
        return group

    async def get(self, working_group_id: str) -> WorkingGroup:
        group = await self._groups.get(working_group_id)
        if group is None:
            raise WorkingGroupNotFound(working_group_id)
        return group

    async def list(self) -> list[WorkingGroup]:
        return await self._groups.list()

    async def record_document_added(
        self, working_group_id: str, at: datetime | None = None,
    ) -> WorkingGroup:
        """Recount completed documents and advance last_activity."""
        group = await self.get(working_group_id)
        now = at or utcnow()
        group.metadata.document_count = await self._documents.count_completed(
            working_group_id
        )
        # last_activity never moves backwards
        group.metadata.last_activity = max(now, group.metadata.last_activity)
        group.metadata.updated_at = group.metadata.last_activity
        return await self._groups.update(group)
