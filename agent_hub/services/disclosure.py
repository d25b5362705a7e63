# =============================================================================
# Intelligence Disclosure — Policy and Assembly
# =============================================================================
#
# Builds the record that accompanies an answer (or an ingested document)
# and states which model, sources and confidence values produced it.
#
# POLICY (per working group, intelligence_disclosure settings):
#   requested=False or enabled=False → no disclosure at all
#   minimal → model_info
#   partial → model_info, source_attribution, confidence_scores
#   full    → all of the above plus processing_steps
#
# Each include_* flag can further suppress its section at any level.
# The reasoning chain is always empty: no chain-of-thought is captured.
# =============================================================================

from __future__ import annotations

from agent_hub.models.domain import (
    ConfidenceScores,
    DisclosureMetadata,
    DisclosureSettings,
    IntelligenceDisclosure,
    ModelInfo,
    ProcessingStep,
    SourceAttribution,
    WorkingGroup,
)

_LEVEL_SECTIONS: dict[str, frozenset[str]] = {
    "minimal": frozenset({"model_info"}),
    "partial": frozenset({"model_info", "source_attribution", "confidence_scores"}),
    "full": frozenset(
        {"model_info", "source_attribution", "confidence_scores", "processing_steps"}
    ),
}


def allowed_sections(policy: DisclosureSettings) -> frozenset[str]:
    """Sections a disclosure may contain under this policy."""
    if not policy.enabled:
        return frozenset()
    flags = {
        "model_info": policy.include_model_info,
        "source_attribution": policy.include_source_attribution,
        "confidence_scores": policy.include_confidence_scores,
        "processing_steps": policy.include_processing_steps,
    }
    return frozenset(
        section for section in _LEVEL_SECTIONS[policy.disclosure_level] if flags[section]
    )


def build_model_info(
    group: WorkingGroup,
    model_used: str,
    served_by: str | None = None,
    served_model: str | None = None,
) -> ModelInfo:
    model_settings = group.configuration.model_settings
    return ModelInfo(
        primary_model=model_used,
        fallback_models=list(model_settings.fallback_models),
        model_provider=model_settings.model_provider,
        parameters={
            "temperature": model_settings.temperature,
            "max_tokens": model_settings.max_tokens,
            "top_p": model_settings.top_p,
            "frequency_penalty": model_settings.frequency_penalty,
            "presence_penalty": model_settings.presence_penalty,
            **model_settings.custom_parameters,
        },
        served_by=served_by,
        served_model=served_model,
    )


def build_disclosure(
    group: WorkingGroup,
    model_used: str,
    *,
    requested: bool = True,
    served_by: str | None = None,
    served_model: str | None = None,
    sources: list[SourceAttribution] | None = None,
    confidence: ConfidenceScores | None = None,
    steps: list[ProcessingStep] | None = None,
) -> IntelligenceDisclosure | None:
    """
    Assemble a disclosure for `group`, or None when the policy forbids one.

    `model_used` is the model the request asked for (override or the
    group's primary model); `served_by`/`served_model` name the provider
    tier that actually produced the text.
    """
    policy = group.configuration.intelligence_disclosure
    if not requested or not policy.enabled:
        return None

    sections = allowed_sections(policy)
    return IntelligenceDisclosure(
        model_info=(
            build_model_info(group, model_used, served_by, served_model)
            if "model_info" in sections else None
        ),
        processing_steps=list(steps or []) if "processing_steps" in sections else [],
        source_attribution=(
            list(sources or []) if "source_attribution" in sections else []
        ),
        confidence_scores=confidence if "confidence_scores" in sections else None,
        reasoning_chain=[],
        metadata=DisclosureMetadata(
            disclosure_level=policy.disclosure_level,
            working_group_id=group.id,
        ),
    )
