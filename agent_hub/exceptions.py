# =============================================================================
# Domain Exceptions
# =============================================================================
#
# Raised by the service layer and translated to HTTP status codes by the
# route handlers in agent_hub/api/.
#
#   ProviderUnavailable       — internal to the provider chain, never surfaced
#   WorkingGroupNotFound      — 404
#   SessionNotFound           — 404
#   UnsupportedDocumentFormat — 415
#   DocumentTooLarge          — 413
#   TranscriptConflict        — 409
# =============================================================================

from __future__ import annotations


class AgentHubError(Exception):
    """Base class for all domain errors."""


class ProviderUnavailable(AgentHubError):
    """A single provider tier failed (timeout, auth, network, bad payload)."""

    def __init__(self, tier: str, reason: str) -> None:
        super().__init__(f"Provider '{tier}' unavailable: {reason}")
        self.tier = tier
        self.reason = reason


class WorkingGroupNotFound(AgentHubError):
    def __init__(self, working_group_id: str) -> None:
        super().__init__(f"Working group '{working_group_id}' not found")
        self.working_group_id = working_group_id


class SessionNotFound(AgentHubError):
    """No saved transcript record matches the requested identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Chat transcript '{identifier}' not found")
        self.identifier = identifier


class UnsupportedDocumentFormat(AgentHubError):
    def __init__(self, mime_type: str, allowed: list[str]) -> None:
        super().__init__(
            f"Unsupported document type '{mime_type}'. "
            f"Allowed types: {', '.join(allowed)}"
        )
        self.mime_type = mime_type
        self.allowed = allowed


class DocumentTooLarge(AgentHubError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Document is {size} bytes; the working group accepts at most "
            f"{limit} bytes"
        )
        self.size = size
        self.limit = limit


class TranscriptConflict(AgentHubError):
    """The caller's revision token does not match the latest saved record."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Transcript was modified concurrently: expected revision "
            f"{expected}, latest is {actual}"
        )
        self.expected = expected
        self.actual = actual
