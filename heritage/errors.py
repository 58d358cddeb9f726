"""Typed failure modes shared by the pipeline, the stores and the HTTP API.

Provider-level failures (``ProviderError``) are defined next to the provider
clients; they are recovered by the fallback chain and only reach callers
folded into ``NoProviderAvailable``.
"""

from typing import Optional, Sequence


class HeritageError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error_kind = "internal_error"


class ValidationError(HeritageError):
    """Raised when request parameters (language, file, ids) are invalid."""

    status_code = 400
    error_kind = "validation_error"


class Unauthorized(HeritageError):
    """Raised when the caller credential is missing or invalid."""

    status_code = 401
    error_kind = "unauthorized"


class NotFound(HeritageError):
    """Raised when a referenced upload or translation does not exist for the caller."""

    status_code = 404
    error_kind = "not_found"

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")


class NoProviderAvailable(HeritageError):
    """Raised when a capability chain is exhausted and has no offline generator."""

    status_code = 503
    error_kind = "no_provider_available"

    def __init__(self, capability: str, attempts: Optional[Sequence] = None) -> None:
        self.capability = capability
        self.attempts = list(attempts or [])
        if self.attempts:
            message = f"All {capability} providers failed"
        else:
            message = f"No {capability} provider configured"
        super().__init__(message)


class StorageError(HeritageError):
    """Raised when the binary store or the record store fails to write or read."""

    status_code = 500
    error_kind = "storage_error"


__all__ = [
    "HeritageError",
    "ValidationError",
    "Unauthorized",
    "NotFound",
    "NoProviderAvailable",
    "StorageError",
]
