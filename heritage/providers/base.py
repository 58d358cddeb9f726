"""
Base abstractions for external capability providers.

Every provider wraps exactly one external endpoint (OCR, translation or
speech synthesis), performs one bounded network call per invocation and
reports any failure as a ProviderError with a classified kind. Providers
never retry and never substitute data; both concerns belong to the
FallbackChain.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

import httpx

from heritage.utils.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class OcrRequest:
    """Image bytes submitted for text recognition."""

    image: bytes


@dataclass
class OcrResult:
    """
    Recognized text from an image.

    Attributes:
        text: The recognized text
        detected_script: Provider-reported label, or "Auto-detected". Vision
            reports a language code here ("ta"), offline samples a script name
        confidence: Whatever the winning provider reports (0.0 to 1.0);
            not comparable across providers
    """

    text: str
    detected_script: str = "Auto-detected"
    confidence: float = 0.9

    def __post_init__(self) -> None:
        """Validate confidence score is within valid range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


@dataclass
class TranslationRequest:
    """Text to translate; the source language is always auto-detected."""

    text: str
    target_language: str


@dataclass
class TranslationResult:
    translated_text: str


@dataclass
class SpeechRequest:
    text: str
    voice_locale: str


@dataclass
class SpeechResult:
    """Raw synthesized audio."""

    audio: bytes
    content_type: str = "audio/mpeg"


# ============================================================================
# Exceptions
# ============================================================================


class ProviderErrorKind(str, Enum):
    """Classified reasons a single provider call can fail."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    UNAVAILABLE = "unavailable"


class ProviderError(Exception):
    """
    Failure of a single provider call.

    Raised by provider clients and consumed by the FallbackChain, which
    continues with the next provider for every kind.
    """

    def __init__(
        self,
        message: str,
        kind: ProviderErrorKind,
        provider: Optional[str] = None
    ) -> None:
        self.kind = kind
        self.provider = provider
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with provider name if available."""
        if self.provider:
            return f"[{self.provider}] {self.kind.value}: {super().__str__()}"
        return f"{self.kind.value}: {super().__str__()}"


def classify_status(status_code: int) -> ProviderErrorKind:
    """Map an HTTP error status to a provider error kind."""
    if status_code in (401, 403):
        return ProviderErrorKind.UNAUTHORIZED
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status_code in (408, 504):
        return ProviderErrorKind.TIMEOUT
    return ProviderErrorKind.UNAVAILABLE


# ============================================================================
# Abstract Base Class
# ============================================================================

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")


class Provider(ABC, Generic[RequestT, ResultT]):
    """
    Abstract base class for capability providers.

    Subclasses implement `invoke`; HTTP-backed providers use `_post_json`,
    which performs the single bounded call and classifies transport and
    decoding failures.
    """

    def __init__(
        self,
        timeout_sec: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        """
        Args:
            timeout_sec: Upper bound for one invocation
            client: Shared httpx client; a short-lived one is created per
                call when omitted
        """
        self.timeout_sec = timeout_sec
        self._client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs and attempt records."""

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured (credentials present)."""
        return True

    @abstractmethod
    async def invoke(self, request: RequestT) -> ResultT:
        """
        Perform one call against the provider.

        Raises:
            ProviderError: On any transport, status or parsing failure
        """

    def _error(self, message: str, kind: ProviderErrorKind) -> ProviderError:
        return ProviderError(message, kind, provider=self.name)

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        POST a JSON payload and return the decoded JSON object.

        Raises:
            ProviderError: Classified by status code, transport error or
                undecodable body
        """
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, json=payload, params=params, timeout=self.timeout_sec
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
                    response = await client.post(url, json=payload, params=params)
        except httpx.TimeoutException as e:
            raise self._error(f"Request timed out: {e}", ProviderErrorKind.TIMEOUT) from e
        except httpx.HTTPError as e:
            raise self._error(f"Request failed: {e}", ProviderErrorKind.UNAVAILABLE) from e

        if response.status_code >= 400:
            kind = classify_status(response.status_code)
            logger.debug(
                "Provider returned error status",
                provider=self.name,
                status=response.status_code,
                body=response.text[:500]
            )
            raise self._error(f"HTTP {response.status_code}", kind)

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise self._error(
                "Response body is not valid JSON", ProviderErrorKind.MALFORMED_RESPONSE
            ) from e

        if not isinstance(data, dict):
            raise self._error(
                f"Expected JSON object, got {type(data).__name__}",
                ProviderErrorKind.MALFORMED_RESPONSE
            )
        return data
