"""
FallbackChain - Tries the providers of one capability in priority order.
"""
import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from heritage.errors import NoProviderAvailable
from heritage.providers.base import Provider, ProviderError, ProviderErrorKind
from heritage.providers.offline import OfflineGenerator
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


@dataclass
class AttemptResult:
    """Outcome of one provider (or generator) attempt within a chain run."""

    capability: str
    provider_name: str
    succeeded: bool
    value: Any = None
    error: Optional[ProviderError] = None
    latency_ms: float = 0.0


@dataclass
class ChainOutcome(Generic[ResultT]):
    """Value produced by a chain run plus the attempts that led to it."""

    value: ResultT
    provider_name: str
    attempts: List[AttemptResult] = field(default_factory=list)
    used_generator: bool = False


class FallbackChain(Generic[ResultT]):
    """
    Orchestrates fallback between the providers of a single capability.

    Providers are tried strictly in the configured order and the first
    success wins. Every ProviderError kind continues the chain; the next
    provider is the retry. When all providers fail the optional offline
    generator produces the value, otherwise NoProviderAvailable is raised.
    """

    def __init__(
        self,
        capability: str,
        providers: Sequence[Provider],
        generator: Optional[OfflineGenerator] = None
    ):
        """
        Initialize FallbackChain.

        Args:
            capability: Capability name used in logs and errors ("ocr", ...)
            providers: Providers in priority order; unavailable ones are dropped
            generator: Terminal offline generator, if the capability has one
        """
        self.capability = capability
        self.generator = generator

        # Filter to only available providers, order preserved
        self._providers = [p for p in providers if p.is_available]

        skipped = [p.name for p in providers if not p.is_available]
        logger.info(
            "FallbackChain initialized",
            capability=capability,
            providers=self.available_providers,
            skipped=skipped,
            generator=generator.name if generator else None
        )

    @property
    def available_providers(self) -> List[str]:
        """Return names of available providers in priority order."""
        return [p.name for p in self._providers]

    @property
    def providers(self) -> List[Provider]:
        return list(self._providers)

    @property
    def has_generator(self) -> bool:
        return self.generator is not None

    async def run(self, request: Any) -> ChainOutcome[ResultT]:
        """
        Try providers in order until one succeeds.

        Args:
            request: Capability input passed unchanged to every provider

        Returns:
            ChainOutcome with the first successful value

        Raises:
            NoProviderAvailable: If all providers fail and there is no generator
        """
        attempts: List[AttemptResult] = []

        for provider in self._providers:
            attempt = await self._attempt(provider, request)
            attempts.append(attempt)
            if attempt.succeeded:
                return ChainOutcome(
                    value=attempt.value,
                    provider_name=provider.name,
                    attempts=attempts,
                )

        if self.generator is not None:
            start_time = time.perf_counter()
            value = self.generator.generate(request)
            latency_ms = (time.perf_counter() - start_time) * 1000
            attempts.append(AttemptResult(
                capability=self.capability,
                provider_name=self.generator.name,
                succeeded=True,
                value=value,
                latency_ms=latency_ms,
            ))
            logger.warning(
                "Providers exhausted, using offline generator",
                capability=self.capability,
                generator=self.generator.name,
                failed=[a.provider_name for a in attempts if not a.succeeded]
            )
            return ChainOutcome(
                value=value,
                provider_name=self.generator.name,
                attempts=attempts,
                used_generator=True,
            )

        logger.error(
            "All providers failed",
            capability=self.capability,
            providers=self.available_providers,
            errors=[str(a.error) for a in attempts]
        )
        raise NoProviderAvailable(self.capability, attempts)

    async def _attempt(self, provider: Provider, request: Any) -> AttemptResult:
        """Invoke one provider under its timeout and record the outcome."""
        logger.info(
            "Trying provider",
            capability=self.capability,
            provider=provider.name
        )
        start_time = time.perf_counter()
        error: ProviderError

        try:
            value = await asyncio.wait_for(
                provider.invoke(request),
                timeout=provider.timeout_sec
            )
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Provider call successful",
                capability=self.capability,
                provider=provider.name,
                latency_ms=round(latency_ms, 2)
            )
            return AttemptResult(
                capability=self.capability,
                provider_name=provider.name,
                succeeded=True,
                value=value,
                latency_ms=latency_ms,
            )

        except asyncio.TimeoutError:
            error = ProviderError(
                f"Timed out after {provider.timeout_sec}s",
                ProviderErrorKind.TIMEOUT,
                provider=provider.name
            )
        except ProviderError as e:
            error = e
        except Exception as e:
            # Unclassified client bug or library error; the chain still moves on
            error = ProviderError(
                f"{type(e).__name__}: {e}",
                ProviderErrorKind.UNAVAILABLE,
                provider=provider.name
            )

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.warning(
            "Provider failed, continuing chain",
            capability=self.capability,
            provider=provider.name,
            error_kind=error.kind.value,
            error=str(error),
            latency_ms=round(latency_ms, 2)
        )
        return AttemptResult(
            capability=self.capability,
            provider_name=provider.name,
            succeeded=False,
            error=error,
            latency_ms=latency_ms,
        )
