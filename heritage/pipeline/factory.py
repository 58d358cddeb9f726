"""
Builds the per-capability fallback chains from configuration.

Chains are computed once at process start: a provider without credentials is
simply absent from the list handed to its FallbackChain.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from heritage.config import Config
from heritage.pipeline.chain import FallbackChain
from heritage.providers import (
    GoogleTranslate,
    GoogleTTS,
    GoogleVisionOCR,
    LibreTranslate,
    OfflineOCRGenerator,
    OfflineTranslationGenerator,
)
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

OCR = "ocr"
TRANSLATION = "translation"
SPEECH = "speech"


@dataclass
class PipelineChains:
    """The three capability chains used by the orchestrator."""

    ocr: FallbackChain
    translation: FallbackChain
    speech: FallbackChain

    def describe(self) -> Dict[str, List[str]]:
        """Provider names per capability, generator last (health endpoint)."""
        summary = {}
        for chain in (self.ocr, self.translation, self.speech):
            names = list(chain.available_providers)
            if chain.generator is not None:
                names.append(chain.generator.name)
            summary[chain.capability] = names
        return summary


def build_chains(
    settings: Config,
    client: Optional[httpx.AsyncClient] = None,
    ocr_seed: Optional[int] = None
) -> PipelineChains:
    """
    Create the OCR, translation and speech chains.

    Priority order is fixed: Vision for OCR; Google Translate then
    LibreTranslate for translation; Google TTS for speech. OCR and
    translation end with offline generators when OFFLINE_FALLBACK_ENABLED;
    speech never has one.

    Args:
        settings: Loaded configuration
        client: Shared httpx client for all providers
        ocr_seed: Seed for the offline OCR generator (deterministic runs)
    """
    ocr_chain = FallbackChain(
        OCR,
        [
            GoogleVisionOCR(
                api_key=settings.GOOGLE_API_KEY,
                base_url=settings.GOOGLE_VISION_URL,
                timeout_sec=settings.OCR_TIMEOUT_SEC,
                client=client,
            ),
        ],
        generator=OfflineOCRGenerator(seed=ocr_seed) if settings.OFFLINE_FALLBACK_ENABLED else None,
    )

    translation_chain = FallbackChain(
        TRANSLATION,
        [
            GoogleTranslate(
                api_key=settings.GOOGLE_API_KEY,
                base_url=settings.GOOGLE_TRANSLATE_URL,
                timeout_sec=settings.TRANSLATE_TIMEOUT_SEC,
                client=client,
            ),
            LibreTranslate(
                base_url=settings.LIBRETRANSLATE_URL,
                api_key=settings.LIBRETRANSLATE_API_KEY,
                enabled=settings.LIBRETRANSLATE_ENABLED,
                timeout_sec=settings.TRANSLATE_TIMEOUT_SEC,
                client=client,
            ),
        ],
        generator=OfflineTranslationGenerator() if settings.OFFLINE_FALLBACK_ENABLED else None,
    )

    speech_chain = FallbackChain(
        SPEECH,
        [
            GoogleTTS(
                api_key=settings.tts_api_key,
                base_url=settings.GOOGLE_TTS_URL,
                timeout_sec=settings.TTS_TIMEOUT_SEC,
                client=client,
            ),
        ],
    )

    chains = PipelineChains(ocr=ocr_chain, translation=translation_chain, speech=speech_chain)
    logger.info("Pipeline chains built", chains=chains.describe())
    return chains
