"""
Offline generators used as the terminal step of a fallback chain.

They never touch the network and never fail, so the OCR and translation
chains always complete even without any configured provider.
"""

import random
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from heritage.providers.base import (
    OcrRequest,
    OcrResult,
    TranslationRequest,
    TranslationResult,
)

# Sample inscriptions with the script label and confidence reported for each
INSCRIPTION_SAMPLES: List[OcrResult] = [
    OcrResult("வாழ்க தமிழ் மொழி வாழ்க அறிவுடைமை", "Tamil", 0.94),
    OcrResult("ಭಾರತ ದೇಶದ ಪ್ರಾಚೀನ ಲಿಪಿ", "Kannada", 0.89),
    OcrResult("प्राचीन भारतीय लिपि संस्कृत", "Devanagari", 0.92),
    OcrResult("ಬ್ರಾಹ್ಮೀ ಲಿಪಿಯ ಪ್ರಾಚೀನ ಗ್ರಂಥ", "Brahmi-Kannada", 0.87),
    OcrResult("Ancient Tamil inscription from heritage site", "Brahmi-Tamil", 0.95),
]


class OfflineGenerator(ABC):
    """Base class for terminal generators: a name and a synchronous `generate`."""

    name = "offline"

    @abstractmethod
    def generate(self, request):
        """Produce a value for the request without touching the network."""


class OfflineOCRGenerator(OfflineGenerator):
    """Picks a plausible inscription from a fixed corpus."""

    name = "offline_ocr"

    def __init__(
        self,
        samples: Optional[Sequence[OcrResult]] = None,
        seed: Optional[int] = None
    ) -> None:
        self._samples = list(INSCRIPTION_SAMPLES if samples is None else samples)
        if not self._samples:
            raise ValueError("OfflineOCRGenerator needs at least one sample")
        self._rng = random.Random(seed)

    def generate(self, request: OcrRequest) -> OcrResult:
        sample = self._rng.choice(self._samples)
        # Fresh copy so callers cannot mutate the corpus
        return OcrResult(sample.text, sample.detected_script, sample.confidence)


class OfflineTranslationGenerator(OfflineGenerator):
    """Returns the source text unchanged when no translator is reachable."""

    name = "offline_translation"

    def generate(self, request: TranslationRequest) -> TranslationResult:
        return TranslationResult(translated_text=request.text)
