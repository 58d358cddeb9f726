"""
External capability providers: OCR, translation and speech synthesis.

Public API:
    - Provider: Abstract base class for all providers
    - ProviderError / ProviderErrorKind: Classified single-call failures
    - GoogleVisionOCR, GoogleTranslate, LibreTranslate, GoogleTTS
    - OfflineOCRGenerator, OfflineTranslationGenerator: terminal stand-ins
"""

from heritage.providers.base import (
    OcrRequest,
    OcrResult,
    Provider,
    ProviderError,
    ProviderErrorKind,
    SpeechRequest,
    SpeechResult,
    TranslationRequest,
    TranslationResult,
)
from heritage.providers.google_translate import GoogleTranslate
from heritage.providers.google_tts import GoogleTTS
from heritage.providers.google_vision import GoogleVisionOCR
from heritage.providers.libretranslate import LibreTranslate
from heritage.providers.offline import (
    OfflineGenerator,
    OfflineOCRGenerator,
    OfflineTranslationGenerator,
)

__all__ = [
    "Provider",
    "ProviderError",
    "ProviderErrorKind",
    "OcrRequest",
    "OcrResult",
    "TranslationRequest",
    "TranslationResult",
    "SpeechRequest",
    "SpeechResult",
    "GoogleVisionOCR",
    "GoogleTranslate",
    "LibreTranslate",
    "GoogleTTS",
    "OfflineGenerator",
    "OfflineOCRGenerator",
    "OfflineTranslationGenerator",
]
