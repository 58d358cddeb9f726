"""Google Cloud Translation v2 provider (primary translation)."""

from typing import Optional

import httpx

from heritage.providers.base import (
    Provider,
    ProviderErrorKind,
    TranslationRequest,
    TranslationResult,
)


class GoogleTranslate(Provider[TranslationRequest, TranslationResult]):
    """Key-authenticated JSON API; the source language is left to auto-detection."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://translation.googleapis.com",
        timeout_sec: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, client=client)
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/language/translate/v2"

    @property
    def name(self) -> str:
        return "google_translate"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def invoke(self, request: TranslationRequest) -> TranslationResult:
        payload = {
            "q": request.text,
            "target": request.target_language,
            "format": "text",
        }
        data = await self._post_json(self._url, payload, params={"key": self._api_key})

        try:
            translated = data["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._error("Missing data.translations[0].translatedText",
                              ProviderErrorKind.MALFORMED_RESPONSE) from e

        if not isinstance(translated, str):
            raise self._error("translatedText is not a string",
                              ProviderErrorKind.MALFORMED_RESPONSE)
        return TranslationResult(translated_text=translated)
