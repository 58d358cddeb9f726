"""LibreTranslate provider (secondary translation)."""

from typing import Optional

import httpx

from heritage.providers.base import (
    Provider,
    ProviderErrorKind,
    TranslationRequest,
    TranslationResult,
)


class LibreTranslate(Provider[TranslationRequest, TranslationResult]):
    """
    Open REST translate endpoint.

    Public instances accept anonymous requests, so the provider is available
    whenever it is enabled; an API key is forwarded when one is configured.
    """

    def __init__(
        self,
        base_url: str = "https://libretranslate.com",
        api_key: Optional[str] = None,
        enabled: bool = True,
        timeout_sec: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, client=client)
        self._url = f"{base_url.rstrip('/')}/translate"
        self._api_key = api_key
        self._enabled = enabled

    @property
    def name(self) -> str:
        return "libretranslate"

    @property
    def is_available(self) -> bool:
        return self._enabled

    async def invoke(self, request: TranslationRequest) -> TranslationResult:
        payload = {
            "q": request.text,
            "source": "auto",
            "target": request.target_language,
            "format": "text",
        }
        if self._api_key:
            payload["api_key"] = self._api_key

        data = await self._post_json(self._url, payload)

        translated = data.get("translatedText")
        if not isinstance(translated, str):
            # LibreTranslate reports failures as {"error": "..."} with a 200 on some versions
            message = data.get("error") or "Missing translatedText"
            raise self._error(str(message), ProviderErrorKind.MALFORMED_RESPONSE)
        return TranslationResult(translated_text=translated)
