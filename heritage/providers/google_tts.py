"""Google Cloud Text-to-Speech provider."""

import base64
import binascii
from typing import Optional

import httpx

from heritage.providers.base import (
    Provider,
    ProviderErrorKind,
    SpeechRequest,
    SpeechResult,
)


class GoogleTTS(Provider[SpeechRequest, SpeechResult]):
    """Synthesizes MP3 audio through `text:synthesize`, keyed by API key in the query string."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://texttospeech.googleapis.com",
        timeout_sec: float = 30.0,
        speaking_rate: float = 0.9,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, client=client)
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/v1/text:synthesize"
        self.speaking_rate = speaking_rate

    @property
    def name(self) -> str:
        return "google_tts"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def invoke(self, request: SpeechRequest) -> SpeechResult:
        payload = {
            "input": {"text": request.text},
            "voice": {
                "languageCode": request.voice_locale,
                "ssmlGender": "NEUTRAL",
            },
            "audioConfig": {
                "audioEncoding": "MP3",
                "speakingRate": self.speaking_rate,
                "pitch": 0,
            },
        }
        data = await self._post_json(self._url, payload, params={"key": self._api_key})

        content = data.get("audioContent")
        if not content or not isinstance(content, str):
            raise self._error("No audio content received",
                              ProviderErrorKind.MALFORMED_RESPONSE)
        try:
            audio = base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError) as e:
            raise self._error("audioContent is not valid base64",
                              ProviderErrorKind.MALFORMED_RESPONSE) from e

        return SpeechResult(audio=audio, content_type="audio/mpeg")
