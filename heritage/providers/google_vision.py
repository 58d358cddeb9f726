"""Google Cloud Vision OCR provider (images:annotate, TEXT_DETECTION)."""

import base64
from typing import Optional

import httpx

from heritage.providers.base import (
    OcrRequest,
    OcrResult,
    Provider,
    ProviderErrorKind,
)
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.9
AUTO_DETECTED = "Auto-detected"

# google.rpc.Code values reported inside responses[0].error
_RPC_CODE_KINDS = {
    7: ProviderErrorKind.UNAUTHORIZED,       # PERMISSION_DENIED
    16: ProviderErrorKind.UNAUTHORIZED,      # UNAUTHENTICATED
    8: ProviderErrorKind.RATE_LIMITED,       # RESOURCE_EXHAUSTED
    4: ProviderErrorKind.TIMEOUT,            # DEADLINE_EXCEEDED
    3: ProviderErrorKind.MALFORMED_RESPONSE, # INVALID_ARGUMENT (bad image)
}


class GoogleVisionOCR(Provider[OcrRequest, OcrResult]):
    """OCR through the Cloud Vision `images:annotate` endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://vision.googleapis.com",
        timeout_sec: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, client=client)
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/v1/images:annotate"

    @property
    def name(self) -> str:
        return "google_vision"

    @property
    def is_available(self) -> bool:
        return bool(self._api_key)

    async def invoke(self, request: OcrRequest) -> OcrResult:
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(request.image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
                }
            ]
        }
        data = await self._post_json(self._url, payload, params={"key": self._api_key})
        return self._parse_response(data)

    def _parse_response(self, data: dict) -> OcrResult:
        """
        Read responses[0].textAnnotations[0] from an annotate response.

        The first annotation holds the full recognized text; its `locale`
        (when reported) is used as the script label.
        """
        responses = data.get("responses")
        if not isinstance(responses, list) or not responses:
            raise self._error("Missing 'responses' in annotate result",
                              ProviderErrorKind.MALFORMED_RESPONSE)

        first = responses[0] or {}
        error = first.get("error")
        if error:
            kind = _RPC_CODE_KINDS.get(error.get("code"), ProviderErrorKind.UNAVAILABLE)
            raise self._error(error.get("message", "Vision request failed"), kind)

        annotations = first.get("textAnnotations") or []
        if not annotations or not (annotations[0].get("description") or "").strip():
            raise self._error("No text detected in image",
                              ProviderErrorKind.MALFORMED_RESPONSE)

        annotation = annotations[0]
        confidence = annotation.get("confidence") or DEFAULT_CONFIDENCE
        try:
            confidence = min(max(float(confidence), 0.0), 1.0)
        except (TypeError, ValueError):
            confidence = DEFAULT_CONFIDENCE

        result = OcrResult(
            text=annotation["description"].strip(),
            detected_script=annotation.get("locale") or AUTO_DETECTED,
            confidence=confidence,
        )
        logger.debug(
            "Vision annotation parsed",
            provider=self.name,
            text_length=len(result.text),
            detected_script=result.detected_script
        )
        return result
