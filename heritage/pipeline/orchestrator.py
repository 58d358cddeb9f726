"""
Pipeline orchestrator: image -> OCR -> translation -> record, and
record -> speech -> stored audio -> record update.

Both entry points are linear: each stage consumes the previous stage's
output, and a failure aborts the remaining stages. Persistence happens only
in the final write of each run, so an aborted or cancelled run leaves no
partially-applied Translation.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Optional

from heritage.db.models import Translation
from heritage.db.store import ResultStore
from heritage.errors import HeritageError, NotFound, Unauthorized, ValidationError
from heritage.pipeline.factory import PipelineChains
from heritage.pipeline.locales import voice_locale_for
from heritage.providers.base import (
    OcrRequest,
    OcrResult,
    SpeechRequest,
    SpeechResult,
    TranslationRequest,
    TranslationResult,
)
from heritage.storage.object_store import ObjectStore, scoped_key
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

MAX_LANGUAGE_CODE_LENGTH = 16


class Stage(str, Enum):
    """States of the two pipeline runs."""

    # extract_and_translate
    FETCHING = "fetching"
    RECOGNIZING = "recognizing"
    TRANSLATING = "translating"
    PERSISTING = "persisting"
    # synthesize_audio
    LOADING = "loading"
    SYNTHESIZING = "synthesizing"
    STORING = "storing"
    UPDATING = "updating"

    DONE = "done"


class PipelineError(Exception):
    """Terminal failure of a pipeline run: the stage reached and the cause."""

    def __init__(self, stage: Stage, cause: HeritageError) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(str(cause))

    @property
    def error_kind(self) -> str:
        return self.cause.error_kind

    @property
    def status_code(self) -> int:
        return self.cause.status_code


def normalize_language(language: Optional[str]) -> str:
    """
    Validate and normalize a target language code ("es", "zh-TW").

    Raises:
        ValidationError: If the code is empty or malformed
    """
    if language is not None and not isinstance(language, str):
        raise ValidationError("target_language must be a string")
    code = (language or "").strip()
    if not code:
        raise ValidationError("target_language is required")
    if len(code) > MAX_LANGUAGE_CODE_LENGTH or not code.replace("-", "").isalpha():
        raise ValidationError(f"Invalid language code: {language!r}")
    return code.lower() if "-" not in code else code


class PipelineOrchestrator:
    """
    Runs the extract/translate and speech pipelines for one request at a time.

    Holds no per-request state; concurrent calls share only the stores.
    """

    def __init__(
        self,
        store: ResultStore,
        image_store: ObjectStore,
        audio_store: ObjectStore,
        chains: PipelineChains
    ) -> None:
        self.store = store
        self.image_store = image_store
        self.audio_store = audio_store
        self.chains = chains

    @contextmanager
    def _stage(self, stage: Stage, run: str, **context):
        """Log entry into a stage and tag surfaced errors with it."""
        logger.debug("Pipeline stage started", run=run, stage=stage.value, **context)
        try:
            yield
        except HeritageError as e:
            logger.warning(
                "Pipeline stage failed",
                run=run,
                stage=stage.value,
                error_kind=e.error_kind,
                error=str(e),
                **context
            )
            raise PipelineError(stage, e) from e

    async def extract_and_translate(
        self,
        user_id: str,
        upload_id,
        target_language: str
    ) -> Translation:
        """
        OCR an uploaded image, translate the text and store the result.

        Every call inserts a new Translation; repeated calls for the same
        upload are never merged.

        Args:
            user_id: Authenticated caller (owner of the upload)
            upload_id: Id of the Upload record
            target_language: Language code to translate into

        Returns:
            Translation: The created record, audio_generated=False

        Raises:
            PipelineError: With the failing stage and cause
        """
        run = "extract_and_translate"

        with self._stage(Stage.FETCHING, run, upload_id=str(upload_id)):
            if not user_id:
                raise Unauthorized("Caller identity is required")
            language = normalize_language(target_language)
            upload = await self.store.find_upload(upload_id, user_id)
            if upload is None:
                raise NotFound("upload", upload_id)
            image = b""
            # Offline-only OCR chains never look at the image bytes
            if self.chains.ocr.available_providers:
                image = await self.image_store.get(upload.file_path)

        with self._stage(Stage.RECOGNIZING, run, upload_id=str(upload.id)):
            ocr_outcome = await self.chains.ocr.run(OcrRequest(image=image))
            ocr: OcrResult = ocr_outcome.value

        with self._stage(Stage.TRANSLATING, run, upload_id=str(upload.id)):
            translate_outcome = await self.chains.translation.run(
                TranslationRequest(text=ocr.text, target_language=language)
            )
            translated: TranslationResult = translate_outcome.value

        with self._stage(Stage.PERSISTING, run, upload_id=str(upload.id)):
            translation = await self.store.create_translation(
                user_id=user_id,
                upload_id=upload.id,
                ocr=ocr,
                translated_text=translated.translated_text,
                language=language,
            )

        logger.info(
            "Pipeline completed",
            run=run,
            stage=Stage.DONE.value,
            translation_id=str(translation.id),
            upload_id=str(upload.id),
            ocr_provider=ocr_outcome.provider_name,
            translation_provider=translate_outcome.provider_name,
            detected_script=ocr.detected_script,
            confidence=ocr.confidence
        )
        return translation

    async def synthesize_audio(self, user_id: str, translation_id) -> Translation:
        """
        Synthesize speech for a translation and attach the stored audio.

        Calling again regenerates the audio and replaces the reference. The
        record is updated only after the audio object is stored, so a failed
        run leaves the previous audio state untouched.

        Args:
            user_id: Authenticated caller (owner of the translation)
            translation_id: Id of the Translation record

        Returns:
            Translation: The updated record (audio_generated=True)

        Raises:
            PipelineError: With the failing stage and cause
        """
        run = "synthesize_audio"

        with self._stage(Stage.LOADING, run, translation_id=str(translation_id)):
            if not user_id:
                raise Unauthorized("Caller identity is required")
            translation = await self.store.find_translation(translation_id, user_id)
            if translation is None:
                raise NotFound("translation", translation_id)
            if not translation.translation.strip():
                raise ValidationError("Translation has no text to synthesize")

        with self._stage(Stage.SYNTHESIZING, run, translation_id=str(translation.id)):
            locale = voice_locale_for(translation.language)
            speech_outcome = await self.chains.speech.run(
                SpeechRequest(text=translation.translation, voice_locale=locale)
            )
            speech: SpeechResult = speech_outcome.value

        with self._stage(Stage.STORING, run, translation_id=str(translation.id)):
            key = scoped_key(user_id, "mp3")
            audio_url = await self.audio_store.put(speech.audio, key, speech.content_type)

        previous_audio_url = translation.audio_url
        with self._stage(Stage.UPDATING, run, translation_id=str(translation.id)):
            updated = await self.store.update_audio(
                translation.id, user_id, audio_generated=True, audio_url=audio_url
            )
            if updated is None:
                raise NotFound("translation", translation.id)

        if previous_audio_url and previous_audio_url != audio_url:
            # Previous audio object is left in place
            logger.info("Replaced audio reference", translation_id=str(translation.id),
                        previous_audio_url=previous_audio_url)

        logger.info(
            "Pipeline completed",
            run=run,
            stage=Stage.DONE.value,
            translation_id=str(translation.id),
            voice_locale=locale,
            speech_provider=speech_outcome.provider_name,
            audio_url=audio_url
        )
        return updated
