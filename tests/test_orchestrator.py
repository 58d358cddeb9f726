"""Tests for the pipeline orchestrator (extract_and_translate / synthesize_audio)."""

import uuid

import pytest

from heritage.errors import NoProviderAvailable, NotFound, StorageError, Unauthorized, ValidationError
from heritage.pipeline.orchestrator import PipelineError, Stage, normalize_language
from heritage.providers.base import ProviderErrorKind, SpeechRequest, TranslationRequest

from fakes import (
    OTHER_USER,
    OWNER,
    FakeProvider,
    InMemoryObjectStore,
    build_orchestrator,
    make_chains,
    ocr_value,
    provider_error,
    speech_value,
    translation_value,
)


class TestExtractAndTranslate:
    """OCR -> translate -> persist."""

    @pytest.mark.asyncio
    async def test_heritage_scenario_with_ocr_fallback(self, store, image_store, audio_store, upload):
        """Primary OCR times out, generator supplies the text, primary translation succeeds."""
        vision = FakeProvider("google_vision", provider_error(ProviderErrorKind.TIMEOUT))
        google_translate = FakeProvider("google_translate", translation_value())
        # Generator pinned to the Brahmi-Tamil sample
        chains = make_chains(ocr_providers=[vision], translation_providers=[google_translate],
                             ocr_samples=[ocr_value()])
        orchestrator = build_orchestrator(store, image_store, audio_store, chains)

        translation = await orchestrator.extract_and_translate(OWNER, upload.id, "es")

        assert translation.detected_script == "Brahmi-Tamil"
        assert translation.confidence == 0.95
        assert translation.ocr_text == "Ancient Tamil inscription from heritage site"
        assert translation.translation == "Inscripción tamil antigua del sitio patrimonial"
        assert translation.language == "es"
        assert translation.audio_generated is False
        assert translation.audio_url is None
        assert translation.upload_id == upload.id
        assert store.translations[translation.id] is translation

    @pytest.mark.asyncio
    async def test_ocr_receives_image_bytes(self, store, image_store, audio_store, upload):
        """The OCR provider is given the stored image content."""
        vision = FakeProvider("google_vision", ocr_value("text", "Auto-detected", 0.9))
        chains = make_chains(ocr_providers=[vision],
                             translation_providers=[FakeProvider("t", translation_value())])
        orchestrator = build_orchestrator(store, image_store, audio_store, chains)

        await orchestrator.extract_and_translate(OWNER, upload.id, "en")

        assert vision.calls[0].image == b"\x89PNG fake image"

    @pytest.mark.asyncio
    async def test_translation_threads_ocr_text(self, store, image_store, audio_store, upload):
        """The translation stage receives the OCR text and the target language only."""
        vision = FakeProvider("google_vision", ocr_value("ಭಾರತ ದೇಶದ", "Kannada", 0.89))
        translator = FakeProvider("google_translate", translation_value("Country of India"))
        chains = make_chains(ocr_providers=[vision], translation_providers=[translator])
        orchestrator = build_orchestrator(store, image_store, audio_store, chains)

        translation = await orchestrator.extract_and_translate(OWNER, upload.id, "EN")

        assert translator.calls == [TranslationRequest(text="ಭಾರತ ದೇಶದ", target_language="en")]
        assert translation.translation == "Country of India"
        assert translation.detected_script == "Kannada"

    @pytest.mark.asyncio
    async def test_repeated_calls_create_distinct_records(self, store, image_store, audio_store, upload):
        """Same upload and language twice gives two separate translations."""
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        first = await orchestrator.extract_and_translate(OWNER, upload.id, "fr")
        second = await orchestrator.extract_and_translate(OWNER, upload.id, "fr")

        assert first.id != second.id
        assert len(store.translations) == 2
        assert store.writes.count("create_translation") == 2

    @pytest.mark.asyncio
    async def test_completes_without_any_provider(self, store, image_store, audio_store, upload):
        """Offline generators alone complete the run and the image is not fetched."""
        image_store.objects.clear()
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        translation = await orchestrator.extract_and_translate(OWNER, upload.id, "en")

        # Offline translation echoes the recognized text
        assert translation.translation == translation.ocr_text
        assert 0.0 <= translation.confidence <= 1.0

    @pytest.mark.asyncio
    async def test_missing_upload_fails_fetching(self, store, image_store, audio_store):
        """Unknown upload id -> NotFound at FETCHING, nothing written."""
        vision = FakeProvider("google_vision", ocr_value())
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(ocr_providers=[vision]))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate(OWNER, uuid.uuid4(), "es")

        assert exc_info.value.stage == Stage.FETCHING
        assert isinstance(exc_info.value.cause, NotFound)
        assert exc_info.value.error_kind == "not_found"
        assert vision.calls == []
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_malformed_upload_id_is_not_found(self, store, image_store, audio_store):
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate(OWNER, "not-a-uuid", "es")

        assert isinstance(exc_info.value.cause, NotFound)

    @pytest.mark.asyncio
    async def test_other_users_upload_is_not_found(self, store, image_store, audio_store, upload):
        """Uploads of another user are indistinguishable from missing ones."""
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate(OTHER_USER, upload.id, "es")

        assert isinstance(exc_info.value.cause, NotFound)
        assert store.translations == {}

    @pytest.mark.asyncio
    async def test_missing_identity_is_unauthorized(self, store, image_store, audio_store, upload):
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate("", upload.id, "es")

        assert isinstance(exc_info.value.cause, Unauthorized)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("language", ["", "   ", None, "e$", "x" * 40, 5, ["es"], {"x": 1}])
    async def test_invalid_language_rejected(self, store, image_store, audio_store, upload, language):
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate(OWNER, upload.id, language)

        assert exc_info.value.stage == Stage.FETCHING
        assert isinstance(exc_info.value.cause, ValidationError)

    @pytest.mark.asyncio
    async def test_image_read_failure_is_storage_error(self, store, image_store, audio_store, upload):
        """Image bytes unreadable while a real OCR provider is configured."""
        image_store.objects.clear()
        vision = FakeProvider("google_vision", ocr_value())
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(ocr_providers=[vision]))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate(OWNER, upload.id, "es")

        assert exc_info.value.stage == Stage.FETCHING
        assert isinstance(exc_info.value.cause, StorageError)
        assert vision.calls == []

    @pytest.mark.asyncio
    async def test_translation_chain_exhausted_without_generator(self, store, image_store, audio_store, upload):
        """With offline fallback disabled, a failed translation chain aborts before persisting."""
        chains = make_chains(
            ocr_providers=[FakeProvider("google_vision", ocr_value())],
            translation_providers=[
                FakeProvider("google_translate", provider_error(ProviderErrorKind.UNAUTHORIZED)),
                FakeProvider("libretranslate", provider_error(ProviderErrorKind.RATE_LIMITED)),
            ],
            offline=False,
        )
        orchestrator = build_orchestrator(store, image_store, audio_store, chains)

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.extract_and_translate(OWNER, upload.id, "es")

        assert exc_info.value.stage == Stage.TRANSLATING
        assert isinstance(exc_info.value.cause, NoProviderAvailable)
        assert store.translations == {}


class TestSynthesizeAudio:
    """translation -> speech -> store -> update."""

    async def _translation(self, store, image_store, audio_store, upload, language="es"):
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())
        return await orchestrator.extract_and_translate(OWNER, upload.id, language)

    @pytest.mark.asyncio
    async def test_success_sets_audio_reference(self, store, image_store, audio_store, upload):
        """Speech succeeds: audio stored under the owner's scope and the record updated."""
        translation = await self._translation(store, image_store, audio_store, upload)
        tts = FakeProvider("google_tts", speech_value(b"mp3-bytes"))
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(speech_providers=[tts]))

        updated = await orchestrator.synthesize_audio(OWNER, translation.id)

        assert updated.audio_generated is True
        assert updated.audio_url
        assert f"/{OWNER}/" in updated.audio_url
        assert updated.audio_url.endswith(".mp3")
        assert audio_store.objects[updated.audio_url] == b"mp3-bytes"
        assert store.translations[translation.id].audio_generated is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("language,locale", [
        ("zh", "cmn-CN"), ("hi", "hi-IN"), ("en", "en-US"), ("xx", "xx-US"),
        ("zh-TW", "cmn-TW"), ("pt-BR", "pt-BR"),
    ])
    async def test_voice_locale_from_language(self, store, image_store, audio_store, upload, language, locale):
        translation = await self._translation(store, image_store, audio_store, upload, language)
        tts = FakeProvider("google_tts", speech_value())
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(speech_providers=[tts]))

        await orchestrator.synthesize_audio(OWNER, translation.id)

        assert tts.calls == [SpeechRequest(text=translation.translation, voice_locale=locale)]

    @pytest.mark.asyncio
    async def test_speech_exhausted_leaves_record_unchanged(self, store, image_store, audio_store, upload):
        """No speech generator: exhaustion surfaces and audio fields stay untouched."""
        translation = await self._translation(store, image_store, audio_store, upload)
        tts = FakeProvider("google_tts", provider_error(ProviderErrorKind.UNAVAILABLE))
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(speech_providers=[tts]))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.synthesize_audio(OWNER, translation.id)

        assert exc_info.value.stage == Stage.SYNTHESIZING
        assert isinstance(exc_info.value.cause, NoProviderAvailable)
        assert translation.audio_generated is False
        assert translation.audio_url is None
        assert audio_store.puts == []
        assert "update_audio" not in store.writes

    @pytest.mark.asyncio
    async def test_no_speech_provider_configured(self, store, image_store, audio_store, upload):
        translation = await self._translation(store, image_store, audio_store, upload)
        orchestrator = build_orchestrator(store, image_store, audio_store, make_chains())

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.synthesize_audio(OWNER, translation.id)

        assert exc_info.value.error_kind == "no_provider_available"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_missing_translation_not_found_without_writes(self, store, image_store, audio_store):
        """Unknown translation id -> NotFound at LOADING, no store writes."""
        tts = FakeProvider("google_tts", speech_value())
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(speech_providers=[tts]))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.synthesize_audio(OWNER, uuid.uuid4())

        assert exc_info.value.stage == Stage.LOADING
        assert isinstance(exc_info.value.cause, NotFound)
        assert tts.calls == []
        assert audio_store.puts == []
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_other_users_translation_not_found(self, store, image_store, audio_store, upload):
        translation = await self._translation(store, image_store, audio_store, upload)
        tts = FakeProvider("google_tts", speech_value())
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(speech_providers=[tts]))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.synthesize_audio(OTHER_USER, translation.id)

        assert isinstance(exc_info.value.cause, NotFound)
        assert tts.calls == []

    @pytest.mark.asyncio
    async def test_storage_failure_never_updates_record(self, store, image_store, upload):
        """StorageError on put: surfaced at STORING, record keeps audio_generated=False."""
        failing_audio = InMemoryObjectStore(fail_puts=True)
        translation = await self._translation(store, image_store, failing_audio, upload)
        tts = FakeProvider("google_tts", speech_value())
        orchestrator = build_orchestrator(store, image_store, failing_audio,
                                          make_chains(speech_providers=[tts]))

        with pytest.raises(PipelineError) as exc_info:
            await orchestrator.synthesize_audio(OWNER, translation.id)

        assert exc_info.value.stage == Stage.STORING
        assert isinstance(exc_info.value.cause, StorageError)
        assert translation.audio_generated is False
        assert translation.audio_url is None
        assert "update_audio" not in store.writes

    @pytest.mark.asyncio
    async def test_resynthesis_replaces_reference(self, store, image_store, audio_store, upload):
        """A second call regenerates audio and overwrites the reference."""
        translation = await self._translation(store, image_store, audio_store, upload)
        tts = FakeProvider("google_tts", speech_value(b"first"), speech_value(b"second"))
        orchestrator = build_orchestrator(store, image_store, audio_store,
                                          make_chains(speech_providers=[tts]))

        first = await orchestrator.synthesize_audio(OWNER, translation.id)
        first_url = first.audio_url
        second = await orchestrator.synthesize_audio(OWNER, translation.id)

        assert second.audio_url != first_url
        assert audio_store.objects[second.audio_url] == b"second"
        assert second.audio_generated is True

    @pytest.mark.asyncio
    async def test_failed_resynthesis_keeps_previous_audio(self, store, image_store, upload):
        """Second call failing at STORING keeps the first, still-valid reference."""
        audio = InMemoryObjectStore()
        translation = await self._translation(store, image_store, audio, upload)
        tts = FakeProvider("google_tts", speech_value())
        orchestrator = build_orchestrator(store, image_store, audio,
                                          make_chains(speech_providers=[tts]))
        first = await orchestrator.synthesize_audio(OWNER, translation.id)
        first_url = first.audio_url

        audio.fail_puts = True
        with pytest.raises(PipelineError):
            await orchestrator.synthesize_audio(OWNER, translation.id)

        assert translation.audio_generated is True
        assert translation.audio_url == first_url
        assert first_url in audio.objects

    @pytest.mark.asyncio
    async def test_ocr_and_translation_unchanged_by_audio(self, store, image_store, audio_store, upload):
        """Audio synthesis never alters the OCR/translation result."""
        translation = await self._translation(store, image_store, audio_store, upload)
        before = (translation.ocr_text, translation.translation, translation.confidence)
        orchestrator = build_orchestrator(
            store, image_store, audio_store,
            make_chains(speech_providers=[FakeProvider("google_tts", speech_value())]),
        )

        updated = await orchestrator.synthesize_audio(OWNER, translation.id)

        assert (updated.ocr_text, updated.translation, updated.confidence) == before


class TestNormalizeLanguage:

    def test_lowercases_simple_codes(self):
        assert normalize_language(" ES ") == "es"

    def test_keeps_region_codes(self):
        assert normalize_language("zh-TW") == "zh-TW"
