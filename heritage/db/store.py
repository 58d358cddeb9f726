"""
Result store adapter over the uploads/translations tables.

Identity is explicit: every lookup takes the caller's user id, and a record
owned by someone else is indistinguishable from a missing one.
"""

from abc import ABC, abstractmethod
from functools import wraps
from typing import List, Optional, Tuple
from uuid import UUID

import asyncpg

from heritage.db import queries
from heritage.db.models import Translation, Upload
from heritage.errors import StorageError
from heritage.providers.base import OcrResult
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

HistoryEntry = Tuple[Translation, Optional[Upload]]


def parse_record_id(value) -> Optional[UUID]:
    """Parse a record id; None when it is not a UUID."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def check_audio_state(audio_generated: bool, audio_url: Optional[str]) -> None:
    """
    Enforce that audio_generated is true exactly when audio_url is set.

    Raises:
        ValueError: On an inconsistent combination
    """
    if audio_generated and not audio_url:
        raise ValueError("audio_generated=True requires a non-empty audio_url")
    if not audio_generated and audio_url is not None:
        raise ValueError("audio_generated=False requires audio_url to be None")


class ResultStore(ABC):
    """Persistence contract used by the pipeline orchestrator and the API."""

    @abstractmethod
    async def create_upload(self, user_id: str, filename: str, file_path: str) -> Upload:
        """Insert a new upload record."""

    @abstractmethod
    async def find_upload(self, upload_id, user_id: str) -> Optional[Upload]:
        """Point lookup restricted to the owner; None when absent."""

    @abstractmethod
    async def create_translation(
        self,
        user_id: str,
        upload_id: Optional[UUID],
        ocr: OcrResult,
        translated_text: str,
        language: str
    ) -> Translation:
        """Insert a new translation with audio_generated=False. Never updates."""

    @abstractmethod
    async def find_translation(self, translation_id, user_id: str) -> Optional[Translation]:
        """Point lookup restricted to the owner; None when absent."""

    @abstractmethod
    async def update_audio(
        self,
        translation_id: UUID,
        user_id: str,
        audio_generated: bool,
        audio_url: Optional[str]
    ) -> Optional[Translation]:
        """Set only the audio fields; None when the translation is gone."""

    @abstractmethod
    async def list_translations(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> List[HistoryEntry]:
        """Owner's translations, newest first, with their uploads."""


def _storage_errors(func):
    """Convert record store driver failures into StorageError."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("Record store operation failed",
                         operation=func.__name__, error=str(e))
            raise StorageError(f"Record store operation '{func.__name__}' failed") from e

    return wrapper


class PostgresResultStore(ResultStore):
    """ResultStore backed by the asyncpg pool in heritage.db.connection."""

    @_storage_errors
    async def create_upload(self, user_id: str, filename: str, file_path: str) -> Upload:
        row = await queries.db_insert_upload({
            'user_id': user_id,
            'filename': filename,
            'file_path': file_path,
        })
        return Upload.from_row(row)

    @_storage_errors
    async def find_upload(self, upload_id, user_id: str) -> Optional[Upload]:
        parsed = parse_record_id(upload_id)
        if parsed is None:
            return None
        row = await queries.db_find_upload(parsed, user_id)
        return Upload.from_row(row) if row else None

    @_storage_errors
    async def create_translation(
        self,
        user_id: str,
        upload_id: Optional[UUID],
        ocr: OcrResult,
        translated_text: str,
        language: str
    ) -> Translation:
        row = await queries.db_insert_translation({
            'user_id': user_id,
            'upload_id': upload_id,
            'ocr_text': ocr.text,
            'translation': translated_text,
            'language': language,
            'detected_script': ocr.detected_script,
            'confidence': ocr.confidence,
        })
        return Translation.from_row(row)

    @_storage_errors
    async def find_translation(self, translation_id, user_id: str) -> Optional[Translation]:
        parsed = parse_record_id(translation_id)
        if parsed is None:
            return None
        row = await queries.db_find_translation(parsed, user_id)
        return Translation.from_row(row) if row else None

    @_storage_errors
    async def update_audio(
        self,
        translation_id: UUID,
        user_id: str,
        audio_generated: bool,
        audio_url: Optional[str]
    ) -> Optional[Translation]:
        check_audio_state(audio_generated, audio_url)
        row = await queries.db_update_translation(translation_id, user_id, {
            'audio_generated': audio_generated,
            'audio_url': audio_url,
        })
        return Translation.from_row(row) if row else None

    @_storage_errors
    async def list_translations(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> List[HistoryEntry]:
        rows = await queries.db_list_translations(user_id, limit, offset)
        entries: List[HistoryEntry] = []
        for row in rows:
            upload = None
            if row.get('upload_id') and row.get('upload_file_path'):
                upload = Upload(
                    id=row['upload_id'],
                    user_id=row['user_id'],
                    filename=row['upload_filename'],
                    file_path=row['upload_file_path'],
                    created_at=row['upload_created_at'],
                )
            entries.append((Translation.from_row(row), upload))
        return entries
