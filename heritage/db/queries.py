"""Database queries for the uploads and translations tables."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from heritage.db.connection import execute, fetch, fetchrow
from heritage.utils.logger import get_logger

logger = get_logger(__name__)

# Whitelist of columns a translation UPDATE may touch; OCR/translation
# results are written once at INSERT time
ALLOWED_TRANSLATION_UPDATE_COLUMNS = frozenset({
    'audio_generated', 'audio_url',
})


# =============================================================================
# UPLOADS TABLE OPERATIONS
# =============================================================================

async def db_insert_upload(upload_data: dict) -> dict:
    """
    Insert a new upload record.

    Args:
        upload_data: Dict with keys:
            - user_id (required)
            - filename (required)
            - file_path (required): public reference of the stored image

    Returns:
        dict: The inserted row
    """
    query = """
        INSERT INTO uploads (user_id, filename, file_path, created_at)
        VALUES ($1, $2, $3, $4)
        RETURNING *
    """
    row = await fetchrow(
        query,
        upload_data.get('user_id'),
        upload_data.get('filename'),
        upload_data.get('file_path'),
        upload_data.get('created_at', datetime.now(timezone.utc)),
    )
    logger.info("Inserted upload", upload_id=str(row['id']),
                user_id=upload_data.get('user_id'))
    return dict(row)


async def db_find_upload(upload_id: UUID, user_id: str) -> Optional[dict]:
    """Find an upload by id, restricted to its owner."""
    query = "SELECT * FROM uploads WHERE id = $1 AND user_id = $2"
    row = await fetchrow(query, upload_id, user_id)
    return dict(row) if row else None


# =============================================================================
# TRANSLATIONS TABLE OPERATIONS
# =============================================================================

async def db_insert_translation(translation_data: dict) -> dict:
    """
    Insert a new translation. Always a plain INSERT, never an upsert.

    Args:
        translation_data: Dict with keys:
            - user_id, ocr_text, translation, language, confidence (required)
            - upload_id, detected_script (optional)

    Returns:
        dict: The inserted row, including its generated id
    """
    query = """
        INSERT INTO translations (
            user_id, upload_id, ocr_text, translation, language,
            detected_script, confidence, audio_generated, audio_url, created_at
        ) VALUES ($1, $2, $3, $4, $5, $6, $7, FALSE, NULL, $8)
        RETURNING *
    """
    row = await fetchrow(
        query,
        translation_data.get('user_id'),
        translation_data.get('upload_id'),
        translation_data.get('ocr_text'),
        translation_data.get('translation'),
        translation_data.get('language'),
        translation_data.get('detected_script'),
        translation_data.get('confidence'),
        translation_data.get('created_at', datetime.now(timezone.utc)),
    )
    logger.info("Inserted translation", translation_id=str(row['id']),
                upload_id=str(translation_data.get('upload_id')))
    return dict(row)


async def db_find_translation(translation_id: UUID, user_id: str) -> Optional[dict]:
    """Find a translation by id, restricted to its owner."""
    query = "SELECT * FROM translations WHERE id = $1 AND user_id = $2"
    row = await fetchrow(query, translation_id, user_id)
    return dict(row) if row else None


async def db_update_translation(translation_id: UUID, user_id: str, data: dict) -> Optional[dict]:
    """
    Partially update a translation.

    Only whitelisted audio columns can be changed.

    Returns:
        dict or None: The updated row, or None if no row matched

    Raises:
        ValueError: If a non-whitelisted column is requested
    """
    if not data:
        raise ValueError("No columns to update")

    invalid_keys = set(data.keys()) - ALLOWED_TRANSLATION_UPDATE_COLUMNS
    if invalid_keys:
        raise ValueError(f"Invalid column names: {invalid_keys}")

    set_clauses = []
    values = []
    for i, (key, value) in enumerate(data.items(), start=1):
        set_clauses.append(f"{key} = ${i}")
        values.append(value)

    values.append(translation_id)
    values.append(user_id)
    query = f"""
        UPDATE translations
        SET {', '.join(set_clauses)}
        WHERE id = ${len(values) - 1} AND user_id = ${len(values)}
        RETURNING *
    """

    row = await fetchrow(query, *values)
    logger.debug("Updated translation", translation_id=str(translation_id),
                 fields=list(data.keys()))
    return dict(row) if row else None


async def db_list_translations(user_id: str, limit: int = 50, offset: int = 0) -> List[dict]:
    """
    List a user's translations, newest first, with the joined upload columns.

    Upload columns are prefixed with `upload_` (upload_filename, upload_file_path,
    upload_created_at).
    """
    query = """
        SELECT t.*,
               u.filename   AS upload_filename,
               u.file_path  AS upload_file_path,
               u.created_at AS upload_created_at
        FROM translations t
        LEFT JOIN uploads u ON u.id = t.upload_id
        WHERE t.user_id = $1
        ORDER BY t.created_at DESC
        LIMIT $2 OFFSET $3
    """
    rows = await fetch(query, user_id, limit, offset)
    return [dict(row) for row in rows]


async def db_ping() -> None:
    """Round-trip to the database (health checks)."""
    await execute("SELECT 1")
