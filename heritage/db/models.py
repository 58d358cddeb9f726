"""Upload and Translation records as stored in the `uploads` / `translations` tables."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional
from uuid import UUID


@dataclass
class Upload:
    """A user's image submission. Immutable once created."""

    id: UUID
    user_id: str
    filename: str
    file_path: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Upload":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            filename=row["filename"],
            file_path=row["file_path"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["id"] = str(self.id)
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass
class Translation:
    """
    OCR + translation result for one pipeline run.

    `ocr_text`, `translation` and `confidence` are fixed at creation;
    only the audio fields change afterwards. `audio_generated` is true
    exactly when `audio_url` holds a stored audio reference.
    """

    id: UUID
    user_id: str
    upload_id: Optional[UUID]
    ocr_text: str
    translation: str
    language: str
    detected_script: Optional[str]
    confidence: float
    audio_generated: bool
    audio_url: Optional[str]
    created_at: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Translation":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            upload_id=row["upload_id"],
            ocr_text=row["ocr_text"],
            translation=row["translation"],
            language=row["language"],
            detected_script=row["detected_script"],
            confidence=float(row["confidence"]),
            audio_generated=row["audio_generated"],
            audio_url=row["audio_url"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["id"] = str(self.id)
        data["upload_id"] = str(self.upload_id) if self.upload_id else None
        data["created_at"] = self.created_at.isoformat()
        return data
