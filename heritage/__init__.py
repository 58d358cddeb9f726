"""Heritage Lens: OCR, translation and speech pipeline for heritage inscriptions."""

__version__ = "0.1.0"
