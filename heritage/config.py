"""
Configuration module for the Heritage Lens inscription pipeline.

Uses Pydantic Settings to load configuration from .env file.
All environment variables are validated and type-checked.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Provider credentials are optional: a missing key removes that provider
    from its fallback chain instead of failing startup.
    """

    # ============ GOOGLE CLOUD (Optional) ============
    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        description="Google Cloud API key (Vision OCR, Translate, Text-to-Speech)"
    )
    GOOGLE_TTS_API_KEY: Optional[str] = Field(
        default=None,
        description="Separate API key for Text-to-Speech (defaults to GOOGLE_API_KEY)"
    )
    GOOGLE_VISION_URL: str = Field(
        default="https://vision.googleapis.com",
        description="Base URL of the Cloud Vision API"
    )
    GOOGLE_TRANSLATE_URL: str = Field(
        default="https://translation.googleapis.com",
        description="Base URL of the Cloud Translation API"
    )
    GOOGLE_TTS_URL: str = Field(
        default="https://texttospeech.googleapis.com",
        description="Base URL of the Cloud Text-to-Speech API"
    )

    # ============ LIBRETRANSLATE ============
    LIBRETRANSLATE_URL: str = Field(
        default="https://libretranslate.com",
        description="Base URL of the LibreTranslate instance"
    )
    LIBRETRANSLATE_API_KEY: Optional[str] = Field(
        default=None,
        description="LibreTranslate API key (optional, required by some instances)"
    )
    LIBRETRANSLATE_ENABLED: bool = Field(
        default=True,
        description="Include LibreTranslate as the secondary translation provider"
    )

    # ============ PIPELINE ============
    OCR_TIMEOUT_SEC: float = Field(
        default=30,
        description="Timeout for a single OCR provider call in seconds"
    )
    TRANSLATE_TIMEOUT_SEC: float = Field(
        default=15,
        description="Timeout for a single translation provider call in seconds"
    )
    TTS_TIMEOUT_SEC: float = Field(
        default=30,
        description="Timeout for a single speech provider call in seconds"
    )
    OFFLINE_FALLBACK_ENABLED: bool = Field(
        default=True,
        description="Terminate OCR and translation chains with offline generators"
    )

    # ============ DATABASE ============
    POSTGRES_USER: str = Field(default="postgres", description="PostgreSQL username")
    POSTGRES_PASSWORD: str = Field(default="postgres", description="PostgreSQL password")
    POSTGRES_DB: str = Field(default="heritage", description="PostgreSQL database name")
    POSTGRES_HOST: str = Field(default="db", description="PostgreSQL host")
    POSTGRES_PORT: int = Field(default=5432, description="PostgreSQL port")

    # ============ OBJECT STORAGE ============
    STORAGE_ROOT: str = Field(
        default="/var/lib/heritage/storage",
        description="Directory holding stored images and audio files"
    )
    STORAGE_PUBLIC_URL: str = Field(
        default="http://localhost:8000/storage",
        description="Public base URL under which stored objects are served"
    )
    IMAGE_BUCKET: str = Field(default="heritage-images", description="Bucket for uploaded images")
    AUDIO_BUCKET: str = Field(default="audio-files", description="Bucket for synthesized audio")
    MAX_IMAGE_SIZE_MB: int = Field(
        default=10,
        description="Maximum image size to accept in megabytes"
    )

    # ============ AUTH ============
    AUTH_JWT_SECRET: Optional[str] = Field(
        default=None,
        description="HS256 secret used to verify caller bearer tokens"
    )
    AUTH_JWT_ALGORITHM: str = Field(default="HS256", description="Bearer token algorithm")
    AUTH_JWT_AUDIENCE: Optional[str] = Field(
        default="authenticated",
        description="Expected 'aud' claim of caller tokens (None disables the check)"
    )

    # ============ APPLICATION ============
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    ENVIRONMENT: str = Field(
        default="production",
        description="Environment name (development, staging, production)"
    )
    API_HOST: str = Field(default="0.0.0.0", description="Bind address of the HTTP API")
    API_PORT: int = Field(default=8000, description="Port of the HTTP API")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ============ VALIDATORS ============

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got {v}"
            )
        return v_upper

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(
                f"ENVIRONMENT must be one of {allowed_envs}, got {v}"
            )
        return v_lower

    @field_validator("OCR_TIMEOUT_SEC", "TRANSLATE_TIMEOUT_SEC", "TTS_TIMEOUT_SEC")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Provider timeouts must be positive."""
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    # ============ HELPER PROPERTIES ============

    @property
    def tts_api_key(self) -> Optional[str]:
        """API key for Text-to-Speech, falling back to the shared Google key."""
        return self.GOOGLE_TTS_API_KEY or self.GOOGLE_API_KEY

    @property
    def max_image_size_bytes(self) -> int:
        return self.MAX_IMAGE_SIZE_MB * 1024 * 1024


# ============ SINGLETON INSTANCE ============

# Usage: from heritage.config import config
config = Config()
