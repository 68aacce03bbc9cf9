"""Configuration and settings management."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from pathlib import Path
import shutil

class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Camera settings
    CAMERA_INDEX: int = 0

    # Rectangle detection
    MIN_ASPECT_RATIO: float = 1.3
    MAX_ASPECT_RATIO: float = 1.8
    MIN_RELATIVE_SIZE: float = 0.4

    # OCR settings
    TESSERACT_PATH: Optional[str] = None
    TEXT_CONFIDENCE_THRESHOLD: float = 1.0  # Tesseract seldom reports 1.0; lower for live use
    RECOGNITION_LEVEL: str = "accurate"

    # Pipeline
    RELEASE_GATE_ON_ACKNOWLEDGE: bool = True

    @field_validator('TESSERACT_PATH', mode='before')
    @classmethod
    def validate_tesseract_path(cls, v):
        """Convert empty/whitespace strings to None."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "INFO"
        return v

    @field_validator('LOG_FORMAT', mode='before')
    @classmethod
    def validate_log_format(cls, v):
        """Accept 'json' or 'console'; blank means json."""
        if isinstance(v, str):
            v = v.strip().lower() or "json"
        if v not in ("json", "console"):
            raise ValueError(f"LOG_FORMAT must be 'json' or 'console', got {v!r}")
        return v

    @field_validator('RECOGNITION_LEVEL', mode='before')
    @classmethod
    def validate_recognition_level(cls, v):
        """Normalize the recognition level and reject unknown values."""
        if isinstance(v, str):
            v = v.strip().lower() or "accurate"
        if v not in ("fast", "accurate"):
            raise ValueError(f"RECOGNITION_LEVEL must be 'fast' or 'accurate', got {v!r}")
        return v

    @field_validator('TEXT_CONFIDENCE_THRESHOLD', 'MIN_RELATIVE_SIZE')
    @classmethod
    def validate_unit_interval(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError("value must be within [0, 1]")
        return v

    @model_validator(mode='after')
    def validate_aspect_band(self):
        if self.MIN_ASPECT_RATIO < 1.0 or self.MAX_ASPECT_RATIO < self.MIN_ASPECT_RATIO:
            raise ValueError(
                "aspect ratio band must satisfy 1.0 <= MIN_ASPECT_RATIO <= MAX_ASPECT_RATIO"
            )
        return self

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

# Global settings instance
settings = Settings()

def resolve_tesseract_path() -> str:
    """Get Tesseract path, with fallback to common locations."""
    if settings.TESSERACT_PATH and Path(settings.TESSERACT_PATH).exists():
        return settings.TESSERACT_PATH

    # Try to find tesseract in PATH
    tesseract_path = shutil.which("tesseract")
    if tesseract_path:
        return tesseract_path

    common_paths = [
        "/opt/homebrew/bin/tesseract",  # Apple Silicon Homebrew
        "/usr/local/bin/tesseract",     # Intel Homebrew
        "/usr/bin/tesseract",           # System package
    ]

    for path in common_paths:
        if Path(path).exists():
            return path

    raise FileNotFoundError(
        "Tesseract not found. Install it with your package manager "
        "(e.g. brew install tesseract, apt install tesseract-ocr)"
    )
