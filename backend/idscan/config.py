"""
Application Configuration
Manages all environment variables and settings for the ID scanning service
"""
from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "ID Scan Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8765

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # File Upload
    MAX_FILE_SIZE_MB: int = 10
    ALLOWED_FILE_TYPES: List[str] = ["image/jpeg", "image/png", "image/webp", "image/bmp"]

    # OCR Engine (Tesseract)
    TESSERACT_CMD: str = ""  # Empty means use the binary on PATH
    OCR_LANGUAGE: str = "eng"
    OCR_PSM: int = 6
    OCR_DPI: int = 300
    OCR_CHAR_WHITELIST: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz1234567890- /,."
    OCR_TIMEOUT_SECONDS: float = 15.0

    # Card rectification
    RECTIFY_MAX_DIM: int = 1000  # Longest side of the detection frame
    RECTIFY_MIN_AREA: float = 3000.0  # Minimum quad area (px^2) in the detection frame
    CARD_WIDTH: int = 1000
    CARD_HEIGHT: int = 600

    # Enhancement
    ENHANCE_MIN_WIDTH: int = 1200

    # Vision OCR (OpenRouter / OpenAI-compatible chat completions)
    VISION_API_KEY: str = ""
    VISION_API_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    VISION_MODEL: str = "anthropic/claude-3.5-sonnet"
    VISION_TIMEOUT_SECONDS: float = 60.0
    VISION_MAX_TOKENS: int = 500
    VISION_REFERER: str = "http://localhost"
    VISION_TITLE: str = "ID Scanner"

    # Logging
    AUDIT_LOG_ENABLED: bool = True
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
