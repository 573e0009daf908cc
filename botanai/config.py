# botanai/config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

from botanai.models.plant_analysis import ImageBudget, Language

# Load .env file if present
load_dotenv()

# Credential sources, highest precedence first
API_KEY_SOURCES = (
    "ANTHROPIC_API_KEY",
    "CLAUDE_API_KEY",
    "API_KEY_CLAUDE",
    "VITE_API_KEY_CLAUDE",
    "VITE_CLAUDE_API_KEY",
    "API_KEY",
)


class Settings(BaseSettings):
    """Application configuration based on environment variables"""

    # API configuration
    API_PREFIX: str = "/api"

    # CORS configuration (Frontend URLs)
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # Vite dev server of the web client
        "http://localhost:5173",
    ]

    # Debug mode
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = "INFO"

    # Maximum file size for uploads (in bytes), before normalization
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10 MB

    # Inference provider credentials, see API_KEY_SOURCES for precedence
    ANTHROPIC_API_KEY: str = ""
    CLAUDE_API_KEY: str = ""
    API_KEY_CLAUDE: str = ""
    VITE_API_KEY_CLAUDE: str = ""
    VITE_CLAUDE_API_KEY: str = ""
    API_KEY: str = ""

    # Inference provider
    INFERENCE_BASE_URL: str = "https://api.anthropic.com"
    INFERENCE_MODEL: str = "claude-3-haiku-20240307"
    INFERENCE_MAX_TOKENS: int = 800
    ANTHROPIC_VERSION: str = "2023-06-01"
    INFERENCE_TIMEOUT_SECONDS: float = 60.0

    # Return the canned demo result instead of failing when the provider is not usable
    MOCK_FALLBACK: bool = True

    DEFAULT_LANGUAGE: Language = Language.EN

    # Image normalization budget
    IMAGE_MAX_BYTES: int = 2 * 1024 * 1024  # 2 MiB
    IMAGE_MAX_DIMENSION: int = 1600

    # History persistence, the slot file is <HISTORY_DIR>/botanai_history.json
    HISTORY_DIR: str = "data"
    STORE_SOURCE_IMAGE: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def inference_api_key(self) -> Optional[str]:
        """First non-empty credential in precedence order, or None"""
        for name in API_KEY_SOURCES:
            value = (getattr(self, name) or "").strip()
            if value:
                return value
        return None

    @property
    def image_budget(self) -> ImageBudget:
        return ImageBudget(
            max_bytes=self.IMAGE_MAX_BYTES,
            max_dimension=self.IMAGE_MAX_DIMENSION,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return settings with caching"""
    return Settings()
