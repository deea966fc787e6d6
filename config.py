"""
config.py: Runtime settings for the checklist service.

Settings are read from the environment (and .env) exactly once, at startup,
and handed to the components that need them.
"""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()                       # reads .env into os.environ

logger = logging.getLogger("seo-checklist")

# Gemini content-filter thresholds, most to least permissive
SAFETY_THRESHOLDS = (
    "BLOCK_NONE",
    "BLOCK_ONLY_HIGH",
    "BLOCK_MEDIUM_AND_ABOVE",
    "BLOCK_LOW_AND_ABOVE",
)

DEFAULT_ORIGINS = "http://localhost:3000,http://localhost:5173"


class Settings(BaseModel):
    google_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    # Product policy: relaxed filters so audit notes about spam, malware or
    # hacked pages are not blocked. Tighten through GEMINI_SAFETY_THRESHOLD.
    safety_threshold: str = "BLOCK_NONE"
    temperature: float = 0.3
    top_p: float = 0.9
    top_k: int = 40
    max_output_tokens: int = 1600
    upstream_timeout: float = 60.0
    database_url: str = "sqlite:///./seo_checklist.db"
    allowed_origins: list[str] = DEFAULT_ORIGINS.split(",")

    @field_validator("safety_threshold")
    @classmethod
    def threshold_known(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in SAFETY_THRESHOLDS:
            raise ValueError(f"safety_threshold must be one of {', '.join(SAFETY_THRESHOLDS)}")
        return v

    @field_validator("database_url")
    @classmethod
    def sqlalchemy_scheme(cls, v: str) -> str:
        # Railway (and some other hosts) expose postgres:// but SQLAlchemy requires postgresql://
        if v.startswith("postgres://"):
            v = v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def has_credential(self) -> bool:
        return bool(self.google_api_key)


def load_settings() -> Settings:
    """Build Settings from the process environment."""
    settings = Settings(
        google_api_key=os.getenv("GOOGLE_GENAI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL") or "gemini-2.0-flash",
        gemini_base_url=os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/models"
        ).rstrip("/"),
        safety_threshold=os.getenv("GEMINI_SAFETY_THRESHOLD", "BLOCK_NONE"),
        upstream_timeout=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60")),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./seo_checklist.db"),
        allowed_origins=[
            o.strip() for o in os.getenv("ALLOWED_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()
        ],
    )
    if not settings.has_credential:
        logger.warning("⚠️  GOOGLE_GENAI_API_KEY is not set, recommendation requests will fail")
    return settings
