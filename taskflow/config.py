import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv(".env")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: str) -> Tuple[str, ...]:
    raw = os.getenv(name) or default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    storage_backend: str = "memory"            # "memory" or "mongo"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db: str = "taskflow"
    enforce_references: bool = True

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    ai_timeout_seconds: float = 20.0

    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            storage_backend=os.getenv("TASKFLOW_STORAGE", "memory").strip().lower(),
            mongodb_url=os.getenv("MONGODB_URL", "mongodb://localhost:27017"),
            mongodb_db=os.getenv("MONGODB_DB", "taskflow"),
            enforce_references=_env_bool("ENFORCE_REFERENCES", True),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            ai_timeout_seconds=_env_float("AI_TIMEOUT_SECONDS", 20.0),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(_env_float("PORT", 8000)),
        )
