"""
Environment-driven configuration for the Jot engine.
All settings come from environment variables (optionally a .env file).
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

TRANSCRIPTION_ENGINES = ("gemini", "whisper-1", "gpt-4o-transcribe")
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


@dataclass
class EngineConfig:
    """Fully environment-driven engine configuration."""

    # Transcription engine: "gemini", "whisper-1", or "gpt-4o-transcribe"
    transcription_engine: str = "gemini"
    gemini_api_keys: list[str] = field(default_factory=list)
    gemini_model: str = DEFAULT_GEMINI_MODEL
    openai_api_key: str = ""

    # Text processing
    default_timezone: str = "UTC"
    corrections_file: Path | None = None

    # Uploads
    upload_dir: Path = field(default_factory=lambda: Path("./data/uploads"))
    max_upload_mb: int = 25
    supported_formats: frozenset = frozenset(
        {".mp3", ".m4a", ".wav", ".ogg", ".flac", ".webm", ".aac", ".opus", ".3gp", ".mp4"}
    )

    log_level: str = "INFO"
    engine_version: str = "1.0.0"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def ensure_directories(self):
        """Create the upload directory if it doesn't exist."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate(self):
        """Validate the transcription settings.

        Raises:
            ValueError: On an unknown engine or missing credentials.
        """
        if self.transcription_engine not in TRANSCRIPTION_ENGINES:
            logger.error(f"Unknown transcription engine: {self.transcription_engine}")
            raise ValueError(
                f"TRANSCRIPTION_ENGINE must be one of {', '.join(TRANSCRIPTION_ENGINES)}"
            )
        if self.transcription_engine == "gemini" and not self.gemini_api_keys:
            logger.error("No Gemini API keys configured")
            raise ValueError("At least one Gemini API key is required")
        if self.transcription_engine in ("whisper-1", "gpt-4o-transcribe"):
            if not self.openai_api_key:
                logger.error("OpenAI API key required when using OpenAI transcription engine")
                raise ValueError("OPENAI_API_KEY is required for OpenAI transcription")


def _parse_keys() -> list[str]:
    """GEMINI_API_KEYS (comma-separated) or a single GEMINI_API_KEY."""
    keys_str = os.environ.get("GEMINI_API_KEYS", "")
    keys = [k.strip() for k in keys_str.split(",") if k.strip()]
    if not keys:
        single = os.environ.get("GEMINI_API_KEY", "").strip()
        if single:
            keys = [single]
    return keys


def _parse_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default


def load_config(env_file: str = ".env") -> EngineConfig:
    """Load configuration from environment variables.

    Recognised env vars:
        TRANSCRIPTION_ENGINE — gemini | whisper-1 | gpt-4o-transcribe
        GEMINI_API_KEYS      — comma-separated Gemini API keys
                               (or GEMINI_API_KEY for a single key)
        GEMINI_MODEL         — Gemini model id
        OPENAI_API_KEY       — required for the OpenAI engines
        DEFAULT_TIMEZONE     — IANA zone used when a request sends none
        CORRECTIONS_FILE     — JSON list of extra [pattern, replacement] pairs
        UPLOAD_DIR           — where uploaded audio is staged
        MAX_UPLOAD_MB        — upload size limit
        LOG_LEVEL            — logging level name

    Nothing is required here; call validate() before transcribing.
    """
    load_dotenv(env_file)

    corrections = os.environ.get("CORRECTIONS_FILE", "").strip()

    config = EngineConfig(
        transcription_engine=os.environ.get("TRANSCRIPTION_ENGINE", "gemini").strip(),
        gemini_api_keys=_parse_keys(),
        gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
        default_timezone=os.environ.get("DEFAULT_TIMEZONE", "UTC"),
        corrections_file=Path(corrections) if corrections else None,
        upload_dir=Path(os.environ.get("UPLOAD_DIR", "./data/uploads")),
        max_upload_mb=_parse_int("MAX_UPLOAD_MB", 25),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    logger.info(
        f"Config loaded | Engine: {config.transcription_engine} | "
        f"Timezone: {config.default_timezone} | Uploads: {config.upload_dir}"
    )
    return config
