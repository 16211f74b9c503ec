"""
Request handlers: /process_text, /transcribe and /health.

Handlers are plain `def` so FastAPI runs the blocking provider calls in its
threadpool. Every error body is {"error": code, "message": text} with
neutral wording.
"""

import uuid
import logging
from pathlib import Path
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel

from jotengine import __version__
from jotengine.config import EngineConfig, load_config
from jotengine.corrections import load_corrections_file
from jotengine.models import Platform
from jotengine.providers import DeterministicNLPProvider
from jotengine.transcribers import get_transcriber

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_TEXT_CHARS = 2
AUDIO_PLATFORMS = {Platform.ANDROID.value, Platform.IOS.value}
COPY_CHUNK_BYTES = 1024 * 1024


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class ProcessTextRequest(BaseModel):
    text: Optional[str] = None
    platform: str = "web"
    timezone: Optional[str] = None


# ============================================================================
# DEPENDENCIES
# ============================================================================

@lru_cache
def get_config() -> EngineConfig:
    return load_config()


def get_provider(config: EngineConfig = Depends(get_config)) -> DeterministicNLPProvider:
    return _provider_for(config.corrections_file, config.default_timezone)


@lru_cache
def _provider_for(corrections_file, default_timezone) -> DeterministicNLPProvider:
    extra = load_corrections_file(corrections_file) if corrections_file else []
    return DeterministicNLPProvider(extra_corrections=extra, default_timezone=default_timezone)


_transcribers: dict = {}


def get_transcriber_dep(config: EngineConfig = Depends(get_config)):
    """The configured transcriber, built once per engine; None when unavailable."""
    key = (config.transcription_engine, config.gemini_model)
    if key not in _transcribers:
        try:
            _transcribers[key] = get_transcriber(config)
        except ValueError as e:
            logger.error(f"Transcription is not configured: {e}")
            return None
    return _transcribers[key]


def _error(status: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status, detail={"error": code, "message": message})


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/process_text")
def process_text(
    request: ProcessTextRequest,
    provider: DeterministicNLPProvider = Depends(get_provider),
):
    """Clean typed text and extract tasks."""
    text = request.text
    if not isinstance(text, str) or len(text.strip()) < MIN_TEXT_CHARS:
        raise _error(400, "invalid_request", "Add a few words so there's something to work with.")

    platform = (request.platform or "web").lower()
    if platform not in {p.value for p in Platform}:
        raise _error(400, "invalid_request",
                     "Platform should be one of: web, electron, android, ios.")

    try:
        result = provider.process(text, platform=platform, timezone=request.timezone)
    except Exception:
        logger.error("Text processing failed", exc_info=True)
        raise _error(500, "processing_failed", "Something went wrong on our side. Please try again.")

    logger.info(f"/process_text | platform={platform} | {len(text)} chars | "
                f"{len(result.tasks)} task(s)")
    return result.to_dict()


@router.post("/transcribe")
def transcribe(
    file: Optional[UploadFile] = File(None),
    platform: Optional[str] = Form(None),
    timezone: Optional[str] = Form(None),
    config: EngineConfig = Depends(get_config),
    provider: DeterministicNLPProvider = Depends(get_provider),
    transcriber=Depends(get_transcriber_dep),
):
    """Transcribe an uploaded voice note, then clean it and extract tasks.

    The upload is staged in a request-scoped temp file that is always
    removed, whether transcription succeeds or not.
    """
    if file is None or not file.filename:
        raise _error(400, "invalid_request", "Attach an audio file to transcribe.")

    platform = (platform or "").lower()
    if platform not in AUDIO_PLATFORMS:
        raise _error(400, "invalid_request", "Platform should be android or ios.")

    ext = Path(file.filename).suffix.lower()
    if ext not in config.supported_formats:
        raise _error(400, "unsupported_format",
                     f"That audio format isn't supported. Try one of: "
                     f"{', '.join(sorted(config.supported_formats))}.")

    if transcriber is None:
        raise _error(503, "transcription_unavailable",
                     "Voice notes aren't available right now. You can type your note instead.")

    config.ensure_directories()
    temp_path = config.upload_dir / f"{uuid.uuid4().hex}{ext}"

    try:
        size = 0
        with open(temp_path, "wb") as f:
            while True:
                chunk = file.file.read(COPY_CHUNK_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > config.max_upload_bytes:
                    raise _error(413, "file_too_large",
                                 f"That recording is over {config.max_upload_mb}MB. "
                                 f"A shorter clip will work.")
                f.write(chunk)

        if size == 0:
            raise _error(400, "invalid_request", "The audio file is empty.")

        logger.info(f"/transcribe | platform={platform} | {file.filename} ({size / 1024:.0f}KB)")

        try:
            transcript = transcriber.transcribe(temp_path)
        except (ValueError, RuntimeError) as e:
            logger.warning(f"Transcription failed: {e}")
            raise _error(503, "transcription_unavailable",
                         "We couldn't transcribe that recording just now. Please try again in a moment.")

        result = provider.process(transcript.raw_text, platform=platform, timezone=timezone)

    except HTTPException:
        raise
    except Exception:
        logger.error("Voice note processing failed", exc_info=True)
        raise _error(500, "processing_failed", "Something went wrong on our side. Please try again.")
    finally:
        temp_path.unlink(missing_ok=True)

    return {
        "transcript": {
            "id": transcript.id,
            "rawText": transcript.raw_text,
            "cleanedText": result.cleaned_text,
            "meta": {**transcript.meta, "created_at": transcript.created_at.isoformat()},
        },
        "tasks": [t.to_dict() for t in result.tasks],
        "meta": {
            "provider": transcript.meta.get("provider", getattr(transcriber, "provider", "")),
            "model": transcript.meta.get("model", getattr(transcriber, "model", "")),
            "platform": platform,
            "taskCount": len(result.tasks),
        },
    }


@router.get("/health")
def health(config: EngineConfig = Depends(get_config)):
    return {
        "status": "ok",
        "version": __version__,
        "transcription_engine": config.transcription_engine,
    }
