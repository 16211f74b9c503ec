"""
Speech-to-text providers: OpenAI (whisper-1, gpt-4o-transcribe) and Gemini.

Both expose transcribe(audio_path) -> TranscriptionResult so the request
handlers and CLI don't care which engine is configured. Only raw
transcription happens here; cleanup and task extraction run afterwards in
the deterministic pipeline.
"""

import time
import logging
import threading
from pathlib import Path
from datetime import datetime, timedelta, timezone

from google import genai
from google.genai import types
from openai import OpenAI, APIError, RateLimitError, APIConnectionError

from .models import TranscriptionResult

logger = logging.getLogger(__name__)

# OpenAI audio API has a 25MB file size limit
MAX_FILE_SIZE_MB = 25
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

MAX_RETRIES = 5
INITIAL_BACKOFF_SECONDS = 2

OPENAI_MODELS = ("whisper-1", "gpt-4o-transcribe")

TRANSCRIPTION_PROMPT = """Transcribe the following audio exactly as spoken.

Instructions:
- Transcribe verbatim, capturing every word
- Keep filler words (um, uh, like); they are removed downstream
- Use plain punctuation; do not add headings, bullets or commentary
- Keep list-like speech ("first... second...") on separate lines

Output the transcription directly without any preamble."""

# Error message markers for classification
_QUOTA_MARKERS = ["429", "quota", "rate limit", "resource exhausted", "too many requests"]
_NETWORK_MARKERS = ["broken pipe", "errno 32", "connection", "reset", "timeout"]

RATE_LIMIT_WAIT_SECONDS = 15   # Cooldown after a 429 before reusing the same key
MAX_429_BEFORE_EXHAUST = 3     # Consecutive 429s before a key is dropped


class OpenAITranscriber:
    """OpenAI audio transcription with exponential backoff on transient errors."""

    def __init__(self, api_key: str, model: str = "whisper-1"):
        if not api_key:
            raise ValueError("OpenAI API key is required")
        if model not in OPENAI_MODELS:
            raise ValueError(f"Unsupported OpenAI transcription model: {model}. "
                             f"Use one of: {', '.join(OPENAI_MODELS)}.")
        self._client = OpenAI(api_key=api_key)
        self.model = model
        self.provider = "openai"
        logger.info(f"OpenAI transcriber initialized | model={model}")

    def transcribe(self, audio_path: Path, prompt: str = "",
                   max_retries: int = MAX_RETRIES) -> TranscriptionResult:
        """Transcribe an audio file.

        Raises:
            ValueError: File over 25MB, empty transcript, or a 4xx API error.
            RuntimeError: All retries exhausted.
        """
        audio_path = Path(audio_path)

        file_size = audio_path.stat().st_size
        if file_size > MAX_FILE_SIZE_BYTES:
            raise ValueError(
                f"Audio file is {file_size / (1024 * 1024):.1f}MB, "
                f"over the {MAX_FILE_SIZE_MB}MB limit ({audio_path.name})"
            )

        logger.info(f"Transcribing with OpenAI {self.model}: {audio_path.name} "
                    f"({file_size / (1024 * 1024):.1f}MB)")

        last_error = None
        for attempt in range(1, max_retries + 1):
            try:
                with open(audio_path, "rb") as audio_file:
                    response = self._client.audio.transcriptions.create(
                        file=audio_file,
                        model=self.model,
                        prompt=prompt or TRANSCRIPTION_PROMPT,
                        response_format="text",
                    )

                # response is a plain string when response_format="text"
                transcript = response.strip() if isinstance(response, str) else response.text.strip()
                if not transcript:
                    raise ValueError("OpenAI returned an empty transcript")

                logger.info(f"Transcription complete | {len(transcript)} chars | model={self.model}")
                return TranscriptionResult(
                    raw_text=transcript,
                    meta={"provider": self.provider, "model": self.model, "size_bytes": file_size},
                )

            except APIError as e:
                last_error = e
                reason = self._retry_reason(e)
                wait = INITIAL_BACKOFF_SECONDS * (2 ** (attempt - 1))
                logger.warning(f"{reason} (attempt {attempt}/{max_retries}), retrying in {wait}s: {e}")
                time.sleep(wait)

        raise RuntimeError(f"OpenAI transcription failed after {max_retries} attempts: {last_error}")

    @staticmethod
    def _retry_reason(e: APIError) -> str:
        """Label for a retryable API error. A 4xx other than 429 raises ValueError."""
        if isinstance(e, RateLimitError):
            return "Rate limited"
        if isinstance(e, APIConnectionError):
            return "Connection error"
        status = getattr(e, "status_code", None)
        if status and 400 <= status < 500:
            logger.error(f"OpenAI API error (non-retryable): {e}")
            raise ValueError(f"OpenAI rejected the request: {e}") from e
        return f"API error {status}" if status else "API error"


class GeminiTranscriber:
    """Gemini transcription with round-robin key rotation.

    A key that returns 429 cools down for RATE_LIMIT_WAIT_SECONDS and its 429
    count resets once the cooldown ends. A key that collects
    MAX_429_BEFORE_EXHAUST 429s within one cooldown (overlapping requests) is
    dropped for the process lifetime. Network errors retry with backoff.

    One instance is shared by concurrent requests, so key state is guarded
    by a lock that is never held while sleeping.
    """

    def __init__(self, api_keys: list[str], model: str = "gemini-2.0-flash"):
        if not api_keys:
            raise ValueError("At least one Gemini API key is required")
        self._keys = list(api_keys)
        self._key_index = 0
        self._exhausted: set[int] = set()
        self._cooldowns: dict[int, datetime] = {}
        self._429_counts: dict[int, int] = {}
        self._clients: dict[int, genai.Client] = {}
        self._lock = threading.Lock()
        self.model = model
        self.provider = "gemini"
        logger.info(f"Gemini transcriber initialized | model={model} | keys={len(self._keys)}")

    def _end_cooldown(self, key_idx: int) -> datetime:
        """Drop a key's cooldown and its 429 count. Caller holds the lock."""
        self._429_counts.pop(key_idx, None)
        return self._cooldowns.pop(key_idx)

    def _next_key(self) -> int:
        """Index of the next usable key; sleeps if every live key is cooling down."""
        with self._lock:
            now = datetime.now(timezone.utc)
            for idx in [i for i, until in self._cooldowns.items() if until <= now]:
                self._end_cooldown(idx)

            live = [i for i in range(len(self._keys)) if i not in self._exhausted]
            if not live:
                raise RuntimeError("All Gemini API keys exhausted")

            ready = [i for i in live if i not in self._cooldowns]
            if ready:
                idx = ready[self._key_index % len(ready)]
                self._key_index += 1
                return idx

            soonest = min(live, key=lambda i: self._cooldowns[i])
            wait = (self._end_cooldown(soonest) - now).total_seconds()

        if wait > 0:
            logger.info(f"All keys rate-limited, waiting {wait:.0f}s for key {soonest + 1}")
            time.sleep(wait)
        return soonest

    def _handle_rate_limit(self, key_idx: int):
        with self._lock:
            count = self._429_counts.get(key_idx, 0) + 1
            self._429_counts[key_idx] = count
            if count >= MAX_429_BEFORE_EXHAUST:
                logger.warning(f"Key {key_idx + 1} hit {count} 429s in one cooldown, marking exhausted")
                self._exhausted.add(key_idx)
                self._cooldowns.pop(key_idx, None)
            else:
                self._cooldowns[key_idx] = datetime.now(timezone.utc) + timedelta(seconds=RATE_LIMIT_WAIT_SECONDS)
                logger.warning(f"Key {key_idx + 1} rate-limited ({count}/{MAX_429_BEFORE_EXHAUST})")

    def _reset_rate_limit(self, key_idx: int):
        with self._lock:
            self._429_counts.pop(key_idx, None)

    def _client(self, key_idx: int) -> genai.Client:
        with self._lock:
            if key_idx not in self._clients:
                self._clients[key_idx] = genai.Client(api_key=self._keys[key_idx])
            return self._clients[key_idx]

    @staticmethod
    def _is_quota_error(e: Exception) -> bool:
        s = str(e).lower()
        return any(m in s for m in _QUOTA_MARKERS)

    @staticmethod
    def _is_network_error(e: Exception) -> bool:
        s = str(e).lower()
        return any(m in s for m in _NETWORK_MARKERS)

    @staticmethod
    def _validate_response(response) -> str:
        """Text of a Gemini response, or ValueError when there is none."""
        if not response or not getattr(response, "candidates", None):
            raise ValueError("No candidates in Gemini response")
        finish = str(getattr(response.candidates[0], "finish_reason", "") or "")
        if finish and "STOP" not in finish and "UNSPECIFIED" not in finish:
            if "MAX_TOKENS" in finish and response.text:
                logger.warning("Response hit max token limit, returning partial transcript")
            else:
                raise ValueError(f"Abnormal finish reason: {finish}")
        text = (response.text or "").strip()
        if not text:
            raise ValueError("Gemini returned an empty transcript")
        return text

    def transcribe(self, audio_path: Path, prompt: str = "",
                   max_retries: int = MAX_RETRIES) -> TranscriptionResult:
        """Upload the audio, ask for a verbatim transcript, always delete the upload.

        Raises:
            ValueError: Empty or abnormal response.
            RuntimeError: Keys exhausted or retries used up.
        """
        audio_path = Path(audio_path)
        file_size = audio_path.stat().st_size
        last_error = None

        for attempt in range(max_retries):
            key_idx = self._next_key()
            client = self._client(key_idx)
            logger.info(f"Transcribing {audio_path.name} "
                        f"(attempt {attempt + 1}/{max_retries}, key {key_idx + 1}/{len(self._keys)})")
            try:
                audio_file = client.files.upload(file=str(audio_path))
                try:
                    response = client.models.generate_content(
                        model=self.model,
                        contents=[prompt or TRANSCRIPTION_PROMPT, audio_file],
                        config=types.GenerateContentConfig(
                            temperature=1.0,
                            top_p=0.95,
                            max_output_tokens=65536,
                        ),
                    )
                finally:
                    try:
                        client.files.delete(name=audio_file.name)
                    except Exception as e:
                        logger.warning(f"Could not delete uploaded file {audio_file.name}: {e}")

                text = self._validate_response(response)
                self._reset_rate_limit(key_idx)
                logger.info(f"Transcription complete: {len(text)} chars")
                return TranscriptionResult(
                    raw_text=text,
                    meta={"provider": self.provider, "model": self.model, "size_bytes": file_size},
                )

            except ValueError:
                raise
            except Exception as e:
                last_error = e
                if self._is_quota_error(e):
                    self._handle_rate_limit(key_idx)
                    continue
                if self._is_network_error(e):
                    wait = min(5 * (2 ** attempt), 30)
                    logger.warning(f"Network error, retrying in {wait}s: {e}")
                    time.sleep(wait)
                    continue
                raise

        raise RuntimeError(f"Gemini transcription failed after {max_retries} attempts: {last_error}")


def get_transcriber(config) -> "OpenAITranscriber | GeminiTranscriber":
    """Build the transcriber named by config.transcription_engine.

    Raises:
        ValueError: Unknown engine or missing credentials.
    """
    config.validate()
    if config.transcription_engine in OPENAI_MODELS:
        return OpenAITranscriber(config.openai_api_key, model=config.transcription_engine)
    return GeminiTranscriber(config.gemini_api_keys, model=config.gemini_model)
