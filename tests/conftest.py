"""Shared fixtures for the jotengine / jotapi test suite."""

import os
from datetime import datetime

import pytest

from jotengine.models import TranscriptionResult

# A Monday
REFERENCE_NOW = datetime(2024, 1, 15, 10, 0)

ENV_VARS = [
    "TRANSCRIPTION_ENGINE", "GEMINI_API_KEYS", "GEMINI_API_KEY", "GEMINI_MODEL",
    "OPENAI_API_KEY", "DEFAULT_TIMEZONE", "UPLOAD_DIR", "MAX_UPLOAD_MB",
    "CORRECTIONS_FILE", "LOG_LEVEL",
]


@pytest.fixture
def reference_now():
    return REFERENCE_NOW


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No engine env vars and no stray .env file in the working directory.

    os.environ is swapped for a copy so values load_dotenv() writes don't leak.
    """
    monkeypatch.setattr(os, "environ", os.environ.copy())
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class FakeTranscriber:
    """Stands in for OpenAITranscriber / GeminiTranscriber."""

    provider = "fake"
    model = "fake-1"

    def __init__(self, text="um I need to call the bank tomorrow", error=None):
        self.text = text
        self.error = error
        self.seen_paths = []

    def transcribe(self, audio_path, prompt="", max_retries=1):
        self.seen_paths.append(audio_path)
        if self.error:
            raise self.error
        return TranscriptionResult(
            raw_text=self.text,
            meta={"provider": self.provider, "model": self.model},
        )


@pytest.fixture
def fake_transcriber():
    return FakeTranscriber()


@pytest.fixture
def make_transcriber():
    return FakeTranscriber
