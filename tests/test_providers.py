"""DeterministicNLPProvider and timezone resolution."""

import json
from datetime import datetime, timezone

from jotengine.config import EngineConfig
from jotengine.corrections import load_corrections_file
from jotengine.providers import DeterministicNLPProvider, resolve_timezone


def test_process_returns_cleaned_text_tasks_and_meta(reference_now):
    result = DeterministicNLPProvider().process(
        "um, call the bank tomorrow", platform="android", now=reference_now
    )
    assert result.cleaned_text == "Call the bank tomorrow."
    assert [t.due for t in result.tasks] == ["2024-01-16"]

    meta = result.meta
    assert meta["provider"] == "deterministic"
    assert meta["platform"] == "android"
    assert meta["timezone"] == "UTC"
    assert meta["taskCount"] == 1
    assert datetime.fromisoformat(meta["processed_at"])


def test_relative_dates_follow_the_callers_timezone():
    # 03:00 UTC on the 16th is still the evening of the 15th in New York
    now = datetime(2024, 1, 16, 3, 0, tzinfo=timezone.utc)
    provider = DeterministicNLPProvider()

    local = provider.process("pay rent tomorrow", timezone="America/New_York", now=now)
    utc = provider.process("pay rent tomorrow", timezone="UTC", now=now)

    assert local.tasks[0].due == "2024-01-16"
    assert utc.tasks[0].due == "2024-01-17"
    assert local.meta["timezone"] == "America/New_York"


def test_unknown_timezone_falls_back_to_default(reference_now):
    provider = DeterministicNLPProvider(default_timezone="Europe/London")
    result = provider.process("call mom", timezone="Mars/Olympus", now=reference_now)
    assert result.meta["timezone"] == "Europe/London"


def test_resolve_timezone_last_resort_is_utc():
    assert resolve_timezone("Nowhere/Special", "Also/Nowhere") == timezone.utc
    assert resolve_timezone(None, "") == timezone.utc


def test_to_dict_wire_shape(reference_now):
    data = DeterministicNLPProvider().process(
        "Need to buy groceries #shopping", now=reference_now
    ).to_dict()
    assert set(data) == {"cleanedText", "tasks", "meta"}
    assert data["tasks"] == [{"title": "buy groceries", "tags": ["shopping"], "priority": "med"}]


def test_empty_text_gives_empty_result(reference_now):
    result = DeterministicNLPProvider().process("", now=reference_now)
    assert result.cleaned_text == ""
    assert result.tasks == []
    assert result.meta["taskCount"] == 0


def test_extra_corrections_from_file(tmp_path, reference_now):
    path = tmp_path / "corrections.json"
    path.write_text(json.dumps([["ping", "message"], ["bad"], 5]))

    provider = DeterministicNLPProvider.from_config(EngineConfig(corrections_file=path))
    result = provider.process("ping the team tomorrow", now=reference_now)

    assert result.cleaned_text == "Message the team tomorrow."
    assert result.tasks[0].title == "Message the team tomorrow"


def test_missing_corrections_file_is_ignored(tmp_path):
    assert load_corrections_file(tmp_path / "missing.json") == []
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert load_corrections_file(broken) == []
