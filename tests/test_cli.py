"""jotengine command-line interface."""

import json

from jotengine import cli


def run(capsys, *argv):
    code = cli.main(list(argv))
    out, err = capsys.readouterr()
    return code, out, err


def test_process_text_argument(clean_env, capsys):
    code, out, _ = run(capsys, "process", "um, call the bank tomorrow", "--now", "2024-01-15T10:00")
    assert code == 0
    data = json.loads(out)
    assert data["cleanedText"] == "Call the bank tomorrow."
    assert data["tasks"] == [{"title": "Call the bank tomorrow", "due": "2024-01-16", "priority": "med"}]
    assert data["meta"]["platform"] == "web"


def test_process_reads_file(clean_env, tmp_path, capsys):
    notes = tmp_path / "notes.txt"
    notes.write_text("- pay rent\n- renew passport", encoding="utf-8")

    code, out, _ = run(capsys, "process", "-f", str(notes), "--platform", "electron")
    assert code == 0
    data = json.loads(out)
    assert [t["title"] for t in data["tasks"]] == ["pay rent", "renew passport"]
    assert data["meta"]["platform"] == "electron"


def test_process_uses_timezone(clean_env, capsys):
    code, out, _ = run(capsys, "process", "pay rent tomorrow",
                       "--timezone", "America/New_York", "--now", "2024-01-16T03:00:00+00:00")
    assert code == 0
    assert json.loads(out)["tasks"][0]["due"] == "2024-01-16"


def test_process_without_text_fails(clean_env, capsys):
    code, _, err = run(capsys, "process", "   ")
    assert code == 1
    assert "Nothing to process" in err


def test_process_bad_reference_time_fails(clean_env, capsys):
    code, _, err = run(capsys, "process", "call mom", "--now", "not-a-date")
    assert code == 1
    assert "Error:" in err


def test_transcribe_missing_file_fails(clean_env, tmp_path, capsys):
    code, _, err = run(capsys, "transcribe", str(tmp_path / "nope.m4a"))
    assert code == 1
    assert "not found" in err


def test_transcribe_without_credentials_fails(clean_env, tmp_path, capsys):
    audio = tmp_path / "memo.m4a"
    audio.write_bytes(b"audio")
    code, _, err = run(capsys, "transcribe", str(audio))
    assert code == 1
    assert "Gemini API key" in err


def test_transcribe_runs_pipeline(clean_env, tmp_path, capsys, fake_transcriber):
    clean_env.setattr(cli, "get_transcriber", lambda config: fake_transcriber)
    audio = tmp_path / "memo.m4a"
    audio.write_bytes(b"audio")

    code, out, _ = run(capsys, "transcribe", str(audio), "--platform", "ios")
    assert code == 0
    data = json.loads(out)
    assert data["transcript"]["rawText"] == "um I need to call the bank tomorrow"
    assert data["transcript"]["cleanedText"] == "I need to call the bank tomorrow."
    assert data["meta"]["model"] == "fake-1"
    assert data["meta"]["platform"] == "ios"
    assert data["meta"]["taskCount"] == 1
