"""
Command-line entry point: run the text-to-task pipeline on text or audio.

    jotengine process "call mom tomorrow and buy milk"
    jotengine process -f notes.txt --timezone Europe/London
    jotengine transcribe memo.m4a
"""

import sys
import json
import logging
import argparse
from pathlib import Path

from dateutil import parser as dateutil_parser

from .config import load_config
from .providers import DeterministicNLPProvider
from .transcribers import get_transcriber

logger = logging.getLogger(__name__)


def _read_text(args) -> str:
    if args.file:
        return Path(args.file).read_text(encoding="utf-8")
    return args.text or ""


def _print(data: dict):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_process(args, config) -> int:
    now = dateutil_parser.parse(args.now) if args.now else None
    text = _read_text(args)
    if not text.strip():
        print("Nothing to process: pass TEXT or -f FILE", file=sys.stderr)
        return 1

    provider = DeterministicNLPProvider.from_config(config)
    result = provider.process(text, platform=args.platform, timezone=args.timezone, now=now)
    _print(result.to_dict())
    return 0


def cmd_transcribe(args, config) -> int:
    audio_path = Path(args.audio)
    if not audio_path.is_file():
        print(f"Audio file not found: {audio_path}", file=sys.stderr)
        return 1

    transcriber = get_transcriber(config)
    transcript = transcriber.transcribe(audio_path)

    provider = DeterministicNLPProvider.from_config(config)
    result = provider.process(transcript.raw_text, platform=args.platform, timezone=args.timezone)
    _print({
        "transcript": {
            "id": transcript.id,
            "rawText": transcript.raw_text,
            "cleanedText": result.cleaned_text,
            "meta": transcript.meta,
        },
        "tasks": [t.to_dict() for t in result.tasks],
        "meta": {**result.meta, "model": transcriber.model},
    })
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jotengine",
        description="Turn spoken or typed notes into structured tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s process "um call the doctor tomorrow #health"
  %(prog)s process -f brain-dump.txt --now 2025-01-15T10:00:00
  %(prog)s transcribe memo.m4a

Environment:
  TRANSCRIPTION_ENGINE, GEMINI_API_KEYS / OPENAI_API_KEY, DEFAULT_TIMEZONE
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    process = sub.add_parser("process", help="Clean text and extract tasks")
    process.add_argument("text", nargs="?", help="Text to process")
    process.add_argument("-f", "--file", type=Path, help="Read text from a file instead")
    process.add_argument("--timezone", help="IANA timezone for relative dates (e.g. America/New_York)")
    process.add_argument("--platform", default="web", choices=["web", "electron", "android", "ios"])
    process.add_argument("--now", help="Reference time, e.g. 2025-01-15T10:00 (default: current time)")
    process.set_defaults(func=cmd_process)

    transcribe = sub.add_parser("transcribe", help="Transcribe audio, then extract tasks")
    transcribe.add_argument("audio", type=Path, help="Audio file (.m4a, .mp3, .wav, ...)")
    transcribe.add_argument("--timezone", help="IANA timezone for relative dates")
    transcribe.add_argument("--platform", default="android", choices=["android", "ios"])
    transcribe.set_defaults(func=cmd_transcribe)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config()
        return args.func(args, config)
    except (ValueError, RuntimeError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
