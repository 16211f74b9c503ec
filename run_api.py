#!/usr/bin/env python3
"""
Jot API server.

Serves /process_text, /transcribe and /health for the web, desktop and
mobile clients.

Usage:
    python run_api.py

Configuration:
    Set environment variables in .env file (TRANSCRIPTION_ENGINE,
    GEMINI_API_KEYS or OPENAI_API_KEY, DEFAULT_TIMEZONE, ...).
    API_HOST / API_PORT choose the bind address.
"""

import os

import uvicorn


def main():
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "8000"))
    uvicorn.run("jotapi.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
