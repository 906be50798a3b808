from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional, Sequence

from headstart.audio import get_audio_output
from headstart.controller import ViewStateController
from headstart.gemini import (
    DEFAULT_BASE_URL,
    DEFAULT_COURSE_MODEL,
    DEFAULT_SPEECH_MODEL,
    DEFAULT_TEXT_MODEL,
    DEFAULT_VOICE,
    GeminiClient,
    GeminiSettings,
    GenerationGateway,
)
from headstart.storage import LocalStorage, SavedBooks, StorageError
from headstart.tts import SPEECH_PROVIDERS, SpeechSettings

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")
AUDIO_DIRNAME = "audio"


def _default_api_key() -> Optional[str]:
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve the HeadStart personal-growth app locally."
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface for the server (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for the server (default: 8080).",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path(".headstart"),
        help="Directory holding saved books and generated audio clips.",
    )
    parser.add_argument(
        "--api-key",
        default=_default_api_key(),
        help="Gemini API key (default: $GEMINI_API_KEY, then $API_KEY).",
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help="Base URL of the Gemini REST API.",
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_TEXT_MODEL,
        help="Model for plans, summaries, mentors and topic lists.",
    )
    parser.add_argument(
        "--course-model",
        default=DEFAULT_COURSE_MODEL,
        help="Model for micro-course generation.",
    )
    parser.add_argument(
        "--speech-model",
        default=DEFAULT_SPEECH_MODEL,
        help="Model for Gemini speech synthesis.",
    )
    parser.add_argument(
        "--voice",
        default=DEFAULT_VOICE,
        help="Prebuilt Gemini voice name (default: Kore).",
    )
    parser.add_argument(
        "--speech-provider",
        choices=SPEECH_PROVIDERS,
        default=SpeechSettings().provider,
        help="Speech synthesis provider (default: gemini).",
    )
    parser.add_argument(
        "--edge-voice",
        default=SpeechSettings().edge_voice,
        help="Edge TTS voice used when --speech-provider=edge.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Optional timeout in seconds for Gemini requests.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress logging.",
    )
    return parser


def build_controller(args: argparse.Namespace) -> ViewStateController:
    settings = GeminiSettings(
        api_key=args.api_key,
        base_url=args.base_url,
        text_model=args.model,
        course_model=args.course_model,
        speech_model=args.speech_model,
        voice=args.voice,
        timeout=args.timeout,
    )
    verbose = not args.quiet
    storage = LocalStorage(args.data_dir)
    return ViewStateController(
        gateway=GenerationGateway(GeminiClient(settings), verbose=verbose),
        saved_books=SavedBooks.load(storage),
        audio_output=get_audio_output(args.data_dir / AUDIO_DIRNAME),
        speech_settings=SpeechSettings(
            provider=args.speech_provider, edge_voice=args.edge_voice
        ),
        verbose=verbose,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.api_key:
        parser.error(
            "A Gemini API key is required. Pass --api-key or set GEMINI_API_KEY."
        )
    try:
        controller = build_controller(args)
    except StorageError as exc:
        parser.error(str(exc))

    from headstart.server import run_server

    run_server(controller, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
