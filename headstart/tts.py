from __future__ import annotations

import asyncio
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from headstart.audio import AudioClip, AudioOutput, decode_pcm16

if TYPE_CHECKING:
    from headstart.gemini import GenerationGateway

PROVIDER_GEMINI = "gemini"
PROVIDER_EDGE = "edge"
SPEECH_PROVIDERS = (PROVIDER_GEMINI, PROVIDER_EDGE)


class TTSSynthesisError(RuntimeError):
    """Raised when speech synthesis produced no audio."""


@dataclass(frozen=True)
class SpeechSettings:
    provider: str = PROVIDER_GEMINI
    edge_voice: str = "es-ES-ElviraNeural"
    rate: str = "+0%"
    pitch: str = "+0Hz"


LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]+\)")
BOLD_PATTERN = re.compile(r"\*\*([^*]+)\*\*")
ITALIC_PATTERN = re.compile(r"\*([^*]+)\*")
UNDERSCORE_PATTERN = re.compile(r"_([^_]+)_")
HEADING_PATTERN = re.compile(r"^#+\s*", re.MULTILINE)
WHITESPACE_PATTERN = re.compile(r"\s+")
MAX_TTS_RETRIES = 2
EDGE_TTS_EXTENSION = ".mp3"


def sanitize_text_for_speech(text: str) -> str:
    cleaned = unicodedata.normalize("NFKC", text)
    cleaned = HEADING_PATTERN.sub("", cleaned)
    cleaned = LINK_PATTERN.sub(r"\1", cleaned)
    cleaned = BOLD_PATTERN.sub(r"\1", cleaned)
    cleaned = ITALIC_PATTERN.sub(r"\1", cleaned)
    cleaned = UNDERSCORE_PATTERN.sub(r"\1", cleaned)
    cleaned = "".join(
        ch
        for ch in cleaned
        if unicodedata.category(ch) not in {"Cc", "Cf", "Cn", "Co", "Cs", "So"}
        or ch in "\n\t"
    )
    return WHITESPACE_PATTERN.sub(" ", cleaned).strip()


def synthesize_with_edge_tts(text: str, output_path: Path, settings: SpeechSettings) -> Path:
    import edge_tts

    async def _save_with_retries(
        communicate_factory: Callable[[], edge_tts.Communicate],
    ) -> None:
        for attempt in range(MAX_TTS_RETRIES + 1):
            communicate = communicate_factory()
            try:
                await communicate.save(str(output_path))
                return
            except edge_tts.exceptions.NoAudioReceived as error:
                if attempt >= MAX_TTS_RETRIES:
                    raise TTSSynthesisError(
                        "No audio was received from Edge TTS after retries. "
                        "Verify the voice, rate, pitch, and network connectivity."
                    ) from error

    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        asyncio.run(
            _save_with_retries(
                lambda: edge_tts.Communicate(
                    text,
                    voice=settings.edge_voice,
                    rate=settings.rate,
                    pitch=settings.pitch,
                )
            )
        )
    except TTSSynthesisError:
        if output_path.exists():
            output_path.unlink()
        raise
    return output_path


def play_speech(
    text: str,
    gateway: "GenerationGateway",
    output: AudioOutput,
    settings: SpeechSettings,
) -> AudioClip:
    """Synthesize ``text`` with the configured provider and start playback."""
    cleaned = sanitize_text_for_speech(text)
    if not cleaned:
        raise TTSSynthesisError("Nothing to read aloud.")
    if settings.provider == PROVIDER_EDGE:
        path = synthesize_with_edge_tts(
            cleaned, output.clip_path(EDGE_TTS_EXTENSION), settings
        )
        return output.play_file(path)
    if settings.provider != PROVIDER_GEMINI:
        raise ValueError(f"Unknown speech provider '{settings.provider}'.")
    return output.play(decode_pcm16(gateway.speak_text(cleaned)))


__all__ = [
    "PROVIDER_EDGE",
    "PROVIDER_GEMINI",
    "SPEECH_PROVIDERS",
    "SpeechSettings",
    "TTSSynthesisError",
    "play_speech",
    "sanitize_text_for_speech",
    "synthesize_with_edge_tts",
]
