from __future__ import annotations

import base64
import binascii
import io
import itertools
import struct
import threading
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2
PCM_SCALE = 32768.0


class AudioDecodeError(ValueError):
    """Raised when a speech payload is not valid base64 PCM."""


@dataclass(frozen=True)
class AudioBuffer:
    samples: tuple[float, ...]
    sample_rate: int = SAMPLE_RATE
    channels: int = CHANNELS

    def to_wav_bytes(self) -> bytes:
        frames = struct.pack(
            f"<{len(self.samples)}h",
            *(max(-32768, min(32767, round(sample * PCM_SCALE))) for sample in self.samples),
        )
        output = io.BytesIO()
        with wave.open(output, "wb") as wav_file:
            wav_file.setnchannels(self.channels)
            wav_file.setsampwidth(SAMPLE_WIDTH)
            wav_file.setframerate(self.sample_rate)
            wav_file.writeframes(frames)
        return output.getvalue()


def decode_pcm16(
    base64_text: str, sample_rate: int = SAMPLE_RATE, channels: int = CHANNELS
) -> AudioBuffer:
    """Decode base64 16-bit little-endian PCM into samples normalised to [-1, 1)."""
    try:
        raw = base64.b64decode(base64_text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AudioDecodeError("Audio payload is not valid base64.") from exc
    count = len(raw) // SAMPLE_WIDTH
    values = struct.unpack_from(f"<{count}h", raw)
    return AudioBuffer(
        samples=tuple(value / PCM_SCALE for value in values),
        sample_rate=sample_rate,
        channels=channels,
    )


@dataclass(frozen=True)
class AudioClip:
    name: str
    path: Path


class AudioOutput:
    """Audio output context: every played buffer becomes its own clip."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._started: list[AudioClip] = []

    def _next_name(self, extension: str) -> str:
        return f"clip-{next(self._counter):04d}{extension}"

    def play(self, buffer: AudioBuffer) -> AudioClip:
        self.directory.mkdir(parents=True, exist_ok=True)
        with self._lock:
            name = self._next_name(".wav")
        path = self.directory / name
        path.write_bytes(buffer.to_wav_bytes())
        return self._start(AudioClip(name=name, path=path))

    def play_file(self, path: Path) -> AudioClip:
        return self._start(AudioClip(name=path.name, path=path))

    def clip_path(self, extension: str) -> Path:
        """Reserve a path for a clip another encoder will write."""
        self.directory.mkdir(parents=True, exist_ok=True)
        with self._lock:
            return self.directory / self._next_name(extension)

    def _start(self, clip: AudioClip) -> AudioClip:
        with self._lock:
            self._started.append(clip)
        return clip

    def take_started(self) -> list[AudioClip]:
        with self._lock:
            started, self._started = self._started, []
        return started


_OUTPUT: Optional[AudioOutput] = None
_OUTPUT_LOCK = threading.Lock()


def get_audio_output(directory: Path) -> AudioOutput:
    """Return the process-wide output context, creating it on first use."""
    global _OUTPUT
    with _OUTPUT_LOCK:
        if _OUTPUT is None:
            _OUTPUT = AudioOutput(directory)
        return _OUTPUT


__all__ = [
    "AudioBuffer",
    "AudioClip",
    "AudioDecodeError",
    "AudioOutput",
    "SAMPLE_RATE",
    "decode_pcm16",
    "get_audio_output",
]
