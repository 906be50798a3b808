import base64
import io
import struct
import tempfile
import unittest
import wave
from pathlib import Path
from unittest.mock import patch

from headstart import audio
from headstart.audio import (
    AudioBuffer,
    AudioDecodeError,
    AudioOutput,
    decode_pcm16,
    get_audio_output,
)


def _encode(values: list[int]) -> str:
    return base64.b64encode(struct.pack(f"<{len(values)}h", *values)).decode("ascii")


class TestDecodePcm16(unittest.TestCase):
    def test_samples_are_normalised(self) -> None:
        values = [0, 16384, -32768, 32767, -1]

        buffer = decode_pcm16(_encode(values))

        self.assertEqual(len(buffer.samples), len(values))
        for sample, value in zip(buffer.samples, values):
            self.assertEqual(sample, value / 32768.0)
        self.assertEqual(buffer.sample_rate, 24000)
        self.assertEqual(buffer.channels, 1)

    def test_trailing_odd_byte_is_ignored(self) -> None:
        raw = struct.pack("<2h", 100, -100) + b"\x7f"

        buffer = decode_pcm16(base64.b64encode(raw).decode("ascii"))

        self.assertEqual(buffer.samples, (100 / 32768.0, -100 / 32768.0))

    def test_invalid_base64_raises(self) -> None:
        with self.assertRaises(AudioDecodeError):
            decode_pcm16("not*base64!")


class TestAudioBuffer(unittest.TestCase):
    def test_wav_bytes_carry_format_and_frames(self) -> None:
        buffer = AudioBuffer(samples=(0.0, 0.5, -1.0))

        with wave.open(io.BytesIO(buffer.to_wav_bytes()), "rb") as wav_file:
            self.assertEqual(wav_file.getnchannels(), 1)
            self.assertEqual(wav_file.getsampwidth(), 2)
            self.assertEqual(wav_file.getframerate(), 24000)
            frames = wav_file.readframes(wav_file.getnframes())

        self.assertEqual(struct.unpack("<3h", frames), (0, 16384, -32768))

    def test_out_of_range_samples_are_clamped(self) -> None:
        buffer = AudioBuffer(samples=(2.0,))

        with wave.open(io.BytesIO(buffer.to_wav_bytes()), "rb") as wav_file:
            frames = wav_file.readframes(1)

        self.assertEqual(struct.unpack("<h", frames), (32767,))


class TestAudioOutput(unittest.TestCase):
    def test_each_play_starts_a_distinct_clip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            output = AudioOutput(Path(tmpdir))
            buffer = AudioBuffer(samples=(0.1, 0.2))

            first = output.play(buffer)
            second = output.play(buffer)

            self.assertNotEqual(first.name, second.name)
            self.assertTrue(first.path.is_file())
            self.assertTrue(second.path.is_file())
            self.assertEqual(output.take_started(), [first, second])
            self.assertEqual(output.take_started(), [])

    def test_play_file_registers_existing_clip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            output = AudioOutput(Path(tmpdir))
            path = output.clip_path(".mp3")
            path.write_bytes(b"ID3")

            clip = output.play_file(path)

            self.assertEqual(clip.name, path.name)
            self.assertTrue(clip.name.endswith(".mp3"))
            self.assertEqual(output.take_started(), [clip])


class TestGetAudioOutput(unittest.TestCase):
    def test_output_is_created_once(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch.object(audio, "_OUTPUT", None):
                first = get_audio_output(Path(tmpdir) / "a")
                second = get_audio_output(Path(tmpdir) / "b")

        self.assertIs(first, second)
        self.assertEqual(first.directory, Path(tmpdir) / "a")


if __name__ == "__main__":
    unittest.main()
