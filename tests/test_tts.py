import base64
import struct
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from headstart.audio import AudioOutput
from headstart.tts import (
    PROVIDER_EDGE,
    SpeechSettings,
    TTSSynthesisError,
    play_speech,
    sanitize_text_for_speech,
)


class TestSanitizeTextForSpeech(unittest.TestCase):
    def test_strips_markdown_and_symbols(self) -> None:
        text = "# Título\n**Atomic** _Habits_ ⚡ [enlace](https://example.test)"

        self.assertEqual(
            sanitize_text_for_speech(text), "Título Atomic Habits enlace"
        )


class TestPlaySpeech(unittest.TestCase):
    def test_gemini_provider_decodes_and_plays(self) -> None:
        gateway = Mock()
        gateway.speak_text.return_value = base64.b64encode(
            struct.pack("<2h", 1, 2)
        ).decode("ascii")

        with tempfile.TemporaryDirectory() as tmpdir:
            output = AudioOutput(Path(tmpdir))
            clip = play_speech("**Hola**", gateway, output, SpeechSettings())

            self.assertTrue(clip.path.is_file())
            self.assertEqual(output.take_started(), [clip])
        gateway.speak_text.assert_called_once_with("Hola")

    def test_edge_provider_uses_edge_tts(self) -> None:
        gateway = Mock()
        settings = SpeechSettings(provider=PROVIDER_EDGE)

        with tempfile.TemporaryDirectory() as tmpdir:
            output = AudioOutput(Path(tmpdir))
            with patch(
                "headstart.tts.synthesize_with_edge_tts",
                side_effect=lambda text, path, _: path,
            ) as synthesize:
                clip = play_speech("Hola", gateway, output, settings)

        self.assertTrue(clip.name.endswith(".mp3"))
        self.assertEqual(synthesize.call_args[0][0], "Hola")
        self.assertIs(synthesize.call_args[0][2], settings)
        gateway.speak_text.assert_not_called()

    def test_empty_text_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(TTSSynthesisError):
                play_speech("  ⚡ ", Mock(), AudioOutput(Path(tmpdir)), SpeechSettings())

    def test_unknown_provider_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(ValueError):
                play_speech(
                    "Hola",
                    Mock(),
                    AudioOutput(Path(tmpdir)),
                    SpeechSettings(provider="other"),
                )


if __name__ == "__main__":
    unittest.main()
