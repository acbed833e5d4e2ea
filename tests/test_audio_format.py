"""
Tests for audio extension detection
"""

import pytest

from speechwire.utils.audio_format import audio_format_from_path


class TestAudioFormatFromPath:

    @pytest.mark.parametrize("path,expected", [
        ("clip.webm", ("webm", "opus")),
        ("clip.ogg", ("ogg", "opus")),
        ("clip.mp4", ("mp4", "aac")),
        ("clip.m4a", ("mp4", "aac")),
        ("clip.mp3", ("mp3", "raw")),
        ("clip.wav", ("wav", "raw")),
        ("/tmp/rec/clip.PCM", ("pcm", "raw")),
    ])
    def test_known_extensions(self, path, expected):
        assert audio_format_from_path(path) == expected

    def test_no_extension_defaults_to_webm(self):
        assert audio_format_from_path("recording") == ("webm", "opus")

    def test_unsupported_extension(self):
        with pytest.raises(ValueError, match="Unsupported audio extension: flac"):
            audio_format_from_path("clip.flac")
