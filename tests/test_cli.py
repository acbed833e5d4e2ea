"""
Tests for the command line interface
"""

import json

import pytest

from speechwire import __version__
from speechwire.cli import build_parser, main
from speechwire.protocol.errors import ServerError
from speechwire.providers import VolcengineBidirectionalTTSProvider
from speechwire.utils.logger_config import reset_logger


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("SPEECHWIRE_APP_ID", "SPEECHWIRE_ACCESS_TOKEN", "SPEECHWIRE_RESOURCE_ID",
                 "SPEECHWIRE_TTS_RESOURCE_ID", "SPEECHWIRE_STT_RESOURCE_ID", "SPEECHWIRE_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)
    # No stray .env or config.yaml from the working directory
    monkeypatch.chdir(tmp_path)
    yield
    reset_logger()


class TestParser:

    def test_tts_defaults(self):
        args = build_parser().parse_args(["tts", "你好"])
        assert args.command == "tts"
        assert args.text == "你好"
        assert args.output == "output.mp3"
        assert not args.http

    def test_stt_options(self):
        args = build_parser().parse_args(["stt", "a.webm", "--timeout", "3", "--debug"])
        assert args.audio_path == "a.webm"
        assert args.timeout == 3.0
        assert args.debug


class TestMain:

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_missing_credentials_exit_code(self, tmp_path, capsys):
        code = main(["tts", "hello", "-c", str(tmp_path / "absent.yaml")])
        assert code == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_unreadable_audio_exit_code(self, tmp_path, capsys, volcengine_settings):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(volcengine_settings), encoding="utf-8")

        code = main(["stt", str(tmp_path / "missing.wav"), "-c", str(config_path)])

        assert code == 1
        assert "Error" in capsys.readouterr().err


class TestTTSOutput:
    """Output file handling of the tts command"""

    @pytest.fixture
    def config_path(self, tmp_path, volcengine_settings):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(volcengine_settings), encoding="utf-8")
        return path

    def test_failed_session_writes_nothing(self, monkeypatch, tmp_path, config_path, capsys):
        async def fail(self, text):
            raise ServerError("TTS service error: speaker not found")

        monkeypatch.setattr(VolcengineBidirectionalTTSProvider, "synthesize_to_bytes", fail)
        output = tmp_path / "out.mp3"

        code = main(["tts", "hello", "-o", str(output), "-c", str(config_path)])

        assert code == 1
        assert not output.exists()
        assert "speaker not found" in capsys.readouterr().err

    def test_audio_written_on_success(self, monkeypatch, tmp_path, config_path, capsys):
        async def succeed(self, text):
            return b"mp3-bytes"

        monkeypatch.setattr(VolcengineBidirectionalTTSProvider, "synthesize_to_bytes", succeed)
        output = tmp_path / "out.mp3"

        assert main(["tts", "hello", "-o", str(output), "-c", str(config_path)]) == 0
        assert output.read_bytes() == b"mp3-bytes"
        assert "Received 9 bytes" in capsys.readouterr().out
