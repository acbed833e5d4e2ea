"""
speechwire CLI - Command Line Interface

Usage:
    # Synthesize text to an audio file (bidirectional WebSocket)
    speechwire tts "你好，世界。" -o hello.mp3

    # Same through the one-shot HTTP API
    speechwire tts "你好，世界。" -o hello.mp3 --http

    # Recognize an audio file
    speechwire stt recording.webm

    # Show version
    speechwire --version

Credentials come from the config file (--config, SPEECHWIRE_CONFIG_FILE)
and SPEECHWIRE_* environment variables. The stt command also honours
VOLC_WS_URL, VOLC_WS_PROTOCOL and VOLC_WS_AUTH.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional

import dotenv


def get_version() -> str:
    """Get speechwire version"""
    from speechwire import __version__
    return __version__


def _setup_logging(config, debug: bool) -> None:
    from speechwire.utils.logger_config import configure_logger

    level = "DEBUG" if debug else config.log_level
    configure_logger(level=level, force=True)


async def _run_tts(args, config) -> int:
    from speechwire.providers import VolcengineBidirectionalTTSProvider, VolcengineHTTPTTSProvider

    output = Path(args.output)

    if args.http:
        provider = VolcengineHTTPTTSProvider.from_config(config.volcengine, voice_type=args.voice)
        audio = await provider.speak(args.text)
        output.write_bytes(audio)
        print(f"Received {len(audio)} bytes -> {output}")
        return 0

    provider = VolcengineBidirectionalTTSProvider.from_config(config.volcengine, voice_type=args.voice)
    # Nothing is written unless the whole session succeeds
    audio = await provider.synthesize_to_bytes(args.text)
    output.write_bytes(audio)
    print(f"Received {len(audio)} bytes -> {output}")
    return 0


async def _run_stt(args, config) -> int:
    from speechwire.providers import VolcengineBigModelASRProvider

    provider = VolcengineBigModelASRProvider.from_config(
        config.volcengine,
        endpoint=args.url or os.getenv("VOLC_WS_URL"),
        protocol=args.protocol or os.getenv("VOLC_WS_PROTOCOL"),
        authorization=args.authorization or os.getenv("VOLC_WS_AUTH"),
        timeout=args.timeout,
    )
    transcript = await provider.transcribe_file(args.audio_path)
    if transcript:
        print(f"Transcript: {transcript}")
    else:
        print("No transcript returned", file=sys.stderr)
    return 0


def run_command(args) -> int:
    """Load configuration and run the tts/stt command"""
    from speechwire.config import ConfigurationError, load_config
    from speechwire.protocol.errors import SpeechProtocolError

    config = load_config(args.config)
    _setup_logging(config, args.debug)

    runner = _run_tts if args.command == "tts" else _run_stt
    try:
        return asyncio.run(runner(args, config))
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except (SpeechProtocolError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="speechwire",
        description="speechwire - Volcengine speech protocol client"
    )
    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        help="Config file (YAML/JSON, default: SPEECHWIRE_CONFIG_FILE or config.yaml)"
    )
    common.add_argument(
        "--debug",
        action="store_true",
        help="Enable DEBUG logging"
    )

    tts_parser = subparsers.add_parser(
        "tts",
        parents=[common],
        help="Synthesize text to an audio file"
    )
    tts_parser.add_argument("text", help="Text to synthesize")
    tts_parser.add_argument(
        "--output", "-o",
        default="output.mp3",
        help="Output file (default: output.mp3)"
    )
    tts_parser.add_argument(
        "--voice",
        help="Voice type (default: tts.voiceType from config)"
    )
    tts_parser.add_argument(
        "--http",
        action="store_true",
        help="Use the one-shot HTTP API instead of the WebSocket session"
    )

    stt_parser = subparsers.add_parser(
        "stt",
        parents=[common],
        help="Recognize an audio file"
    )
    stt_parser.add_argument("audio_path", help="Audio file (webm, ogg, mp4, m4a, mp3, wav, pcm)")
    stt_parser.add_argument("--url", help="WebSocket endpoint (env: VOLC_WS_URL)")
    stt_parser.add_argument("--protocol", help="Sec-WebSocket-Protocol value (env: VOLC_WS_PROTOCOL)")
    stt_parser.add_argument("--authorization", help="Authorization header value (env: VOLC_WS_AUTH)")
    stt_parser.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="Response deadline in seconds (default: 15.0)"
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point"""
    dotenv.load_dotenv()

    parser = build_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"speechwire {get_version()}")
        return 0

    if parsed.command in ("tts", "stt"):
        return run_command(parsed)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
