"""
Volcengine TTS Bidirectional Provider

Volcengine (火山引擎) bidirectional TTS via WebSocket.
Features:
- Text split into punctuation-bounded chunks, one TaskRequest per chunk
- Audio streamed back as it is synthesized
- Multiple audio formats (mp3, pcm, ogg_opus)

One connection per request: StartConnection ... FinishConnection runs
inside every synthesize() call.

Reference: https://www.volcengine.com/docs/6561/1329505

Requires: websockets>=14.0
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Awaitable, Callable, Dict, Optional

from speechwire.config.schema import Credentials, VolcengineConfig
from speechwire.core.events import EventSink, QueueSink, SpeechEventType
from speechwire.core.synthesis import DEFAULT_CLOSE_TIMEOUT, SynthesisSession
from speechwire.providers.registry import register_provider
from speechwire.providers.tts import TTSProvider
from speechwire.transports.base import FrameTransport
from speechwire.transports.websocket import WebSocketTransport, build_auth_headers
from speechwire.utils.text_chunker import DEFAULT_MAX_LEN, DEFAULT_MIN_LEN, TextChunker


DEFAULT_ENDPOINT = "wss://openspeech.bytedance.com/api/v3/tts/bidirection"
DEFAULT_VOICE = "zh_female_tianmeixiaoyuan_moon_bigtts"

TransportFactory = Callable[[str, Dict[str, str]], Awaitable[FrameTransport]]


async def _websocket_factory(url: str, headers: Dict[str, str]) -> FrameTransport:
    return await WebSocketTransport.connect(url, headers)


@register_provider("volcengine-tts-bidirectional-remote")
class VolcengineBidirectionalTTSProvider(TTSProvider):
    """
    Volcengine bidirectional TTS provider.

    Each call opens its own WebSocket and drives a SynthesisSession over it.
    """

    @property
    def is_local(self) -> bool:
        """This is a remote (cloud API) service."""
        return False

    @property
    def is_stateful(self) -> bool:
        """No connection is kept between calls."""
        return False

    @classmethod
    def get_config_schema(cls):
        """Return configuration schema."""
        return {
            "app_id": {
                "type": "string",
                "required": True,
                "description": "Volcengine App ID (X-Api-App-Key)",
            },
            "access_token": {
                "type": "string",
                "required": True,
                "description": "Volcengine Access Token (X-Api-Access-Key)",
            },
            "resource_id": {
                "type": "string",
                "required": True,
                "description": "Synthesis resource ID (X-Api-Resource-Id)",
            },
            "voice_type": {
                "type": "string",
                "default": DEFAULT_VOICE,
                "description": "Speaker sent in StartSession",
            },
            "encoding": {
                "type": "string",
                "default": "mp3",
                "description": "Audio format (mp3, pcm, ogg_opus)",
            },
            "sample_rate": {
                "type": "int",
                "default": 24000,
                "description": "Output sample rate (8000, 16000, 24000, 48000)",
            },
            "endpoint": {
                "type": "string",
                "default": DEFAULT_ENDPOINT,
                "description": "WebSocket endpoint URL",
            },
            "max_chunk_len": {
                "type": "int",
                "default": DEFAULT_MAX_LEN,
                "description": "Max characters per TaskRequest",
            },
            "min_chunk_len": {
                "type": "int",
                "default": DEFAULT_MIN_LEN,
                "description": "Min characters before a punctuation split",
            },
            "chunk_delay_ms": {
                "type": "int",
                "default": 80,
                "description": "Delay between TaskRequest frames (ms)",
            },
            "receive_timeout": {
                "type": "float",
                "default": None,
                "description": "Max wait for any server frame (seconds, None: no limit)",
            },
        }

    def __init__(
        self,
        app_id: str,
        access_token: str,
        resource_id: str,
        voice_type: str = DEFAULT_VOICE,
        encoding: str = "mp3",
        sample_rate: int = 24000,
        endpoint: str = DEFAULT_ENDPOINT,
        uid: str = "speechwire",
        max_chunk_len: int = DEFAULT_MAX_LEN,
        min_chunk_len: int = DEFAULT_MIN_LEN,
        chunk_delay_ms: int = 80,
        receive_timeout: Optional[float] = None,
        close_timeout: Optional[float] = DEFAULT_CLOSE_TIMEOUT,
        transport_factory: Optional[TransportFactory] = None,
    ):
        """
        Initialize Volcengine bidirectional TTS provider.

        Args:
            app_id: Volcengine App ID
            access_token: Volcengine Access Token
            resource_id: Synthesis resource ID
            voice_type: Voice type (e.g., zh_female_tianmeixiaoyuan_moon_bigtts)
            encoding: Audio format (mp3, pcm, ogg_opus)
            sample_rate: Output sample rate
            endpoint: WebSocket endpoint URL
            uid: User id sent in StartSession
            max_chunk_len: Max characters per TaskRequest
            min_chunk_len: Min characters before a punctuation split
            chunk_delay_ms: Delay between TaskRequest frames
            receive_timeout: Max wait for any server frame
            close_timeout: Max wait for ConnectionFinished
            transport_factory: Coroutine (url, headers) -> FrameTransport
        """
        super().__init__()

        self.credentials = Credentials(app_id=app_id, access_token=access_token, resource_id=resource_id)
        self.voice_type = voice_type
        self.encoding = encoding
        self._sample_rate = sample_rate
        self.endpoint = endpoint
        self.uid = uid
        self.chunker = TextChunker(max_len=max_chunk_len, min_len=min_chunk_len)
        self.chunk_delay_ms = chunk_delay_ms
        self.receive_timeout = receive_timeout
        self.close_timeout = close_timeout
        self._transport_factory = transport_factory or _websocket_factory

        self.logger.info(
            f"Initialized Volcengine TTS provider (voice={voice_type}, encoding={encoding})"
        )

    @classmethod
    def from_config(cls, config: VolcengineConfig, **overrides) -> "VolcengineBidirectionalTTSProvider":
        """
        Build from Volcengine config (TTS resource ID with legacy fallback).

        Raises:
            ConfigurationError: Credentials missing
        """
        credentials = config.tts_credentials()
        params = {
            "app_id": credentials.app_id,
            "access_token": credentials.access_token,
            "resource_id": credentials.resource_id,
            "voice_type": config.tts.voice_type,
            "encoding": config.tts.encoding,
            "sample_rate": config.tts.sample_rate,
        }
        params.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**params)

    async def _connect(self) -> FrameTransport:
        return await self._transport_factory(self.endpoint, build_auth_headers(self.credentials))

    async def synthesize_to_sink(self, text: str, sink: EventSink) -> int:
        """
        Synthesize text, pushing events into the sink.

        Returns:
            Total audio bytes received

        Raises:
            ValueError: Empty text
            SpeechProtocolError: Any protocol failure
        """
        if not text.strip():
            raise ValueError("Text to synthesize is empty")

        transport = await self._connect()
        async with transport:
            session = SynthesisSession(
                transport,
                self.voice_type,
                sink,
                uid=self.uid,
                encoding=self.encoding,
                sample_rate=self._sample_rate,
                chunker=self.chunker,
                chunk_delay=self.chunk_delay_ms / 1000.0,
                receive_timeout=self.receive_timeout,
                close_timeout=self.close_timeout,
            )
            result = await session.run(text)
        return result.total_bytes

    async def synthesize(self, text: str) -> AsyncIterator[bytes]:
        """
        Synthesize text to audio.

        Args:
            text: Text to synthesize

        Yields:
            Audio bytes in configured format, as they arrive
        """
        sink = QueueSink()

        async def produce() -> int:
            try:
                return await self.synthesize_to_sink(text, sink)
            finally:
                sink.queue.put_nowait(None)  # end of stream

        task = asyncio.create_task(produce())
        try:
            while True:
                event = await sink.queue.get()
                if event is None:
                    break
                if event.type is SpeechEventType.AUDIO_CHUNK:
                    yield event.data
            await task
        finally:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    def get_config(self):
        config = super().get_config()
        config.update({
            "voice_type": self.voice_type,
            "encoding": self.encoding,
            "endpoint": self.endpoint,
        })
        return config
