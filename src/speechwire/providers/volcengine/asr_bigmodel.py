"""
Volcengine BigModel ASR Provider

One-shot recognition over the bigmodel_async WebSocket: the complete audio
buffer is sent as a single final audio frame.

Requires: websockets>=14.0
"""

from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, Union

from speechwire.config.schema import Credentials, VolcengineConfig
from speechwire.core.events import EventSink
from speechwire.core.recognition import DEFAULT_TIMEOUT, AudioFormat, RecognitionExchange
from speechwire.providers.asr import ASRProvider
from speechwire.providers.registry import register_provider
from speechwire.transports.base import FrameTransport
from speechwire.transports.websocket import WebSocketTransport, build_auth_headers
from speechwire.utils.audio_format import audio_format_from_path


DEFAULT_ENDPOINT = "wss://openspeech.bytedance.com/api/v3/sauc/bigmodel_async"

TransportFactory = Callable[[str, Dict[str, str]], Awaitable[FrameTransport]]


@register_provider("volcengine-asr-bigmodel-remote")
class VolcengineBigModelASRProvider(ASRProvider):
    """
    Volcengine BigModel ASR provider.

    Optional `protocol` / `authorization` values are sent as the
    Sec-WebSocket-Protocol / Authorization headers for gateways that
    require them.
    """

    @property
    def is_local(self) -> bool:
        return False

    @property
    def is_stateful(self) -> bool:
        return False

    @classmethod
    def get_config_schema(cls):
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
                "description": "Recognition resource ID (X-Api-Resource-Id)",
            },
            "endpoint": {
                "type": "string",
                "default": DEFAULT_ENDPOINT,
                "description": "WebSocket endpoint URL",
            },
            "model_name": {
                "type": "string",
                "default": "bigmodel",
                "description": "Recognition model",
            },
            "enable_itn": {
                "type": "bool",
                "default": None,
                "description": "Inverse text normalization (server default if unset)",
            },
            "enable_punc": {
                "type": "bool",
                "default": None,
                "description": "Punctuation (server default if unset)",
            },
            "timeout": {
                "type": "float",
                "default": DEFAULT_TIMEOUT,
                "description": "Response deadline (seconds)",
            },
            "protocol": {
                "type": "string",
                "default": None,
                "description": "Sec-WebSocket-Protocol header value",
            },
            "authorization": {
                "type": "string",
                "default": None,
                "description": "Authorization header value",
            },
        }

    def __init__(
        self,
        app_id: str,
        access_token: str,
        resource_id: str,
        endpoint: str = DEFAULT_ENDPOINT,
        uid: str = "speechwire",
        model_name: str = "bigmodel",
        enable_itn: Optional[bool] = None,
        enable_punc: Optional[bool] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        protocol: Optional[str] = None,
        authorization: Optional[str] = None,
        transport_factory: Optional[TransportFactory] = None,
    ):
        super().__init__()

        self.credentials = Credentials(app_id=app_id, access_token=access_token, resource_id=resource_id)
        self.endpoint = endpoint
        self.uid = uid
        self.model_name = model_name
        self.enable_itn = enable_itn
        self.enable_punc = enable_punc
        self.timeout = timeout
        self.protocol = protocol
        self.authorization = authorization
        self._transport_factory = transport_factory

        self.logger.info(f"Initialized Volcengine ASR provider (model={model_name})")

    @classmethod
    def from_config(cls, config: VolcengineConfig, **overrides) -> "VolcengineBigModelASRProvider":
        """
        Build from Volcengine config (STT resource ID with legacy fallback).

        Raises:
            ConfigurationError: Credentials missing
        """
        credentials = config.stt_credentials()
        params = {
            "app_id": credentials.app_id,
            "access_token": credentials.access_token,
            "resource_id": credentials.resource_id,
        }
        params.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**params)

    def build_headers(self) -> Dict[str, str]:
        headers = build_auth_headers(self.credentials)
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers

    async def _connect(self) -> FrameTransport:
        headers = self.build_headers()
        if self._transport_factory is not None:
            return await self._transport_factory(self.endpoint, headers)
        subprotocols = [self.protocol] if self.protocol else None
        return await WebSocketTransport.connect(self.endpoint, headers, subprotocols=subprotocols)

    async def transcribe(
        self,
        audio: bytes,
        audio_format: Optional[AudioFormat] = None,
        sink: Optional[EventSink] = None,
    ) -> str:
        """
        Transcribe a complete audio buffer.

        Returns:
            Last non-empty transcript, "" if none arrived before the deadline

        Raises:
            SpeechProtocolError: Connect, decode or server failure
        """
        transport = await self._connect()
        async with transport:
            exchange = RecognitionExchange(
                transport,
                sink,
                audio_format=audio_format,
                uid=self.uid,
                model_name=self.model_name,
                enable_itn=self.enable_itn,
                enable_punc=self.enable_punc,
                timeout=self.timeout,
            )
            return await exchange.run(audio)

    async def transcribe_file(self, path: Union[str, Path], sink: Optional[EventSink] = None) -> str:
        """
        Transcribe an audio file; format and codec come from its extension.

        Raises:
            ValueError: Unsupported extension
        """
        fmt, codec = audio_format_from_path(str(path))
        audio = Path(path).expanduser().read_bytes()
        self.logger.debug(f"Read {len(audio)} bytes from {path} ({fmt}/{codec})")
        return await self.transcribe(audio, AudioFormat(format=fmt, codec=codec), sink)
