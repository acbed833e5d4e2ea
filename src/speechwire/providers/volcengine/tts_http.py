"""
Volcengine TTS HTTP Provider

One-shot synthesis over the v1 HTTP API: the whole audio comes back
base64-encoded in a single JSON response.

Requires: httpx
"""

import base64
import binascii
import uuid
from collections.abc import AsyncIterator
from typing import Any, Dict, Optional

import httpx

from speechwire.config.schema import VolcengineConfig
from speechwire.protocol.errors import ServerError, TransportError
from speechwire.providers.registry import register_provider
from speechwire.providers.tts import TTSProvider


DEFAULT_ENDPOINT = "https://openspeech.bytedance.com/api/v1/tts"
DEFAULT_VOICE = "zh_female_tianmeixiaoyuan_moon_bigtts"

# 3000 is the legacy success code of the v1 API
SUCCESS_CODES = frozenset({0, 3000})


@register_provider("volcengine-tts-http-remote")
class VolcengineHTTPTTSProvider(TTSProvider):
    """
    Volcengine HTTP TTS provider.

    Authenticates with app id + token + cluster in the body and the
    `Bearer;<token>` Authorization header.
    """

    @property
    def is_local(self) -> bool:
        return False

    @property
    def is_stateful(self) -> bool:
        return False

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        return {
            "app_id": {
                "type": "string",
                "required": True,
                "description": "Volcengine App ID",
            },
            "access_token": {
                "type": "string",
                "required": True,
                "description": "Volcengine Access Token",
            },
            "cluster": {
                "type": "string",
                "default": "volcano_tts",
                "description": "TTS cluster",
            },
            "voice_type": {
                "type": "string",
                "default": DEFAULT_VOICE,
                "description": "Voice type",
            },
            "encoding": {
                "type": "string",
                "default": "mp3",
                "description": "Audio format",
            },
            "speed_ratio": {
                "type": "float",
                "default": 1.0,
                "description": "Speech speed",
            },
            "volume_ratio": {
                "type": "float",
                "default": 1.0,
                "description": "Volume",
            },
            "pitch_ratio": {
                "type": "float",
                "default": 1.0,
                "description": "Pitch",
            },
            "endpoint": {
                "type": "string",
                "default": DEFAULT_ENDPOINT,
                "description": "HTTP endpoint URL",
            },
            "timeout": {
                "type": "float",
                "default": 30.0,
                "description": "Request timeout (seconds)",
            },
        }

    def __init__(
        self,
        app_id: str,
        access_token: str,
        cluster: str = "volcano_tts",
        voice_type: str = DEFAULT_VOICE,
        encoding: str = "mp3",
        speed_ratio: float = 1.0,
        volume_ratio: float = 1.0,
        pitch_ratio: float = 1.0,
        endpoint: str = DEFAULT_ENDPOINT,
        uid: str = "speechwire",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            client: Shared httpx client (a short-lived one per request if None)
        """
        super().__init__()

        self.app_id = app_id
        self.access_token = access_token
        self.cluster = cluster
        self.voice_type = voice_type
        self.encoding = encoding
        self.speed_ratio = speed_ratio
        self.volume_ratio = volume_ratio
        self.pitch_ratio = pitch_ratio
        self.endpoint = endpoint
        self.uid = uid
        self.timeout = timeout
        self._client = client

        self.logger.info(f"Initialized Volcengine HTTP TTS provider (voice={voice_type})")

    @classmethod
    def from_config(cls, config: VolcengineConfig, **overrides) -> "VolcengineHTTPTTSProvider":
        """
        Raises:
            ConfigurationError: appId/accessToken missing
        """
        config.require_api_keys()
        params = {
            "app_id": config.app_id,
            "access_token": config.access_token,
            "cluster": config.tts.cluster,
            "voice_type": config.tts.voice_type,
        }
        params.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**params)

    def build_request(self, text: str, voice_type: Optional[str] = None) -> Dict[str, Any]:
        return {
            "app": {
                "appid": self.app_id,
                "token": self.access_token,
                "cluster": self.cluster,
            },
            "user": {"uid": self.uid},
            "audio": {
                "voice_type": voice_type or self.voice_type,
                "encoding": self.encoding,
                "speed_ratio": self.speed_ratio,
                "volume_ratio": self.volume_ratio,
                "pitch_ratio": self.pitch_ratio,
            },
            "request": {
                "reqid": str(uuid.uuid4()),
                "text": text,
                "operation": "query",
            },
        }

    async def _post(self, client: httpx.AsyncClient, body: Dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer;{self.access_token}"}
        try:
            return await client.post(self.endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP request failed: {e}") from e

    async def speak(self, text: str, voice_type: Optional[str] = None) -> bytes:
        """
        Synthesize text in one request.

        Returns:
            Decoded audio bytes

        Raises:
            ValueError: Empty text
            TransportError: Network failure or non-2xx status
            ServerError: Non-success response code or missing/invalid audio
        """
        if not text.strip():
            raise ValueError("Text to synthesize is empty")

        body = self.build_request(text, voice_type)
        if self._client is not None:
            response = await self._post(self._client, body)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await self._post(client, body)

        if response.is_error:
            raise TransportError(f"HTTP error: {response.status_code}", status_code=response.status_code)

        try:
            result = response.json()
        except ValueError as e:
            raise ServerError(f"Failed to parse response: {e}") from e

        code = result.get("code", 0)
        if code not in SUCCESS_CODES:
            raise ServerError(f"TTS failed (code {code}): {result.get('message', '')}", code=code)

        data = result.get("data")
        if not data:
            raise ServerError("No audio data returned", code=code)
        try:
            audio = base64.b64decode(data)
        except (binascii.Error, ValueError) as e:
            raise ServerError(f"Failed to decode audio: {e}") from e

        self.logger.debug(f"Synthesized {len(audio)} bytes for {len(text)} chars")
        return audio

    async def synthesize(self, text: str) -> AsyncIterator[bytes]:
        yield await self.speak(text)
