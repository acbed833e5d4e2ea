"""
Speech synthesis provider interface
"""

from abc import abstractmethod
from collections.abc import AsyncIterator
from typing import Any, Dict

from speechwire.providers.base import BaseProvider


DEFAULT_SAMPLE_RATE = 24000


class TTSProvider(BaseProvider):
    """
    Text in, encoded audio out.

    synthesize() yields audio (mp3, pcm or ogg_opus) as the service
    produces it; one-shot APIs yield a single chunk.
    """

    @property
    def category(self) -> str:
        return "tts"

    @property
    def sample_rate(self) -> int:
        """Output sample rate in Hz (set `_sample_rate` in __init__)."""
        return getattr(self, "_sample_rate", DEFAULT_SAMPLE_RATE)

    @sample_rate.setter
    def sample_rate(self, value: int) -> None:
        self._sample_rate = value

    @abstractmethod
    async def synthesize(self, text: str) -> AsyncIterator[bytes]:
        pass

    async def synthesize_to_bytes(self, text: str) -> bytes:
        """Run synthesize() to completion and join the chunks."""
        audio = bytearray()
        async for chunk in self.synthesize(text):
            audio += chunk
        return bytes(audio)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["sample_rate"] = self.sample_rate
        return config
