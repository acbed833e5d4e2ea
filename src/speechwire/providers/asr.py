"""
Speech recognition provider interface
"""

from abc import abstractmethod
from typing import Optional

from speechwire.core.recognition import AudioFormat
from speechwire.providers.base import BaseProvider


class ASRProvider(BaseProvider):
    """
    Complete audio buffer in, final transcript out.
    """

    @property
    def category(self) -> str:
        return "asr"

    @abstractmethod
    async def transcribe(self, audio: bytes, audio_format: Optional[AudioFormat] = None) -> str:
        """
        Args:
            audio: Encoded audio
            audio_format: Container/codec metadata, provider default when None

        Returns:
            Transcript, "" when the service returned none
        """
        pass
