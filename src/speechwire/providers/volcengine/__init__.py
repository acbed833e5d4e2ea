"""
Volcengine (火山引擎) speech providers
"""

from speechwire.providers.volcengine.asr_bigmodel import VolcengineBigModelASRProvider
from speechwire.providers.volcengine.tts_bidirectional import VolcengineBidirectionalTTSProvider
from speechwire.providers.volcengine.tts_http import VolcengineHTTPTTSProvider

__all__ = [
    "VolcengineBigModelASRProvider",
    "VolcengineBidirectionalTTSProvider",
    "VolcengineHTTPTTSProvider",
]
