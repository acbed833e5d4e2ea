"""
Provider interfaces and implementations

This package contains:
1. Provider interfaces (base.py, asr.py, tts.py)
2. Volcengine provider implementations, registered on import
3. Provider registry and factory

Usage:
    from speechwire.providers import ProviderFactory

    tts = ProviderFactory.create("volcengine-tts-bidirectional-remote", {
        "app_id": "...",
        "access_token": "...",
        "resource_id": "seed-tts-1.0",
    })
    audio = await tts.synthesize_to_bytes("你好，世界。")
"""

from speechwire.providers.base import BaseProvider
from speechwire.providers.asr import ASRProvider
from speechwire.providers.tts import TTSProvider

from speechwire.providers.registry import ProviderRegistry, register_provider
from speechwire.providers.factory import ProviderFactory

from speechwire.providers.volcengine import (
    VolcengineBigModelASRProvider,
    VolcengineBidirectionalTTSProvider,
    VolcengineHTTPTTSProvider,
)

__all__ = [
    # Interfaces
    "BaseProvider",
    "ASRProvider",
    "TTSProvider",
    # Registry
    "ProviderRegistry",
    "register_provider",
    "ProviderFactory",
    # Implementations
    "VolcengineBigModelASRProvider",
    "VolcengineBidirectionalTTSProvider",
    "VolcengineHTTPTTSProvider",
]
