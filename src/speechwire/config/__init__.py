"""
Configuration management for speechwire

Usage:
    from speechwire.config import load_config

    config = load_config("~/.reason-code/config.json")
    credentials = config.volcengine.tts_credentials()
"""

from speechwire.config.schema import (
    ConfigurationError,
    Credentials,
    SpeechwireConfig,
    STTServiceConfig,
    TTSServiceConfig,
    VolcengineConfig,
)
from speechwire.config.loader import (
    load_config,
    SpeechwireSettings,
)

__all__ = [
    # Schema
    "ConfigurationError",
    "Credentials",
    "SpeechwireConfig",
    "STTServiceConfig",
    "TTSServiceConfig",
    "VolcengineConfig",
    # Loader
    "load_config",
    "SpeechwireSettings",
]
