"""
Configuration Loader for speechwire

Loads configuration from multiple sources with priority:
1. Environment variables (.env + SPEECHWIRE_XXX) (highest)
2. YAML/JSON config file
3. Default values (lowest)

The protocol core never calls into this module: callers load a config here
and pass the resulting credentials into providers explicitly.
"""

from pathlib import Path
from typing import Optional, Union

from loguru import logger
from pydantic_settings import BaseSettings
from ruamel.yaml import YAML

from speechwire.config.schema import SpeechwireConfig


class SpeechwireSettings(BaseSettings):
    """
    Environment-based settings with SPEECHWIRE_ prefix.

    Reads from:
    1. Environment variables (SPEECHWIRE_XXX)
    2. .env file in current directory

    Example:
        SPEECHWIRE_APP_ID=123456
        SPEECHWIRE_TTS_RESOURCE_ID=seed-tts-1.0
    """

    # Config file path
    config_file: Optional[str] = "config.yaml"

    # Log settings
    log_level: Optional[str] = None
    log_file: Optional[str] = None

    # Credential overrides
    app_id: Optional[str] = None
    access_token: Optional[str] = None
    resource_id: Optional[str] = None
    tts_resource_id: Optional[str] = None
    stt_resource_id: Optional[str] = None
    voice_type: Optional[str] = None

    class Config:
        env_prefix = "SPEECHWIRE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def _read_config_file(path: Path) -> dict:
    yaml = YAML(typ="safe")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.load(f)
    return data or {}


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_settings: Optional[SpeechwireSettings] = None,
) -> SpeechwireConfig:
    """
    Load speechwire configuration.

    JSON settings files are read as well, JSON being a subset of YAML.

    Args:
        config_path: Path to config file. If None, uses SPEECHWIRE_CONFIG_FILE
                     env var or defaults to "config.yaml"
        env_settings: Pre-loaded environment settings

    Returns:
        SpeechwireConfig instance
    """
    if env_settings is None:
        env_settings = SpeechwireSettings()

    if config_path is None:
        config_path = env_settings.config_file

    config_data = {}
    if config_path:
        path = Path(config_path).expanduser()
        if path.exists():
            try:
                config_data = _read_config_file(path)
                logger.debug(f"Loaded config from {path}")
            except Exception as e:
                logger.warning(f"Failed to load config from {path}: {e}")
        else:
            logger.debug(f"Config file {path} not found, using defaults")

    config = SpeechwireConfig(**config_data)

    if env_settings.log_level:
        config.log_level = env_settings.log_level
    if env_settings.log_file:
        config.log_file = env_settings.log_file

    volcengine = config.volcengine
    if env_settings.app_id:
        volcengine.app_id = env_settings.app_id
    if env_settings.access_token:
        volcengine.access_token = env_settings.access_token
    if env_settings.resource_id:
        volcengine.legacy_resource_id = env_settings.resource_id
    if env_settings.tts_resource_id:
        volcengine.tts.resource_id = env_settings.tts_resource_id
    if env_settings.stt_resource_id:
        volcengine.stt.resource_id = env_settings.stt_resource_id
    if env_settings.voice_type:
        volcengine.tts.voice_type = env_settings.voice_type

    return config
