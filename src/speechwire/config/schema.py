"""
Configuration Schema for speechwire

Defines the credential/config structure using Pydantic models. Field aliases
follow the camelCase keys of the desktop settings file (appId, accessToken,
resourceId, voiceType).
"""

from typing import Optional

from pydantic import BaseModel, Field


class ConfigurationError(ValueError):
    """Required credentials are missing from the configuration."""
    pass


class Credentials(BaseModel):
    """Credentials for one WebSocket path (sent as X-Api-* headers)"""
    app_id: str = Field(..., description="Application key (X-Api-App-Key)")
    access_token: str = Field(..., description="Access key (X-Api-Access-Key)")
    resource_id: str = Field(..., description="Resource identifier (X-Api-Resource-Id)")

    class Config:
        frozen = True


class TTSServiceConfig(BaseModel):
    """Speech synthesis settings"""
    resource_id: str = Field(default="", alias="resourceId", description="Synthesis resource ID")
    voice_type: str = Field(
        default="zh_female_tianmeixiaoyuan_moon_bigtts",
        alias="voiceType",
        description="Default speaker/voice",
    )
    cluster: str = Field(default="volcano_tts", description="Cluster for the HTTP API")
    encoding: str = Field(default="mp3", description="Audio format (mp3, pcm, ogg_opus)")
    sample_rate: int = Field(default=24000, alias="sampleRate", description="Output sample rate")

    class Config:
        populate_by_name = True
        extra = "allow"


class STTServiceConfig(BaseModel):
    """Speech recognition settings"""
    resource_id: str = Field(default="", alias="resourceId", description="Recognition resource ID")

    class Config:
        populate_by_name = True
        extra = "allow"


class VolcengineConfig(BaseModel):
    """
    Volcengine speech credentials.

    Recognition and synthesis have separate resource IDs; both fall back to
    the legacy shared `resourceId` field when unset.
    """
    app_id: str = Field(default="", alias="appId", description="Application ID")
    access_token: str = Field(default="", alias="accessToken", description="Access token")
    legacy_resource_id: Optional[str] = Field(
        default=None, alias="resourceId", description="Legacy shared resource ID"
    )
    stt: STTServiceConfig = Field(default_factory=STTServiceConfig)
    tts: TTSServiceConfig = Field(default_factory=TTSServiceConfig)

    class Config:
        populate_by_name = True
        extra = "allow"

    def require_api_keys(self) -> None:
        """
        Raises:
            ConfigurationError: appId or accessToken missing
        """
        if not self.app_id or not self.access_token:
            raise ConfigurationError("Volcengine API is not configured: appId/accessToken missing")

    def tts_resource_id(self) -> str:
        return self.tts.resource_id or self.legacy_resource_id or ""

    def stt_resource_id(self) -> str:
        return self.stt.resource_id or self.legacy_resource_id or ""

    def tts_credentials(self) -> Credentials:
        """
        Credentials for the synthesis path.

        Raises:
            ConfigurationError: appId/accessToken or TTS resource ID missing
        """
        self.require_api_keys()
        resource_id = self.tts_resource_id()
        if not resource_id:
            raise ConfigurationError("Volcengine config is missing TTS resourceId")
        return Credentials(app_id=self.app_id, access_token=self.access_token, resource_id=resource_id)

    def stt_credentials(self) -> Credentials:
        """
        Credentials for the recognition path.

        Raises:
            ConfigurationError: appId/accessToken or STT resource ID missing
        """
        self.require_api_keys()
        resource_id = self.stt_resource_id()
        if not resource_id:
            raise ConfigurationError("Volcengine config is missing STT resourceId")
        return Credentials(app_id=self.app_id, access_token=self.access_token, resource_id=resource_id)


class SpeechwireConfig(BaseModel):
    """
    Main speechwire configuration.

    This is the root configuration object that contains all settings.
    """
    volcengine: VolcengineConfig = Field(default_factory=VolcengineConfig)

    # Global settings
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    class Config:
        extra = "allow"  # Desktop settings files carry unrelated sections
