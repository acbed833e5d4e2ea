"""
Config-driven provider construction
"""

from typing import Any, Dict, Mapping

from loguru import logger

from speechwire.providers.base import BaseProvider
from speechwire.providers.registry import ProviderRegistry


# Schema type name -> accepted Python types
_TYPE_CHECKS = {
    "string": (str,),
    "float": (int, float),
    "int": (int,),
    "bool": (bool,),
}


class ProviderFactory:
    """
    Builds providers by registered name from plain config mappings.
    """

    @staticmethod
    def create(provider_name: str, config: Mapping[str, Any]) -> BaseProvider:
        """
        Validate `config` against the provider's schema and construct it.

        Raises:
            ValueError: Unknown provider or missing required key
            TypeError: Value of the wrong type or unexpected key

        Example:
            asr = ProviderFactory.create("volcengine-asr-bigmodel-remote", {
                "app_id": "...",
                "access_token": "...",
                "resource_id": "volc.bigasr.sauc.duration",
            })
        """
        provider_class = ProviderRegistry.get(provider_name)
        if provider_class is None:
            raise ValueError(
                f"Provider '{provider_name}' not found. "
                f"Available providers: {sorted(ProviderRegistry.list_providers())}"
            )

        _validate_config(config, provider_class.get_config_schema(), provider_name)

        try:
            provider = provider_class(**config)
        except TypeError as e:
            raise TypeError(f"Invalid config for provider '{provider_name}': {e}") from e

        logger.info(
            f"Created provider: {provider_name} "
            f"(category={provider.category}, local={provider.is_local}, stateful={provider.is_stateful})"
        )
        return provider

    @staticmethod
    def create_many(section: Mapping[str, Mapping[str, Any]]) -> Dict[str, BaseProvider]:
        """
        Build every provider of a `providers:` config section.

        Each entry names its provider and passes constructor settings:

            providers:
              tts:
                provider: volcengine-tts-bidirectional-remote
                config: {app_id: ..., access_token: ..., resource_id: ...}

        Returns:
            {entry key: provider}
        """
        providers = {}
        for key, entry in section.items():
            if "provider" not in entry:
                raise ValueError(f"Provider entry '{key}' has no 'provider' name")
            providers[key] = ProviderFactory.create(entry["provider"], entry.get("config") or {})
        return providers


def _validate_config(config: Mapping[str, Any], schema: Mapping[str, Dict], provider_name: str) -> None:
    for key, field in schema.items():
        value = config.get(key)
        if value is None:
            if field.get("required", False) and key not in config:
                raise ValueError(f"Provider '{provider_name}' missing required config: {key}")
            continue

        expected_type = field.get("type")
        accepted = _TYPE_CHECKS.get(expected_type)
        if accepted is None:
            continue
        # bool is an int subclass; only "bool" accepts it
        if isinstance(value, bool) and expected_type != "bool" or not isinstance(value, accepted):
            raise TypeError(
                f"Provider '{provider_name}' config '{key}' must be {expected_type}, "
                f"got {type(value).__name__}"
            )
