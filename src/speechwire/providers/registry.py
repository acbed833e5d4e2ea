"""
Name -> provider class lookup used by ProviderFactory
"""

from typing import Dict, Optional, Type

from loguru import logger

from speechwire.providers.base import BaseProvider


class ProviderRegistry:
    """
    Registered provider classes, keyed by provider name.

    The Volcengine providers add themselves when speechwire.providers is
    imported. Third-party providers use @register_provider the same way.
    """

    _providers: Dict[str, Type[BaseProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: Type[BaseProvider]) -> None:
        """
        Raises:
            ValueError: Name taken
            TypeError: Not a BaseProvider subclass
        """
        if name in cls._providers:
            raise ValueError(f"Provider '{name}' already registered")
        if not (isinstance(provider_class, type) and issubclass(provider_class, BaseProvider)):
            raise TypeError(f"{provider_class} must inherit from BaseProvider")

        cls._providers[name] = provider_class
        logger.debug(f"Registered provider: {name} ({provider_class.__name__})")

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._providers.pop(name, None)

    @classmethod
    def get(cls, name: str) -> Optional[Type[BaseProvider]]:
        return cls._providers.get(name)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._providers

    @classmethod
    def list_providers(cls, category: Optional[str] = None) -> Dict[str, Type[BaseProvider]]:
        """
        Registered providers, optionally only one category ("asr" or "tts").
        """
        if category is None:
            return dict(cls._providers)
        return {
            name: provider_class
            for name, provider_class in cls._providers.items()
            if provider_class.category_of() == category
        }


def register_provider(name: str):
    """
    Class decorator adding a provider to ProviderRegistry.

    Names end in `-remote` for cloud APIs, e.g.
    "volcengine-asr-bigmodel-remote". Instances created without an explicit
    name log under the registered one.
    """
    def decorator(provider_class: Type[BaseProvider]) -> Type[BaseProvider]:
        ProviderRegistry.register(name, provider_class)
        provider_class._registered_name = name
        return provider_class
    return decorator
