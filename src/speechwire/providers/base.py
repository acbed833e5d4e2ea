"""
Provider base class
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from loguru import logger


class BaseProvider(ABC):
    """
    Common surface of the speech providers.

    A provider owns credentials and endpoint settings. Each request opens
    its own transport and runs one protocol exchange over it, so nothing
    needs to be set up ahead of time: initialize()/cleanup() are no-ops
    unless a subclass keeps shared resources.

    Subclasses declare:
    - is_local: self-hosted (True) or cloud API (False)
    - is_stateful: whether a connection outlives a single request
    - category: "asr" or "tts"
    """

    _registered_name: Optional[str] = None

    def __init__(self, name: Optional[str] = None):
        self.name = name or self._registered_name or type(self).__name__
        self.logger = logger.bind(component=self.name)

    @property
    @abstractmethod
    def is_local(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_stateful(self) -> bool:
        pass

    @property
    @abstractmethod
    def category(self) -> str:
        pass

    @classmethod
    def category_of(cls) -> Optional[str]:
        """Category without an instance (the property must not read self)."""
        attr = getattr(cls, "category", None)
        if isinstance(attr, property):
            if getattr(attr.fget, "__isabstractmethod__", False):
                return None
            return attr.fget(None)
        return attr

    @classmethod
    @abstractmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        """
        Constructor parameters accepted from configuration.

        ProviderFactory checks `required` keys and `type` ("string", "int",
        "float", "bool") before calling the constructor:

            {
                "resource_id": {
                    "type": "string",
                    "required": True,
                    "description": "X-Api-Resource-Id"
                },
                "timeout": {"type": "float", "default": 15.0}
            }
        """
        pass

    def get_config(self) -> Dict[str, Any]:
        """Effective settings, without secrets."""
        return {
            "provider": type(self).__name__,
            "name": self.name,
            "category": self.category,
        }

    async def initialize(self) -> None:
        pass

    async def cleanup(self) -> None:
        pass

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"
