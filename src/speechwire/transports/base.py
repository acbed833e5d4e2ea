"""
Transport interface for the protocol core

The protocol core only needs a byte sink/source: send whole binary
messages, and receive binary, text or close signals in arrival order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class InboundKind(Enum):
    """Kind of an inbound transport message."""
    BINARY = "binary"
    TEXT = "text"
    CLOSE = "close"


@dataclass(frozen=True)
class Inbound:
    """One inbound message. `data` is None for CLOSE."""
    kind: InboundKind
    data: Union[bytes, str, None] = None

    @classmethod
    def binary(cls, data: bytes) -> "Inbound":
        return cls(InboundKind.BINARY, bytes(data))

    @classmethod
    def text(cls, data: str) -> "Inbound":
        return cls(InboundKind.TEXT, data)

    @classmethod
    def close(cls) -> "Inbound":
        return cls(InboundKind.CLOSE)


class FrameTransport(ABC):
    """
    Duplex message transport owned by exactly one protocol session.

    send() and receive() may run from different tasks concurrently
    (split write/read halves).
    """

    @abstractmethod
    async def send(self, data: bytes) -> None:
        """
        Send one binary message.

        Raises:
            TransportError: I/O failure
        """
        pass

    @abstractmethod
    async def receive(self) -> Optional[Inbound]:
        """
        Receive the next inbound message.

        Returns:
            Inbound message, or None once the stream has ended

        Raises:
            TransportError: I/O failure
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying connection (idempotent)."""
        pass

    async def __aenter__(self) -> "FrameTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
