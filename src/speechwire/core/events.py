"""
Event sink interface between the protocol core and its consumer.

Decoded events, audio chunks and errors are pushed into an EventSink; the
consumer (a UI bridge, a CLI, an async iterator) decides what to do with
them. Two usage patterns:
1. Callback-based: CallbackSink(handler)
2. Channel-based: QueueSink() consumed from an asyncio.Queue
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union


class SpeechEventType(Enum):
    """Standardized protocol events."""
    AUDIO_CHUNK = "audio.chunk"          # Synthesized audio bytes
    SENTENCE_START = "sentence.start"    # Informational, synthesis
    SENTENCE_END = "sentence.end"        # Informational, synthesis
    SERVER_EVENT = "server.event"        # Other JSON events from the peer
    TRANSCRIPT = "transcript"            # Recognition result text
    FINISHED = "finished"                # Session completed
    ERROR = "error"                      # Session failed


@dataclass
class SpeechEvent:
    """One event delivered to the consumer."""
    type: SpeechEventType
    data: Optional[bytes] = None         # Audio bytes
    text: Optional[str] = None           # Transcript, JSON payload or error message
    event_code: Optional[int] = None     # Wire event code, when there is one
    total_bytes: Optional[int] = None    # Set on FINISHED for synthesis
    session_id: Optional[str] = None


class EventSink(ABC):
    """Receives events from a protocol session."""

    @abstractmethod
    async def emit(self, event: SpeechEvent) -> None:
        pass


class NullSink(EventSink):
    """Discards every event."""

    async def emit(self, event: SpeechEvent) -> None:
        return None


class CallbackSink(EventSink):
    """Forwards events to a sync or async callable."""

    def __init__(self, handler: Callable[[SpeechEvent], Union[Any, Awaitable[Any]]]):
        self._handler = handler

    async def emit(self, event: SpeechEvent) -> None:
        result = self._handler(event)
        if inspect.isawaitable(result):
            await result


class QueueSink(EventSink):
    """Puts events on an asyncio.Queue."""

    def __init__(self, queue: Optional[asyncio.Queue] = None):
        self.queue: asyncio.Queue = queue if queue is not None else asyncio.Queue()

    async def emit(self, event: SpeechEvent) -> None:
        await self.queue.put(event)
