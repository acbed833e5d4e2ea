"""
Pytest fixtures for testing

FakeTransport is an in-memory FrameTransport: client frames are recorded,
and an optional responder answers each one with scripted server messages.
"""

import asyncio
import json
import struct
from typing import Callable, Iterable, List, Optional

import pytest

from speechwire.protocol.codec import (
    EventType,
    MsgType,
    SerializationBits,
    decode_event_frame,
    encode_event_frame,
)
from speechwire.protocol.errors import TransportError
from speechwire.transports.base import FrameTransport, Inbound, InboundKind


END_OF_STREAM = None


class FakeTransport(FrameTransport):
    """
    Scripted transport.

    Items pushed into the inbox are bytes (binary message), str (text
    message), an Inbound, or None (end of stream). After a close frame or
    the end of stream every receive() returns None.
    """

    def __init__(
        self,
        responder: Optional[Callable[[bytes], Optional[Iterable]]] = None,
        fail_on_events: Iterable[int] = (),
    ):
        self.responder = responder
        self.fail_on_events = set(fail_on_events)
        self.sent: List[bytes] = []
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self._ended = False

    def push(self, *items) -> None:
        for item in items:
            if isinstance(item, (bytes, bytearray)):
                item = Inbound.binary(item)
            elif isinstance(item, str):
                item = Inbound.text(item)
            self.inbox.put_nowait(item)

    async def send(self, data: bytes) -> None:
        if self.closed:
            raise TransportError("Transport is closed")
        if self.fail_on_events:
            frame = decode_event_frame(data)
            if frame is not None and frame.event in self.fail_on_events:
                raise TransportError(f"Send failed for event {frame.event}")
        self.sent.append(bytes(data))
        if self.responder is not None:
            self.push(*(self.responder(data) or ()))

    async def receive(self) -> Optional[Inbound]:
        if self._ended:
            return None
        item = await self.inbox.get()
        if item is END_OF_STREAM or item.kind is InboundKind.CLOSE:
            self._ended = True
        return item

    async def close(self) -> None:
        self.closed = True

    def sent_events(self) -> List[Optional[int]]:
        return [decode_event_frame(data).event for data in self.sent]

    def sent_payloads(self, event: int) -> List[dict]:
        frames = [decode_event_frame(data) for data in self.sent]
        return [json.loads(frame.payload) for frame in frames if frame.event == event]


def server_event(event: int, identifier: Optional[str] = None, payload=b"{}") -> bytes:
    """Full server response carrying a JSON event."""
    return encode_event_frame(event, identifier, payload, message_type=MsgType.FullServerResponse)


def server_audio(session_id: str, audio: bytes) -> bytes:
    """Audio-only server response for event 352."""
    return encode_event_frame(
        EventType.TTSResponse,
        session_id,
        audio,
        message_type=MsgType.AudioOnlyServer,
        serialization=SerializationBits.Raw,
    )


def server_error(code: int, message: str, serialization: int = SerializationBits.JSON) -> bytes:
    """Error frame: header | error code | payload size | payload."""
    body = message.encode("utf-8")
    return (
        bytes([0x11, 0xF0, (serialization << 4), 0x00])
        + struct.pack(">I", code)
        + struct.pack(">I", len(body))
        + body
    )


def simple_response(payload, sequence: int = 1) -> bytes:
    """Sequenced full server response on the recognition path."""
    if not isinstance(payload, (bytes, str)):
        payload = json.dumps(payload, ensure_ascii=False)
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    flags = 0x3 if sequence < 0 else 0x1
    return (
        bytes([0x11, 0x90 | flags, 0x10, 0x00])
        + struct.pack(">i", sequence)
        + struct.pack(">I", len(payload))
        + payload
    )


def make_tts_responder(
    audio_chunks=(b"abc", b"def"),
    sentence_text: str = '{"text": "hello"}',
    send_session_finished: bool = True,
    close_after_finish_session: bool = False,
):
    """Responder that plays a well-behaved bidirectional TTS server."""

    def respond(data: bytes):
        frame = decode_event_frame(data)
        event = frame.event
        if event == EventType.StartConnection:
            return [server_event(EventType.ConnectionStarted, "conn-1")]
        if event == EventType.StartSession:
            return [server_event(EventType.SessionStarted, frame.identifier)]
        if event == EventType.FinishSession:
            replies = [server_event(EventType.TTSSentenceStart, frame.identifier, sentence_text)]
            replies.extend(server_audio(frame.identifier, chunk) for chunk in audio_chunks)
            replies.append(server_event(EventType.TTSSentenceEnd, frame.identifier, sentence_text))
            if send_session_finished:
                replies.append(server_event(EventType.SessionFinished, frame.identifier))
            if close_after_finish_session:
                replies.append(Inbound.close())
            return replies
        if event == EventType.FinishConnection:
            return [server_event(EventType.ConnectionFinished, "conn-1")]
        return []

    return respond


@pytest.fixture
def tts_transport():
    """Transport answering like a healthy TTS server"""
    return FakeTransport(make_tts_responder())


@pytest.fixture
def sample_audio_data():
    """Sample audio data for testing"""
    # Not a real recording, just bytes
    return b'\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09'


@pytest.fixture
def volcengine_settings():
    """Desktop-style settings mapping with camelCase keys"""
    return {
        "volcengine": {
            "appId": "app-123",
            "accessToken": "token-abc",
            "resourceId": "legacy-resource",
            "tts": {"resourceId": "seed-tts-1.0", "voiceType": "zh_male_test"},
            "stt": {},
        }
    }
