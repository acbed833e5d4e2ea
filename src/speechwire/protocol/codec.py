"""
Binary frame codec for the Volcengine speech WebSocket protocol.

Frame header (4 bytes):
0                 1                 2                 3
| 0 1 2 3 4 5 6 7 | 0 1 2 3 4 5 6 7 | 0 1 2 3 4 5 6 7 | 0 1 2 3 4 5 6 7 |
+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
|    Version      |   Header Size   |     Msg Type    |      Flags      |
|   (4 bits)      |    (4 bits)     |     (4 bits)    |     (4 bits)    |
+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
| Serialization   |   Compression   |           Reserved                |
|   (4 bits)      |    (4 bits)     |           (8 bits)                |
+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+

Header size is counted in 4-byte words. All integers are big-endian.

Two frame families share the header:
- Simple frames (recognition path):
  header | [sequence or error code] | payload size | payload
- Event frames (synthesis path):
  header | [event] | [error code] or [id size | id] | payload size | payload

The codec is stateless. Decoders return None when more bytes are needed
and raise DecodeError when the bytes can never form a valid frame.
"""

import json
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Union

from speechwire.protocol.errors import DecodeError, ServerError


PROTOCOL_VERSION = 1
HEADER_WORDS = 1


class MsgType(IntEnum):
    """Message type enumeration"""

    Invalid = 0
    FullClientRequest = 0b1
    AudioOnlyClient = 0b10
    FullServerResponse = 0b1001
    AudioOnlyServer = 0b1011
    FrontEndResultServer = 0b1100
    Error = 0b1111


class MsgTypeFlagBits(IntEnum):
    """Message type flag bits"""

    NoSeq = 0  # Non-terminal packet with no sequence
    PositiveSeq = 0b1  # Non-terminal packet with sequence > 0
    LastNoSeq = 0b10  # Last packet with no sequence
    NegativeSeq = 0b11  # Last packet with sequence < 0
    WithEvent = 0b100  # Payload contains event number (int32)


class SerializationBits(IntEnum):
    """Serialization method bits"""

    Raw = 0
    JSON = 0b1
    Thrift = 0b11
    Custom = 0b1111


class CompressionBits(IntEnum):
    """Compression method bits"""

    None_ = 0
    Gzip = 0b1
    Custom = 0b1111


class EventType(IntEnum):
    """Event type enumeration"""

    None_ = 0

    # 1 ~ 49 Upstream Connection events
    StartConnection = 1
    FinishConnection = 2

    # 50 ~ 99 Downstream Connection events
    ConnectionStarted = 50
    ConnectionFailed = 51  # Possibly due to authentication failure
    ConnectionFinished = 52

    # 100 ~ 149 Upstream Session events
    StartSession = 100
    CancelSession = 101
    FinishSession = 102

    # 150 ~ 199 Downstream Session events
    SessionStarted = 150
    SessionCanceled = 151
    SessionFinished = 152
    SessionFailed = 153
    UsageResponse = 154

    # 200 ~ 249 Upstream general events
    TaskRequest = 200
    UpdateConfig = 201

    # 350 ~ 399 Downstream TTS events
    TTSSentenceStart = 350
    TTSSentenceEnd = 351
    TTSResponse = 352
    TTSEnded = 359


SUPPORTED_SERIALIZATIONS = frozenset({SerializationBits.Raw, SerializationBits.JSON})

# Client connection events carry no id field
_EVENTS_WITHOUT_ID = frozenset({EventType.StartConnection, EventType.FinishConnection})


def describe_event(code: Optional[int]) -> str:
    """Human readable name for an event code (falls back to the number)."""
    if code is None:
        return "no-event"
    try:
        return f"{EventType(code).name}({int(code)})"
    except ValueError:
        return f"Event({int(code)})"


@dataclass
class SimpleFrame:
    """Non-eventful frame used by the recognition path."""

    message_type: int
    flags: int
    serialization: int
    compression: int = CompressionBits.None_
    header_size: int = 4
    sequence: Optional[int] = None
    error_code: Optional[int] = None
    payload: bytes = field(default_factory=bytes)

    @property
    def is_error(self) -> bool:
        return self.message_type == MsgType.Error

    @property
    def is_final(self) -> bool:
        return bool(self.flags & MsgTypeFlagBits.LastNoSeq)


@dataclass
class EventFrame:
    """Eventful frame used by the synthesis session path."""

    message_type: int
    flags: int
    serialization: int
    compression: int = CompressionBits.None_
    header_size: int = 4
    event: Optional[int] = None
    identifier: Optional[str] = None  # session_id, or connect_id on connection events
    error_code: Optional[int] = None
    payload: bytes = field(default_factory=bytes)

    @property
    def is_error(self) -> bool:
        return self.message_type == MsgType.Error

    @property
    def is_audio(self) -> bool:
        """Raw audio-only response and event 352 are the same signal."""
        return (
            self.message_type == MsgType.AudioOnlyServer
            or self.event == EventType.TTSResponse
        )

    def payload_text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")

    def __str__(self) -> str:
        if self.is_audio:
            return f"MsgType: {self.message_type}, Event: {describe_event(self.event)}, PayloadSize: {len(self.payload)}"
        if self.is_error:
            return f"MsgType: {self.message_type}, ErrorCode: {self.error_code}, Payload: {self.payload_text()}"
        return f"MsgType: {self.message_type}, Event: {describe_event(self.event)}, Payload: {self.payload_text()[:100]}"


Frame = Union[SimpleFrame, EventFrame]


# ==============================================================================
# Helpers
# ==============================================================================


def _header(
    message_type: int,
    flags: int,
    serialization: int,
    compression: int = CompressionBits.None_,
) -> bytes:
    return bytes([
        (PROTOCOL_VERSION << 4) | HEADER_WORDS,
        (message_type << 4) | flags,
        (serialization << 4) | compression,
        0x00,
    ])


def _payload_bytes(payload: Any) -> bytes:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _read_u32(data: bytes, offset: int) -> Optional[int]:
    if offset + 4 > len(data):
        return None
    return struct.unpack_from(">I", data, offset)[0]


def _parse_header(data: bytes):
    """
    Split the fixed header into its nibbles.

    Returns None when the declared header is not fully buffered yet.
    """
    if len(data) < 4:
        return None
    header_size = (data[0] & 0x0F) * 4
    if header_size < 4:
        raise DecodeError(f"Invalid header size: {header_size}")
    if len(data) < header_size:
        return None

    message_type = data[1] >> 4
    flags = data[1] & 0x0F
    serialization = data[2] >> 4
    compression = data[2] & 0x0F

    if compression != CompressionBits.None_:
        raise DecodeError(f"Unsupported compression: {compression}")
    # Error frames short-circuit regardless of serialization
    if message_type != MsgType.Error and serialization not in SUPPORTED_SERIALIZATIONS:
        raise DecodeError(f"Unsupported serialization: {serialization}")

    return header_size, message_type, flags, serialization, compression


# ==============================================================================
# Simple frames (recognition path)
# ==============================================================================


def encode_simple_request(payload: Any) -> bytes:
    """Full client request carrying the JSON configuration."""
    body = _payload_bytes(payload)
    return (
        _header(MsgType.FullClientRequest, MsgTypeFlagBits.NoSeq, SerializationBits.JSON)
        + struct.pack(">I", len(body))
        + body
    )


def encode_audio_frame(audio: bytes, is_final: bool) -> bytes:
    """Audio-only request; flag bit 1 marks the last packet."""
    flags = MsgTypeFlagBits.LastNoSeq if is_final else MsgTypeFlagBits.NoSeq
    return (
        _header(MsgType.AudioOnlyClient, flags, SerializationBits.Raw)
        + struct.pack(">I", len(audio))
        + bytes(audio)
    )


def decode_simple_frame(data: bytes) -> Optional[SimpleFrame]:
    """
    Decode one simple frame.

    Returns None until the header, the optional sequence/error code and the
    whole declared payload are buffered.

    Raises:
        DecodeError: Unsupported compression/serialization or bad header size
    """
    data = bytes(data)
    parsed = _parse_header(data)
    if parsed is None:
        return None
    header_size, message_type, flags, serialization, compression = parsed

    frame = SimpleFrame(
        message_type=message_type,
        flags=flags,
        serialization=serialization,
        compression=compression,
        header_size=header_size,
    )
    offset = header_size

    if frame.is_error:
        error_code = _read_u32(data, offset)
        if error_code is None:
            return None
        frame.error_code = error_code
        offset += 4
    elif flags & MsgTypeFlagBits.PositiveSeq:
        if offset + 4 > len(data):
            return None
        frame.sequence = struct.unpack_from(">i", data, offset)[0]
        offset += 4

    payload_size = _read_u32(data, offset)
    if payload_size is None:
        return None
    offset += 4
    if len(data) < offset + payload_size:
        return None

    frame.payload = data[offset:offset + payload_size]
    return frame


def decode_simple_response(data: bytes) -> Optional[str]:
    """
    Decode a recognition response into its (lossy UTF-8) payload text.

    Returns:
        Payload text, or None if more bytes are needed

    Raises:
        DecodeError: Malformed frame
        ServerError: The frame is an error response
    """
    frame = decode_simple_frame(data)
    if frame is None:
        return None

    text = frame.payload.decode("utf-8", errors="replace")
    if frame.is_error:
        raise ServerError(f"Server error response: {text}", code=frame.error_code)
    return text


# ==============================================================================
# Event frames (synthesis path)
# ==============================================================================


def encode_event_frame(
    event: int,
    session_id: Optional[str],
    payload: Any,
    *,
    message_type: int = MsgType.FullClientRequest,
    serialization: int = SerializationBits.JSON,
) -> bytes:
    """
    Build an eventful frame.

    Args:
        event: Event code written as a signed 32-bit integer
        session_id: Identifier to embed, or None to omit the field
        payload: bytes, str, or a JSON-serialisable object
        message_type: Override for server-side frames
        serialization: Override for raw payloads
    """
    body = _payload_bytes(payload)
    parts = [
        _header(message_type, MsgTypeFlagBits.WithEvent, serialization),
        struct.pack(">i", int(event)),
    ]
    if session_id is not None:
        id_bytes = session_id.encode("utf-8")
        parts.append(struct.pack(">I", len(id_bytes)))
        parts.append(id_bytes)
    parts.append(struct.pack(">I", len(body)))
    parts.append(body)
    return b"".join(parts)


def decode_event_frame(data: bytes) -> Optional[EventFrame]:
    """
    Decode one eventful frame.

    Fixed-width fields that are not buffered yet yield None. The id field is
    strict; the trailing payload is capped at the end of the buffer.

    Raises:
        DecodeError: Unsupported compression/serialization, bad header size,
            or an id length running past the buffer
    """
    data = bytes(data)
    parsed = _parse_header(data)
    if parsed is None:
        return None
    header_size, message_type, flags, serialization, compression = parsed

    frame = EventFrame(
        message_type=message_type,
        flags=flags,
        serialization=serialization,
        compression=compression,
        header_size=header_size,
    )
    offset = header_size

    if flags & MsgTypeFlagBits.WithEvent:
        if offset + 4 > len(data):
            return None
        frame.event = struct.unpack_from(">i", data, offset)[0]
        offset += 4

    if frame.is_error:
        error_code = _read_u32(data, offset)
        if error_code is None:
            return None
        frame.error_code = error_code
        offset += 4
        rest = data[offset:]
        declared = _read_u32(rest, 0)
        if declared is not None and declared == len(rest) - 4:
            frame.payload = rest[4:]
        else:
            frame.payload = rest
        return frame

    if (
        frame.event is not None
        and frame.event not in _EVENTS_WITHOUT_ID
        and offset + 4 <= len(data)
    ):
        id_size = _read_u32(data, offset)
        offset += 4
        if offset + id_size > len(data):
            raise DecodeError(f"Invalid id length: {id_size}")
        frame.identifier = data[offset:offset + id_size].decode("utf-8", errors="replace")
        offset += id_size

    payload_size = _read_u32(data, offset)
    if payload_size is not None:
        offset += 4
        frame.payload = data[offset:offset + payload_size]

    return frame
