"""
Volcengine speech WebSocket protocol: frame codec and error taxonomy.
"""

from speechwire.protocol.codec import (
    CompressionBits,
    EventFrame,
    EventType,
    Frame,
    MsgType,
    MsgTypeFlagBits,
    SerializationBits,
    SimpleFrame,
    decode_event_frame,
    decode_simple_frame,
    decode_simple_response,
    describe_event,
    encode_audio_frame,
    encode_event_frame,
    encode_simple_request,
)
from speechwire.protocol.errors import (
    DecodeError,
    ResponseTimeoutError,
    SequencingError,
    ServerError,
    SpeechProtocolError,
    TransportError,
)

__all__ = [
    # Codec
    "CompressionBits",
    "EventFrame",
    "EventType",
    "Frame",
    "MsgType",
    "MsgTypeFlagBits",
    "SerializationBits",
    "SimpleFrame",
    "decode_event_frame",
    "decode_simple_frame",
    "decode_simple_response",
    "describe_event",
    "encode_audio_frame",
    "encode_event_frame",
    "encode_simple_request",
    # Errors
    "DecodeError",
    "ResponseTimeoutError",
    "SequencingError",
    "ServerError",
    "SpeechProtocolError",
    "TransportError",
]
