"""
Unit tests for the binary frame codec
"""

import json
import struct

import pytest

from speechwire.protocol.codec import (
    EventType,
    MsgType,
    MsgTypeFlagBits,
    SerializationBits,
    decode_event_frame,
    decode_simple_frame,
    decode_simple_response,
    describe_event,
    encode_audio_frame,
    encode_event_frame,
    encode_simple_request,
)
from speechwire.protocol.errors import DecodeError, ServerError

from conftest import server_error, simple_response


def be32(value: int) -> bytes:
    return struct.pack(">I", value)


class TestSimpleEncoding:
    """Frames sent on the recognition path"""

    def test_simple_request_layout(self):
        """Header, payload size and JSON body"""
        data = encode_simple_request({"a": 1})
        assert data[:4] == bytes([0x11, 0x10, 0x10, 0x00])
        assert data[4:8] == be32(len(b'{"a": 1}'))
        assert json.loads(data[8:]) == {"a": 1}

    def test_simple_request_keeps_non_ascii(self):
        """JSON is UTF-8, not ASCII-escaped"""
        data = encode_simple_request({"text": "你好"})
        assert "你好".encode("utf-8") in data

    def test_audio_frame_not_final(self):
        data = encode_audio_frame(b"\x01\x02\x03", is_final=False)
        assert data[:4] == bytes([0x11, 0x20, 0x00, 0x00])
        assert data[4:8] == be32(3)
        assert data[8:] == b"\x01\x02\x03"

    def test_audio_frame_final_flag(self):
        data = encode_audio_frame(b"\x01\x02", is_final=True)
        assert data[1] == 0x22

    def test_audio_frame_metadata_survives_decode(self, sample_audio_data):
        """Length and flags read back exactly"""
        frame = decode_simple_frame(encode_audio_frame(sample_audio_data, is_final=True))
        assert frame.message_type == MsgType.AudioOnlyClient
        assert frame.flags == MsgTypeFlagBits.LastNoSeq
        assert frame.is_final
        assert frame.sequence is None
        assert frame.payload == sample_audio_data


class TestSimpleDecoding:
    """Responses on the recognition path"""

    def test_unsequenced_response(self):
        """Header + length + '{}' decodes to '{}'"""
        data = bytes([0x11, 0x10, 0x10, 0x00]) + be32(2) + b"{}"
        assert decode_simple_response(data) == "{}"

    def test_sequenced_response(self):
        frame = decode_simple_frame(simple_response({"result": {"text": "hi"}}, sequence=7))
        assert frame.message_type == MsgType.FullServerResponse
        assert frame.sequence == 7
        assert json.loads(frame.payload) == {"result": {"text": "hi"}}

    def test_negative_sequence_is_final(self):
        frame = decode_simple_frame(simple_response({}, sequence=-3))
        assert frame.sequence == -3
        assert frame.is_final

    def test_short_buffers_are_incomplete(self):
        """Anything short of a whole frame is None, never an error"""
        data = simple_response({"result": {"text": "hello"}})
        for size in range(len(data)):
            assert decode_simple_response(data[:size]) is None

    def test_sequenced_frame_needs_twelve_bytes(self):
        data = simple_response(b"", sequence=1)
        assert len(data) == 12
        assert decode_simple_frame(data[:11]) is None
        assert decode_simple_frame(data).payload == b""

    def test_invalid_utf8_is_lossy(self):
        data = bytes([0x11, 0x10, 0x10, 0x00]) + be32(2) + b"\xff\xfe"
        assert decode_simple_response(data) == "\ufffd\ufffd"

    def test_compression_rejected(self):
        data = bytes([0x11, 0x10, 0x11, 0x00]) + be32(2) + b"{}"
        with pytest.raises(DecodeError, match="compression"):
            decode_simple_response(data)

    def test_unsupported_serialization_rejected(self):
        data = bytes([0x11, 0x10, 0x30, 0x00]) + be32(2) + b"{}"
        with pytest.raises(DecodeError, match="serialization"):
            decode_simple_response(data)

    def test_error_frame_raises_with_text(self):
        with pytest.raises(ServerError) as exc_info:
            decode_simple_response(server_error(45000001, "quota exceeded"))
        assert "quota exceeded" in str(exc_info.value)
        assert exc_info.value.code == 45000001

    def test_error_frame_ignores_serialization(self):
        """Error short-circuits even with an unsupported serialization"""
        data = server_error(1, "boom", serialization=SerializationBits.Custom)
        with pytest.raises(ServerError, match="boom"):
            decode_simple_response(data)

    def test_compressed_error_frame_still_rejected(self):
        data = bytearray(server_error(1, "boom"))
        data[2] |= 0x01
        with pytest.raises(DecodeError):
            decode_simple_response(bytes(data))

    def test_bad_header_size(self):
        data = bytes([0x10, 0x10, 0x10, 0x00]) + be32(0)
        with pytest.raises(DecodeError, match="header size"):
            decode_simple_frame(data)

    def test_extended_header_is_skipped(self):
        """Header size counts 4-byte words"""
        data = bytes([0x12, 0x10, 0x10, 0x00, 0xAA, 0xBB, 0xCC, 0xDD]) + be32(2) + b"{}"
        frame = decode_simple_frame(data)
        assert frame.header_size == 8
        assert frame.payload == b"{}"


class TestEventEncoding:
    """Frames sent on the synthesis path"""

    def test_start_connection_layout(self):
        data = encode_event_frame(EventType.StartConnection, None, {})
        assert data == bytes([0x11, 0x14, 0x10, 0x00]) + be32(1) + be32(2) + b"{}"

    def test_session_frame_layout(self):
        data = encode_event_frame(EventType.StartSession, "sid", b"xy")
        assert data == (
            bytes([0x11, 0x14, 0x10, 0x00]) + be32(100) + be32(3) + b"sid" + be32(2) + b"xy"
        )

    def test_overrides_for_server_frames(self):
        data = encode_event_frame(
            EventType.TTSResponse,
            "sid",
            b"\x00\x01",
            message_type=MsgType.AudioOnlyServer,
            serialization=SerializationBits.Raw,
        )
        assert data[1] == 0xB4
        assert data[2] == 0x00


class TestEventDecoding:
    """Frames received on the synthesis path"""

    def test_header_only_is_incomplete(self):
        """Event flag set but no event bytes yet"""
        assert decode_event_frame(bytes([0x11, 0x14, 0x10, 0x00])) is None

    def test_shorter_than_header_is_incomplete(self):
        for size in range(4):
            assert decode_event_frame(bytes([0x11, 0x14, 0x10, 0x00])[:size]) is None
        # Declared 8-byte header, only 6 bytes buffered
        assert decode_event_frame(bytes([0x12, 0x14, 0x10, 0x00, 0x00, 0x00])) is None

    def test_session_event_round_trip(self):
        data = encode_event_frame(
            EventType.SessionStarted, "session-1", {"ok": True},
            message_type=MsgType.FullServerResponse,
        )
        frame = decode_event_frame(data)
        assert frame.event == EventType.SessionStarted
        assert frame.identifier == "session-1"
        assert json.loads(frame.payload) == {"ok": True}
        assert not frame.is_error
        assert not frame.is_audio

    def test_connection_events_have_no_id(self):
        frame = decode_event_frame(encode_event_frame(EventType.FinishConnection, None, {}))
        assert frame.event == EventType.FinishConnection
        assert frame.identifier is None
        assert frame.payload == b"{}"

    def test_negative_event_code(self):
        frame = decode_event_frame(encode_event_frame(-5, None, b""))
        assert frame.event == -5

    def test_id_overrun_is_decode_error(self):
        data = bytes([0x11, 0x94, 0x10, 0x00]) + be32(150) + be32(100) + b"short"
        with pytest.raises(DecodeError, match="id length"):
            decode_event_frame(data)

    def test_payload_is_capped_at_buffer_end(self):
        """Trailing payload length is lenient"""
        data = encode_event_frame(
            EventType.TTSResponse, "sid", b"0123456789",
            message_type=MsgType.AudioOnlyServer,
            serialization=SerializationBits.Raw,
        )
        frame = decode_event_frame(data[:-4])
        assert frame.payload == b"012345"
        assert frame.is_audio

    def test_raw_audio_without_event(self):
        data = bytes([0x11, 0xB0, 0x00, 0x00]) + be32(3) + b"pcm"
        frame = decode_event_frame(data)
        assert frame.event is None
        assert frame.is_audio
        assert frame.payload == b"pcm"

    def test_error_frame(self):
        frame = decode_event_frame(server_error(55000000, "server busy"))
        assert frame.is_error
        assert frame.error_code == 55000000
        assert frame.payload_text() == "server busy"
        assert frame.identifier is None

    def test_error_frame_raw_remainder(self):
        """Remainder without a matching length prefix is taken as-is"""
        data = bytes([0x11, 0xF0, 0x10, 0x00]) + be32(7) + b"oops"
        frame = decode_event_frame(data)
        assert frame.error_code == 7
        assert frame.payload == b"oops"

    def test_error_frame_missing_code_is_incomplete(self):
        assert decode_event_frame(bytes([0x11, 0xF0, 0x10, 0x00, 0x00])) is None

    def test_compression_rejected(self):
        data = bytearray(encode_event_frame(EventType.SessionStarted, "s", {}))
        data[2] = 0x11
        with pytest.raises(DecodeError, match="compression"):
            decode_event_frame(bytes(data))

    def test_str_does_not_dump_audio(self):
        frame = decode_event_frame(bytes([0x11, 0xB0, 0x00, 0x00]) + be32(3) + b"pcm")
        assert "PayloadSize: 3" in str(frame)


class TestDescribeEvent:

    def test_known_and_unknown_codes(self):
        assert describe_event(EventType.SessionFinished) == "SessionFinished(152)"
        assert describe_event(999) == "Event(999)"
        assert describe_event(None) == "no-event"
