"""
Error taxonomy for the speech protocol core.

Every failure surfaces as one SpeechProtocolError subclass at the public
boundary. "Need more bytes" is never an error: decoders return None for it.
"""

from typing import Optional


class SpeechProtocolError(Exception):
    """Base class for all protocol-level failures."""
    pass


class TransportError(SpeechProtocolError):
    """Socket connect/handshake failure, I/O failure or unexpected close."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(SpeechProtocolError):
    """Malformed frame or unsupported compression/serialization."""
    pass


class ServerError(SpeechProtocolError):
    """
    Error reported by the remote peer.

    The message is the peer's own text, forwarded verbatim.
    """

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class SequencingError(SpeechProtocolError):
    """An expected handshake event never arrived before the stream ended."""

    def __init__(self, message: str, expected_event: Optional[int] = None):
        super().__init__(message)
        self.expected_event = expected_event


class ResponseTimeoutError(SpeechProtocolError):
    """No inbound frame arrived within the configured receive timeout."""
    pass
