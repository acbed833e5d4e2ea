"""
speechwire - Volcengine speech WebSocket protocol client

Layers:
- protocol: Stateless binary frame codec and error taxonomy
- core: Synthesis session state machine and recognition exchange
- transports: Byte transport interface and the websockets implementation
- providers: Credential-holding public API (TTS/ASR)
"""

__version__ = "0.1.0"

# Configure logger on import (auto-configuration in utils.logger_config)
import speechwire.utils.logger_config  # noqa: F401

from speechwire.protocol import (
    DecodeError,
    ResponseTimeoutError,
    SequencingError,
    ServerError,
    SpeechProtocolError,
    TransportError,
)
from speechwire.core import (
    AudioFormat,
    CallbackSink,
    EventSink,
    NullSink,
    QueueSink,
    RecognitionExchange,
    SessionPhase,
    SpeechEvent,
    SpeechEventType,
    SynthesisResult,
    SynthesisSession,
)
from speechwire.transports import FrameTransport, WebSocketTransport, build_auth_headers
from speechwire.utils.text_chunker import TextChunker, split_text

__all__ = [
    "__version__",
    # Errors
    "DecodeError",
    "ResponseTimeoutError",
    "SequencingError",
    "ServerError",
    "SpeechProtocolError",
    "TransportError",
    # Core
    "AudioFormat",
    "CallbackSink",
    "EventSink",
    "NullSink",
    "QueueSink",
    "RecognitionExchange",
    "SessionPhase",
    "SpeechEvent",
    "SpeechEventType",
    "SynthesisResult",
    "SynthesisSession",
    # Transport
    "FrameTransport",
    "WebSocketTransport",
    "build_auth_headers",
    # Text
    "TextChunker",
    "split_text",
]
