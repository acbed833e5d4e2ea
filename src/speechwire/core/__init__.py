"""
Protocol sequencers for speechwire
"""

from speechwire.core.events import (
    CallbackSink,
    EventSink,
    NullSink,
    QueueSink,
    SpeechEvent,
    SpeechEventType,
)
from speechwire.core.reassembly import FrameReassembler
from speechwire.core.recognition import AudioFormat, RecognitionExchange
from speechwire.core.synthesis import SessionPhase, SynthesisResult, SynthesisSession

__all__ = [
    # Events
    "CallbackSink",
    "EventSink",
    "NullSink",
    "QueueSink",
    "SpeechEvent",
    "SpeechEventType",
    # Sequencers
    "FrameReassembler",
    "AudioFormat",
    "RecognitionExchange",
    "SessionPhase",
    "SynthesisResult",
    "SynthesisSession",
]
