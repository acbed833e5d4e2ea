"""
Synthesis session state machine (bidirectional TTS)

Phases, in strict order:
    IDLE
    -> CONNECTION_STARTING   send StartConnection (1)
    -> CONNECTION_ACTIVE     after ConnectionStarted (50)
    -> SESSION_STARTING      send StartSession (100) with session_id
    -> SESSION_ACTIVE        after SessionStarted (150)
    -> TASK_SENDING          send TaskRequest (200) once per text chunk
    -> SESSION_FINISHING     send FinishSession (102)
    -> SESSION_CLOSED        after SessionFinished (152), optional
    -> CONNECTION_FINISHING  send FinishConnection (2)
    -> CONNECTION_CLOSED     after ConnectionFinished (52), best-effort

Any error moves the session to FAILED. The closing handshake is still
attempted from FAILED, and its own failure is only logged.

Task frames are sent from a background task while the collector reads
audio.
"""

import asyncio
import contextlib
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from loguru import logger as base_logger

from speechwire.core.events import EventSink, NullSink, SpeechEvent, SpeechEventType
from speechwire.core.reassembly import FrameReassembler
from speechwire.protocol.codec import (
    EventFrame,
    EventType,
    SerializationBits,
    decode_event_frame,
    describe_event,
    encode_event_frame,
)
from speechwire.protocol.errors import (
    ResponseTimeoutError,
    SequencingError,
    ServerError,
    SpeechProtocolError,
    TransportError,
)
from speechwire.transports.base import FrameTransport, Inbound, InboundKind
from speechwire.utils.text_chunker import TextChunker


NAMESPACE = "BidirectionalTTS"
DEFAULT_CHUNK_DELAY = 0.08  # seconds between TaskRequest frames
DEFAULT_CLOSE_TIMEOUT = 5.0


class SessionPhase(Enum):
    """Synthesis session phases."""
    IDLE = "idle"
    CONNECTION_STARTING = "connection_starting"
    CONNECTION_ACTIVE = "connection_active"
    SESSION_STARTING = "session_starting"
    SESSION_ACTIVE = "session_active"
    TASK_SENDING = "task_sending"
    SESSION_FINISHING = "session_finishing"
    SESSION_CLOSED = "session_closed"
    CONNECTION_FINISHING = "connection_finishing"
    CONNECTION_CLOSED = "connection_closed"
    FAILED = "failed"


_TRANSITIONS: Dict[SessionPhase, FrozenSet[SessionPhase]] = {
    SessionPhase.IDLE: frozenset({SessionPhase.CONNECTION_STARTING}),
    SessionPhase.CONNECTION_STARTING: frozenset({SessionPhase.CONNECTION_ACTIVE}),
    SessionPhase.CONNECTION_ACTIVE: frozenset({SessionPhase.SESSION_STARTING}),
    SessionPhase.SESSION_STARTING: frozenset({SessionPhase.SESSION_ACTIVE}),
    SessionPhase.SESSION_ACTIVE: frozenset({SessionPhase.TASK_SENDING}),
    SessionPhase.TASK_SENDING: frozenset({SessionPhase.SESSION_FINISHING}),
    # SessionFinished may never arrive
    SessionPhase.SESSION_FINISHING: frozenset({
        SessionPhase.SESSION_CLOSED,
        SessionPhase.CONNECTION_FINISHING,
    }),
    SessionPhase.SESSION_CLOSED: frozenset({SessionPhase.CONNECTION_FINISHING}),
    SessionPhase.CONNECTION_FINISHING: frozenset({SessionPhase.CONNECTION_CLOSED}),
    SessionPhase.CONNECTION_CLOSED: frozenset(),
    SessionPhase.FAILED: frozenset(),
}

# The only outbound event legal in each sending phase
_OUTBOUND_EVENTS: Dict[SessionPhase, EventType] = {
    SessionPhase.CONNECTION_STARTING: EventType.StartConnection,
    SessionPhase.SESSION_STARTING: EventType.StartSession,
    SessionPhase.TASK_SENDING: EventType.TaskRequest,
    SessionPhase.SESSION_FINISHING: EventType.FinishSession,
    SessionPhase.CONNECTION_FINISHING: EventType.FinishConnection,
}

# Peer events that fail the session like an error frame
_FAILURE_EVENTS = frozenset({EventType.ConnectionFailed, EventType.SessionFailed})


@dataclass
class SynthesisResult:
    """Outcome of a completed synthesis session."""
    session_id: str
    total_bytes: int
    audio_chunks: int
    text_chunks: List[str] = field(default_factory=list)


class SynthesisSession:
    """
    Drives one bidirectional TTS exchange over a transport.

    A session runs once. Audio chunks, sentence markers and the final
    byte count are pushed into the event sink; failures are emitted as a
    single ERROR event and raised as SpeechProtocolError.
    """

    def __init__(
        self,
        transport: FrameTransport,
        speaker: str,
        sink: Optional[EventSink] = None,
        *,
        session_id: Optional[str] = None,
        uid: str = "speechwire",
        encoding: str = "mp3",
        sample_rate: int = 24000,
        chunker: Optional[TextChunker] = None,
        chunk_delay: float = DEFAULT_CHUNK_DELAY,
        receive_timeout: Optional[float] = None,
        close_timeout: Optional[float] = DEFAULT_CLOSE_TIMEOUT,
    ):
        """
        Args:
            transport: Connected transport, owned by this session
            speaker: Voice type sent in StartSession
            sink: Consumer of decoded events (default: discard)
            session_id: Session id (default: fresh UUID)
            uid: User id sent in StartSession
            encoding: Audio format (mp3, pcm, ogg_opus)
            sample_rate: Output sample rate
            chunker: Text segmentation for TaskRequest frames
            chunk_delay: Pacing delay between TaskRequest frames (seconds)
            receive_timeout: Max wait for any inbound frame (None: wait forever)
            close_timeout: Max wait for ConnectionFinished
        """
        self.transport = transport
        self.speaker = speaker
        self.sink = sink or NullSink()
        self.session_id = session_id or str(uuid.uuid4())
        self.uid = uid
        self.encoding = encoding
        self.sample_rate = sample_rate
        self.chunker = chunker or TextChunker()
        self.chunk_delay = chunk_delay
        self.receive_timeout = receive_timeout
        self.close_timeout = close_timeout

        self.total_bytes = 0
        self.audio_chunks = 0

        self._phase = SessionPhase.IDLE
        self._closing = False
        self._reassembler = FrameReassembler(decode_event_frame)

        self.logger = base_logger.bind(component="SynthesisSession", session_id=self.session_id[:8])

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    def _transition(self, phase: SessionPhase) -> None:
        if phase not in _TRANSITIONS[self._phase]:
            raise RuntimeError(f"Illegal phase transition: {self._phase.value} -> {phase.value}")
        self.logger.debug(f"Phase {self._phase.value} -> {phase.value}")
        self._phase = phase

    def _fail(self, error: Exception) -> None:
        if self._phase is not SessionPhase.FAILED:
            self.logger.error(f"Session failed in phase {self._phase.value}: {error}")
            self._phase = SessionPhase.FAILED

    # ------------------------------------------------------------------
    # Payloads
    # ------------------------------------------------------------------

    def build_session_request(self) -> Dict[str, Any]:
        return {
            "user": {"uid": self.uid},
            "event": int(EventType.StartSession),
            "namespace": NAMESPACE,
            "req_params": {
                "speaker": self.speaker,
                "audio_params": {
                    "format": self.encoding,
                    "sample_rate": self.sample_rate,
                },
            },
        }

    def build_task_request(self, text: str) -> Dict[str, Any]:
        return {
            "event": int(EventType.TaskRequest),
            "namespace": NAMESPACE,
            "req_params": {"text": text},
        }

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def run(self, text: str) -> SynthesisResult:
        """
        Synthesize text, pushing audio into the sink as it arrives.

        Raises:
            ValueError: Text is empty after trimming (nothing is sent)
            RuntimeError: The session already ran
            SpeechProtocolError: Transport, decode, server or sequencing failure
        """
        if self._phase is not SessionPhase.IDLE:
            raise RuntimeError("A synthesis session can only run once")

        chunks = self.chunker.split(text)
        if not chunks:
            raise ValueError("Text to synthesize is empty")

        self.logger.info(
            f"Starting synthesis: text_len={len(text)} chunks={len(chunks)} speaker={self.speaker}"
        )

        failure: Optional[SpeechProtocolError] = None
        try:
            await self._open_connection()
            await self._open_session()
            await self._stream(chunks)
        except SpeechProtocolError as e:
            failure = e
            self._fail(e)
            await self.sink.emit(SpeechEvent(
                type=SpeechEventType.ERROR,
                text=str(e),
                session_id=self.session_id,
            ))

        await self._close_connection()

        if failure is not None:
            raise failure

        await self.sink.emit(SpeechEvent(
            type=SpeechEventType.FINISHED,
            total_bytes=self.total_bytes,
            session_id=self.session_id,
        ))
        self.logger.info(f"Session finished total_bytes={self.total_bytes}")
        return SynthesisResult(
            session_id=self.session_id,
            total_bytes=self.total_bytes,
            audio_chunks=self.audio_chunks,
            text_chunks=chunks,
        )

    # ------------------------------------------------------------------
    # Handshake steps
    # ------------------------------------------------------------------

    async def _open_connection(self) -> None:
        self._transition(SessionPhase.CONNECTION_STARTING)
        await self._send(EventType.StartConnection, None, {})
        await self._await_event(EventType.ConnectionStarted)
        self._transition(SessionPhase.CONNECTION_ACTIVE)
        self.logger.debug("Connection started")

    async def _open_session(self) -> None:
        self._transition(SessionPhase.SESSION_STARTING)
        await self._send(EventType.StartSession, self.session_id, self.build_session_request())
        await self._await_event(EventType.SessionStarted)
        self._transition(SessionPhase.SESSION_ACTIVE)
        self.logger.debug("Session started")

    async def _stream(self, chunks: List[str]) -> None:
        sender = asyncio.create_task(self._send_tasks(chunks))
        try:
            await self._collect_audio(sender)
        except BaseException:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError, SpeechProtocolError):
                await sender
            raise
        await sender

    async def _send_tasks(self, chunks: List[str]) -> None:
        self._transition(SessionPhase.TASK_SENDING)
        for index, chunk in enumerate(chunks):
            await self._send(EventType.TaskRequest, self.session_id, self.build_task_request(chunk))
            self.logger.debug(f"Sent text chunk {index + 1}/{len(chunks)} ({len(chunk)} chars)")
            if index + 1 < len(chunks):
                await asyncio.sleep(self.chunk_delay)

        self._transition(SessionPhase.SESSION_FINISHING)
        await self._send(EventType.FinishSession, self.session_id, {})

    async def _collect_audio(self, sender: asyncio.Task) -> None:
        while True:
            inbound = await self._receive(sender)

            if inbound is None or inbound.kind is InboundKind.CLOSE:
                if self._phase is SessionPhase.SESSION_FINISHING:
                    self.logger.warning("Connection closed before SessionFinished, treating session as complete")
                    return
                if inbound is None:
                    raise SequencingError(
                        f"Connection ended before expected event {describe_event(EventType.SessionFinished)}",
                        expected_event=EventType.SessionFinished,
                    )
                raise TransportError("TTS connection closed before all text was sent")

            frame = self._decode(inbound)
            if frame is None:
                continue

            if frame.is_audio:
                if frame.payload:
                    await self._on_audio(frame.payload)
                continue

            if frame.event == EventType.TTSSentenceStart:
                await self.sink.emit(SpeechEvent(
                    type=SpeechEventType.SENTENCE_START,
                    text=frame.payload_text(),
                    event_code=frame.event,
                    session_id=self.session_id,
                ))
            elif frame.event == EventType.TTSSentenceEnd:
                await self.sink.emit(SpeechEvent(
                    type=SpeechEventType.SENTENCE_END,
                    text=frame.payload_text(),
                    event_code=frame.event,
                    session_id=self.session_id,
                ))
            elif frame.event == EventType.SessionFinished:
                if not sender.done():
                    # FinishSession may still be in flight
                    await sender
                self._transition(SessionPhase.SESSION_CLOSED)
                self.logger.debug("Session closed by peer")
                return
            elif (
                frame.event is not None
                and frame.serialization == SerializationBits.JSON
                and frame.payload
            ):
                self.logger.debug(f"TTS event {describe_event(frame.event)} payload: {frame.payload_text()}")
                await self.sink.emit(SpeechEvent(
                    type=SpeechEventType.SERVER_EVENT,
                    text=frame.payload_text(),
                    event_code=frame.event,
                    session_id=self.session_id,
                ))

    async def _close_connection(self) -> None:
        """Best-effort FinishConnection / ConnectionFinished exchange."""
        self._closing = True
        if self._phase is not SessionPhase.FAILED:
            self._transition(SessionPhase.CONNECTION_FINISHING)

        try:
            await self._send(EventType.FinishConnection, None, {})
            await asyncio.wait_for(
                self._await_event(EventType.ConnectionFinished),
                timeout=self.close_timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning("Connection close timeout")
            return
        except SpeechProtocolError as e:
            self.logger.warning(f"Closing handshake failed: {e}")
            return

        if self._phase is SessionPhase.CONNECTION_FINISHING:
            self._transition(SessionPhase.CONNECTION_CLOSED)

    # ------------------------------------------------------------------
    # Frame I/O
    # ------------------------------------------------------------------

    async def _send(self, event: EventType, session_id: Optional[str], payload: Any) -> None:
        expected = _OUTBOUND_EVENTS.get(self._phase)
        closing_send = self._closing and event == EventType.FinishConnection
        if expected != event and not closing_send:
            raise RuntimeError(
                f"Cannot send {describe_event(event)} in phase {self._phase.value}"
            )
        await self.transport.send(encode_event_frame(event, session_id, payload))

    async def _receive(self, sender: Optional[asyncio.Task] = None) -> Optional[Inbound]:
        """
        Wait for the next inbound message.

        While a sender task is running, its failure aborts the wait.
        """
        if sender is not None and sender.done():
            sender.result()
            sender = None

        loop = asyncio.get_running_loop()
        deadline = None if self.receive_timeout is None else loop.time() + self.receive_timeout

        receive = asyncio.ensure_future(self.transport.receive())
        waiters = {receive}
        if sender is not None:
            waiters.add(sender)
        try:
            while True:
                remaining = None if deadline is None else max(0.0, deadline - loop.time())
                done, _ = await asyncio.wait(
                    waiters,
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if receive in done:
                    return receive.result()
                if not done:
                    raise ResponseTimeoutError(f"No response within {self.receive_timeout}s")
                # Sender finished first: surface its failure, else keep reading
                waiters.discard(sender)
                sender.result()
        finally:
            if not receive.done():
                receive.cancel()
                with contextlib.suppress(asyncio.CancelledError, SpeechProtocolError):
                    await receive

    async def _await_event(self, target: EventType) -> Optional[EventFrame]:
        """
        Read frames until `target` arrives, ignoring unrelated events.

        Once the closing handshake has begun, a close or end of stream is a
        normal termination and returns None.
        """
        while True:
            inbound = await self._receive()

            if inbound is None or inbound.kind is InboundKind.CLOSE:
                if self._closing:
                    return None
                if inbound is None:
                    raise SequencingError(
                        f"Connection ended before expected event {describe_event(target)}",
                        expected_event=target,
                    )
                raise TransportError(f"TTS connection closed while awaiting {describe_event(target)}")

            frame = self._decode(inbound)
            if frame is None:
                continue
            if frame.event == target:
                return frame
            self.logger.debug(f"Ignoring frame while awaiting {describe_event(target)}: {frame}")

    def _decode(self, inbound: Inbound) -> Optional[EventFrame]:
        if inbound.kind is InboundKind.TEXT:
            raise ServerError(f"TTS returned text message: {inbound.data}")

        frame = self._reassembler.feed(inbound.data)
        if frame is None:
            self.logger.debug(f"Incomplete frame, buffered {self._reassembler.pending} bytes")
            return None

        if frame.is_error:
            raise ServerError(f"TTS service error: {frame.payload_text()}", code=frame.error_code)
        if frame.event in _FAILURE_EVENTS:
            raise ServerError(f"{describe_event(frame.event)}: {frame.payload_text()}")
        return frame

    async def _on_audio(self, payload: bytes) -> None:
        if self.total_bytes == 0:
            self.logger.debug(f"First audio chunk size={len(payload)}")
        self.total_bytes += len(payload)
        self.audio_chunks += 1
        await self.sink.emit(SpeechEvent(
            type=SpeechEventType.AUDIO_CHUNK,
            data=payload,
            event_code=EventType.TTSResponse,
            session_id=self.session_id,
        ))
