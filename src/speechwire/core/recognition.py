"""
One-shot recognition exchange (bigmodel ASR)

Sends the configuration request and the whole audio buffer as a single
final audio frame, then drains responses until the peer closes or the
deadline elapses. A timeout is not an error: the transcript captured so
far (possibly empty) is returned.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger as base_logger

from speechwire.core.events import EventSink, NullSink, SpeechEvent, SpeechEventType
from speechwire.core.reassembly import FrameReassembler
from speechwire.protocol.codec import (
    decode_simple_response,
    encode_audio_frame,
    encode_simple_request,
)
from speechwire.protocol.errors import ServerError, SpeechProtocolError
from speechwire.transports.base import FrameTransport, InboundKind


DEFAULT_TIMEOUT = 15.0


@dataclass
class AudioFormat:
    """Audio metadata sent in the recognition request."""
    # Browser recordings (MediaRecorder) by default
    format: str = "webm"
    codec: str = "opus"
    rate: int = 16000
    bits: int = 16
    channel: int = 1

    def to_payload(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "codec": self.codec,
            "rate": self.rate,
            "bits": self.bits,
            "channel": self.channel,
        }


class RecognitionExchange:
    """
    Drives one recognition request over a transport.

    Usage:
        exchange = RecognitionExchange(transport, audio_format=AudioFormat("ogg", "opus"))
        text = await exchange.run(audio_bytes)
    """

    def __init__(
        self,
        transport: FrameTransport,
        sink: Optional[EventSink] = None,
        *,
        audio_format: Optional[AudioFormat] = None,
        uid: str = "speechwire",
        model_name: str = "bigmodel",
        show_utterances: bool = True,
        enable_itn: Optional[bool] = None,
        enable_punc: Optional[bool] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self.transport = transport
        self.sink = sink or NullSink()
        self.audio_format = audio_format or AudioFormat()
        self.uid = uid
        self.model_name = model_name
        self.show_utterances = show_utterances
        self.enable_itn = enable_itn
        self.enable_punc = enable_punc
        self.timeout = timeout

        self.transcript = ""
        self._started = False
        self._reassembler = FrameReassembler(decode_simple_response)
        self.logger = base_logger.bind(component="RecognitionExchange")

    def build_request(self) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model_name": self.model_name,
            "show_utterances": self.show_utterances,
        }
        # Optional switches are omitted rather than sent as null
        if self.enable_itn is not None:
            request["enable_itn"] = self.enable_itn
        if self.enable_punc is not None:
            request["enable_punc"] = self.enable_punc

        return {
            "user": {"uid": self.uid},
            "audio": self.audio_format.to_payload(),
            "request": request,
        }

    async def run(self, audio: bytes) -> str:
        """
        Recognize a complete audio buffer.

        Returns:
            Last non-empty transcript, or "" when none arrived

        Raises:
            RuntimeError: The exchange already ran
            ServerError: Non-zero response code or error frame
            DecodeError: Malformed response frame
            TransportError: Send/receive failure
        """
        if self._started:
            raise RuntimeError("A recognition exchange can only run once")
        self._started = True

        self.logger.info(
            f"Sending recognition request: format={self.audio_format.format} "
            f"codec={self.audio_format.codec} audio_size={len(audio)}"
        )
        try:
            await self.transport.send(encode_simple_request(self.build_request()))
            await self.transport.send(encode_audio_frame(audio, is_final=True))
            await asyncio.wait_for(self._read_responses(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(f"Timed out waiting for response after {self.timeout}s")
        except SpeechProtocolError as e:
            self.logger.error(f"Recognition failed: {e}")
            await self.sink.emit(SpeechEvent(type=SpeechEventType.ERROR, text=str(e)))
            raise

        if self.transcript:
            self.logger.info(f"Transcript: {self.transcript}")
        else:
            self.logger.warning("No transcript returned")
        return self.transcript

    async def _read_responses(self) -> None:
        while True:
            inbound = await self.transport.receive()
            if inbound is None or inbound.kind is InboundKind.CLOSE:
                self.logger.debug("Recognition stream closed")
                return

            if inbound.kind is InboundKind.TEXT:
                await self._handle_payload(inbound.data, "Text")
                continue

            text = self._reassembler.feed(inbound.data)
            if text is None:
                continue
            await self._handle_payload(text, "Binary")

    async def _handle_payload(self, text: str, source: str) -> None:
        try:
            response = json.loads(text)
        except ValueError:
            self.logger.warning(f"{source} response (unparsed): {text[:200]}")
            return
        if not isinstance(response, dict):
            self.logger.warning(f"{source} response (unparsed): {text[:200]}")
            return

        code = response.get("code") or 0
        if code != 0:
            raise ServerError(f"Recognition error: {response.get('message', '')}", code=code)

        result = response.get("result")
        if not isinstance(result, dict):
            return
        transcript = result.get("text") or ""
        if not transcript:
            return

        self.transcript = transcript
        await self.sink.emit(SpeechEvent(
            type=SpeechEventType.TRANSCRIPT,
            text=transcript,
        ))
