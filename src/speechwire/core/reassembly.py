"""
Reassembly of frames split across transport reads.
"""

from typing import Callable, Generic, Optional, TypeVar


FrameT = TypeVar("FrameT")


class FrameReassembler(Generic[FrameT]):
    """
    Buffers bytes until the decoder yields a frame.

    The decoder returns None for "need more bytes"; those bytes are kept and
    prefixed to the next read. Decode errors propagate and reset the buffer.
    """

    def __init__(self, decoder: Callable[[bytes], Optional[FrameT]]):
        self._decoder = decoder
        self._pending = b""

    @property
    def pending(self) -> int:
        """Number of buffered bytes awaiting completion."""
        return len(self._pending)

    def feed(self, data: bytes) -> Optional[FrameT]:
        buffer = self._pending + bytes(data)
        self._pending = b""
        frame = self._decoder(buffer)
        if frame is None:
            self._pending = buffer
        return frame
