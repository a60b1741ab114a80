"""
synvm - Character Console (out / in)

Output: every code emitted by `out` is appended to tx_buffer and, when a
stream is attached, written to it as one character.

Input: `in` consumes one code at a time from a FIFO. The machine refills
the FIFO from its input provider (one line per refill) only when it is
empty. feed() may also be called up front to script a session.
"""

import logging
from collections import deque
from typing import Deque, Optional, TextIO

log = logging.getLogger(__name__)


class ConsoleIO:
    """Output sink + pending-input queue."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
        self.tx_buffer: bytearray = bytearray()
        self._rx_queue: Deque[int] = deque()

    # --- Output ---

    def emit(self, code: int):
        """Emit one character. Codes are reduced to 8 bits."""
        code &= 0xFF
        self.tx_buffer.append(code)
        if self.stream is not None:
            self.stream.write(chr(code))
            if code == 0x0A:
                self.stream.flush()

    @property
    def output(self) -> bytes:
        """All bytes emitted since last reset."""
        return bytes(self.tx_buffer)

    @property
    def text(self) -> str:
        return self.tx_buffer.decode('latin-1')

    # --- Input ---

    def feed(self, line: str):
        """Queue the bytes of one line of input plus a trailing newline."""
        data = (line + "\n").encode('utf-8')
        self._rx_queue.extend(data)
        log.debug("Queued %d input codes", len(data))

    @property
    def pending(self) -> int:
        return len(self._rx_queue)

    def next_code(self) -> Optional[int]:
        """Pop the next input code, or None when the queue is empty."""
        if not self._rx_queue:
            return None
        return self._rx_queue.popleft()

    def reset(self):
        self.tx_buffer.clear()
        self._rx_queue.clear()
