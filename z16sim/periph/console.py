"""
Z16 Simulator — Console Output Channel

System calls 1 (print integer) and 5 (print string) write here. The
emulator only ever calls write(text) with the exact text of one call:
"-7" for svc 1 with a0 = 0xFFF9, "hi" for svc 5 over b"hi\\0".

BufferedConsole keeps everything for programmatic inspection (tests,
embedding). StreamConsole also echoes each write to a text stream,
one line per call, which is what the command-line runner uses.
"""

import sys
from typing import List, Optional, TextIO


class BufferedConsole:
    """Collects console output in memory."""

    def __init__(self):
        self.writes: List[str] = []

    def write(self, text: str):
        self.writes.append(text)

    @property
    def output(self) -> str:
        return ''.join(self.writes)

    def clear(self):
        self.writes.clear()


class StreamConsole(BufferedConsole):
    """Buffers like BufferedConsole and echoes every write to a stream."""

    def __init__(self, stream: Optional[TextIO] = None, end: str = '\n'):
        super().__init__()
        self._stream = stream
        self.end = end

    @property
    def stream(self) -> TextIO:
        # resolved late so pytest's capsys sees the output
        return self._stream if self._stream is not None else sys.stdout

    def write(self, text: str):
        super().write(text)
        self.stream.write(text + self.end)
        self.stream.flush()
