"""
synvm - Execution Tracer

Attach an instance as Machine.tracer. Each executed instruction becomes
one colorized line:

    PC:  1234 --  add R0, R1, 4 -- 17, 4

opcode in bold, raw operands in yellow, resolved values in bright blue.
The tracer starts stopped; start()/stop() toggle it at any time (the
debug console does this from `!trace on|off`) and stamp the file.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO, Union

from rich.console import Console
from rich.text import Text

from ..emu import TraceRecord

log = logging.getLogger(__name__)


class Tracer:
    """Colorized per-instruction trace written to a file or stream."""

    def __init__(self, output: Union[str, Path, TextIO]):
        if isinstance(output, (str, Path)):
            self._path: Optional[Path] = Path(output)
            self._file = open(self._path, "a", encoding="utf-8")
            log.info("Tracing to file '%s'", self._path)
        else:
            self._path = None
            self._file = output
        self._console = Console(file=self._file, force_terminal=True,
                                color_system="standard", width=200,
                                highlight=False, soft_wrap=True)
        self.running = False
        self.records = 0

    def _stamp(self, message: str):
        timestamp = datetime.now().strftime("%a, %d %b %y %H:%M:%S")
        self._console.print(f"{timestamp} - {message}", markup=False)

    def start(self):
        if self.running:
            return
        self._stamp("Logging started")
        self.running = True

    def stop(self):
        if not self.running:
            return
        self._stamp("Logging stopped")
        self.running = False

    def __call__(self, record: TraceRecord):
        if not self.running:
            return
        line = Text(f"PC: {record.pc:5d} -- ")
        line.append(f"{record.opcode:>4s} ", style="bold")
        line.append(", ".join(record.labels), style="yellow")
        if record.values:
            line.append(" -- ")
            line.append(", ".join(str(v) for v in record.values), style="bright_blue")
        self._console.print(line)
        self.records += 1

    def close(self):
        self.stop()
        if self._path is not None:
            self._file.close()
