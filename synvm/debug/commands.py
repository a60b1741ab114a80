"""
synvm - Interactive Debug Console

Input provider for Machine.input_provider. It is only called when the
program executes `in` with nothing queued. Lines starting with "!" are
debug commands handled here; the first line that is not a command is
handed back to the machine as program input. See HELP_TEXT for the
command list.
"""

import logging
from typing import Callable, List, Optional

from rich.console import Console
from rich.table import Table

from ..config import COMMAND_PREFIX, DEFAULT_PROMPT
from ..errors import VMError

log = logging.getLogger(__name__)

HELP_TEXT = """\
  !help                 list commands
  !regs                 registers, pc, stack depth
  !reg N VALUE          set register N (0-7)
  !stack                operand stack, top first
  !mem ADDR [COUNT]     hex dump of memory
  !trace on|off         toggle the execution tracer
  !quit                 end the session
"""


class CommandError(Exception):
    """Bad debug command syntax. Reported to the user, never fatal."""


class DebugConsole:

    def __init__(self, machine, tracer=None,
                 reader: Optional[Callable[[str], str]] = None,
                 console: Optional[Console] = None,
                 prompt: str = DEFAULT_PROMPT):
        self.machine = machine
        self.tracer = tracer
        self.console = console if console is not None else Console(highlight=False)
        self.reader = reader if reader is not None else self.console.input
        self.prompt = prompt
        self._commands = {
            'help':  self._cmd_help,
            'regs':  self._cmd_regs,
            'reg':   self._cmd_reg,
            'stack': self._cmd_stack,
            'mem':   self._cmd_mem,
            'trace': self._cmd_trace,
            'quit':  self._cmd_quit,
        }

    def __call__(self) -> str:
        while True:
            line = self.reader(self.prompt)
            if not line.startswith(COMMAND_PREFIX):
                return line
            self.execute(line[len(COMMAND_PREFIX):])

    def execute(self, command_line: str):
        """Run one debug command (without the prefix)."""
        words = command_line.split()
        if not words:
            self._cmd_help([])
            return
        name, args = words[0].lower(), words[1:]
        handler = self._commands.get(name)
        if handler is None:
            self.console.print(f"Unknown command '{name}' (try {COMMAND_PREFIX}help)",
                               style="red", markup=False)
            return
        try:
            handler(args)
        except (CommandError, VMError) as e:
            log.debug("Command %r rejected: %s", command_line, e)
            self.console.print(str(e), style="red", markup=False)

    # ── Commands ──

    def _cmd_help(self, args: List[str]):
        self.console.print(HELP_TEXT.rstrip(), markup=False)

    def _cmd_regs(self, args: List[str]):
        table = Table(title=f"pc={self.machine.pc}  stack={len(self.machine.stack)}")
        table.add_column("Reg")
        table.add_column("Value", justify="right")
        table.add_column("Hex", justify="right")
        for i, value in enumerate(self.machine.regs):
            table.add_row(f"R{i}", str(value), f"{value:04X}")
        self.console.print(table)

    def _cmd_reg(self, args: List[str]):
        if len(args) != 2:
            raise CommandError(f"usage: {COMMAND_PREFIX}reg N VALUE")
        index = _parse_int(args[0])
        value = _parse_int(args[1])
        self.machine.set_register(index, value)
        self.console.print(f"R{index} = {value}")

    def _cmd_stack(self, args: List[str]):
        items = self.machine.stack.as_list()
        if not items:
            self.console.print("(empty)")
            return
        for depth, value in enumerate(reversed(items)):
            self.console.print(f"{depth:3d}: {value}")

    def _cmd_mem(self, args: List[str]):
        if not 1 <= len(args) <= 2:
            raise CommandError(f"usage: {COMMAND_PREFIX}mem ADDR [COUNT]")
        start = _parse_int(args[0])
        count = _parse_int(args[1]) if len(args) == 2 else 64
        self.console.print(self.machine.mem.hexdump(start, count), markup=False)

    def _cmd_trace(self, args: List[str]):
        if self.tracer is None:
            raise CommandError("No tracer attached")
        if args == ['on']:
            self.tracer.start()
        elif args == ['off']:
            self.tracer.stop()
        elif args:
            raise CommandError(f"usage: {COMMAND_PREFIX}trace on|off")
        state = "on" if self.tracer.running else "off"
        self.console.print(f"trace {state}")

    def _cmd_quit(self, args: List[str]):
        raise EOFError("Session ended by user")


def _parse_int(text: str) -> int:
    """Decimal (leading zeros allowed) or 0x-prefixed integer."""
    try:
        if text.lower().startswith('0x'):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise CommandError(f"Not a number: {text!r}") from None
