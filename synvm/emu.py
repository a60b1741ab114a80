"""
synvm - Main Machine Class

This is the top-level class that integrates:
  - Address space (mem/memory.py)
  - Register file + operand stack (cpu/regs.py)
  - Opcode table (cpu/decoder.py)
  - 15-bit ALU (cpu/alu.py)
  - Character console (periph/console.py)

Execution model:
  1. Fetch opcode at PC, fail on ids above 21
  2. Fetch the raw operand words that follow it
  3. Execute handler: resolve operands, update state, move PC
  4. Notify the tracer, if one is attached
  5. Stop when the halted flag is set

Termination reasons:
  - HALT:    `halt` instruction
  - RETURN:  `ret` with an empty stack

Anything else that stops the loop is a VMError raised out of run().
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, TextIO, Tuple, Union

from .config import REGISTER_BASE, MAX_ADDRESS, MAX_NUMBER, WORD_MASK
from .cpu import alu
from .cpu.decoder import NUM_OPCODES, fetch_operands, opcode_info
from .cpu.regs import (
    RegisterFile, OperandStack, is_register, register_index, register_name,
)
from .errors import (
    VMError, InvalidNumber, InvalidOperand, InvalidRegisterTarget,
    StackUnderflow, ValueOverflow,
)
from .mem.memory import AddressSpace, check_address
from .periph.console import ConsoleIO

log = logging.getLogger(__name__)

InputProvider = Callable[[], str]


class StopReason(Enum):
    HALT = 'HALT'
    RETURN = 'RETURN'


@dataclass(frozen=True)
class TraceRecord:
    """One executed instruction, as seen by a tracer."""
    pc: int
    opcode: str
    operands: Tuple[int, ...]
    values: Tuple[int, ...] = ()

    @property
    def labels(self) -> Tuple[str, ...]:
        """Operands with register references shown as R0..R7."""
        return tuple(register_name(w) for w in self.operands)


TraceHook = Callable[[TraceRecord], None]


class Machine:
    """22-instruction word machine.

    Usage:
        space = AddressSpace.from_image(Path('challenge.bin').read_bytes())
        vm = Machine(space, stdout=sys.stdout, input_provider=input)
        reason = vm.run()
        print(vm.io.output)
    """

    def __init__(self, mem: Optional[AddressSpace] = None,
                 stdout: Optional[TextIO] = None,
                 input_provider: Optional[InputProvider] = None,
                 tracer: Optional[TraceHook] = None):
        self.mem = mem if mem is not None else AddressSpace()
        self.regs = RegisterFile()
        self.stack = OperandStack()
        self.io = ConsoleIO(stdout)

        self.pc = 0
        self.halted = False
        self.stop_reason: Optional[StopReason] = None
        self.steps = 0

        self.input_provider = input_provider
        self.tracer = tracer

        # Indexed by opcode id
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_image(self, path_or_data: Union[str, Path, bytes], base: int = 0):
        """Load a program image file or raw bytes into memory."""
        if isinstance(path_or_data, (str, Path)):
            self.mem.load_file(path_or_data, base)
        else:
            self.mem.load_image(path_or_data, base)

    # ══════════════════════════════════════════════
    # Operand resolution
    # ══════════════════════════════════════════════

    def read_from(self, source: int) -> int:
        """Memory cell for an address, register content for a register reference."""
        if 0 <= source <= MAX_ADDRESS:
            return self.mem.read(source)
        if is_register(source):
            return self.regs[register_index(source)]
        raise InvalidOperand(f"Invalid reading address ({source})", operand=source)

    def write_to(self, target: int, value: int):
        """Store into a memory cell or a register."""
        if 0 <= target <= MAX_ADDRESS:
            self.mem.write(target, value)
        elif is_register(target):
            if value < 0 or value > WORD_MASK:
                raise ValueOverflow(
                    f"Invalid value ({value}), must be unsigned 16-bit", operand=value
                )
            self.regs[register_index(target)] = value
        else:
            raise InvalidOperand(f"Invalid writing address ({target})", operand=target)

    def check_number(self, number: int) -> int:
        """Literal value, or the content of the referenced register."""
        if is_register(number):
            return self.regs[register_index(number)]
        if number < 0 or number > MAX_NUMBER:
            raise InvalidNumber(f"Invalid number ({number})", operand=number)
        return number

    def _jump_target(self, word: int) -> int:
        return check_address(self.check_number(word))

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if it halted, else None."""
        pc = self.pc
        try:
            opcode = self.mem.read(pc)
            mnem, nargs = opcode_info(opcode)
        except VMError as e:
            e.annotate(pc, None)
            raise

        try:
            operands = fetch_operands(self.mem, pc, nargs)
            values = self._dispatch[opcode](*operands)
        except VMError as e:
            e.annotate(pc, mnem)
            raise

        self.steps += 1
        if self.tracer is not None:
            self.tracer(TraceRecord(pc, mnem, operands, values or ()))

        if self.halted:
            log.info("Halted (%s) at pc=%d after %d instructions",
                     self.stop_reason.value, self.pc, self.steps)
            return self.stop_reason
        return None

    def run(self) -> StopReason:
        """Run until the machine halts. VMErrors propagate to the caller."""
        while not self.halted:
            self.step()
        return self.stop_reason

    def _halt(self, reason: StopReason):
        self.halted = True
        self.stop_reason = reason

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(*raw_operands) -> resolved values or None
    # Each handler moves PC itself; jumps assign it, everything else adds
    # the instruction size.

    def _build_dispatch(self) -> list:
        table = [
            self._op_halt,   # 0
            self._op_set,    # 1
            self._op_push,   # 2
            self._op_pop,    # 3
            self._op_eq,     # 4
            self._op_gt,     # 5
            self._op_jmp,    # 6
            self._op_jt,     # 7
            self._op_jf,     # 8
            self._op_add,    # 9
            self._op_mult,   # 10
            self._op_mod,    # 11
            self._op_and,    # 12
            self._op_or,     # 13
            self._op_not,    # 14
            self._op_rmem,   # 15
            self._op_wmem,   # 16
            self._op_call,   # 17
            self._op_ret,    # 18
            self._op_out,    # 19
            self._op_in,     # 20
            self._op_noop,   # 21
        ]
        assert len(table) == NUM_OPCODES
        return table

    # ── Control ──

    def _op_halt(self):
        self._halt(StopReason.HALT)

    def _op_noop(self):
        self.pc += 1

    # ── Data movement ──

    def _op_set(self, a, b):
        if not is_register(a):
            raise InvalidRegisterTarget(
                f"Invalid register target in set ({a})", operand=a
            )
        value = self.check_number(b)
        self.write_to(a, value)
        self.pc += 3
        return (value,)

    def _op_push(self, a):
        value = self.check_number(a)
        self.stack.push(value)
        self.pc += 2
        return (value,)

    def _op_pop(self, a):
        value = self.stack.pop()
        if value is None:
            raise StackUnderflow("Pop from empty stack", operand=a)
        self.write_to(a, value)
        self.pc += 2
        return (value,)

    def _op_rmem(self, a, b):
        address = self.check_number(b)
        value = self.read_from(address)
        self.write_to(a, value)
        self.pc += 3
        return (address, value)

    def _op_wmem(self, a, b):
        address = self.check_number(a)
        value = self.check_number(b)
        self.write_to(address, value)
        self.pc += 3
        return (address, value)

    # ── Compare / arithmetic / logic ──

    def _binary(self, fn, a, b, c):
        b = self.check_number(b)
        c = self.check_number(c)
        self.write_to(a, fn(b, c))
        self.pc += 4
        return (b, c)

    def _op_eq(self, a, b, c):
        return self._binary(alu.eq, a, b, c)

    def _op_gt(self, a, b, c):
        return self._binary(alu.gt, a, b, c)

    def _op_add(self, a, b, c):
        return self._binary(alu.add15, a, b, c)

    def _op_mult(self, a, b, c):
        return self._binary(alu.mult15, a, b, c)

    def _op_mod(self, a, b, c):
        return self._binary(alu.mod15, a, b, c)

    def _op_and(self, a, b, c):
        return self._binary(alu.and15, a, b, c)

    def _op_or(self, a, b, c):
        return self._binary(alu.or15, a, b, c)

    def _op_not(self, a, b):
        value = self.check_number(b)
        self.write_to(a, alu.not15(value))
        self.pc += 3
        return (value,)

    # ── Jump / call ──

    def _op_jmp(self, a):
        target = self._jump_target(a)
        self.pc = target
        return (target,)

    def _op_jt(self, a, b):
        cond = self.check_number(a)
        if cond != 0:
            self.pc = self._jump_target(b)
        else:
            self.pc += 3
        return (cond, self.pc)

    def _op_jf(self, a, b):
        cond = self.check_number(a)
        if cond == 0:
            self.pc = self._jump_target(b)
        else:
            self.pc += 3
        return (cond, self.pc)

    def _op_call(self, a):
        target = self._jump_target(a)
        self.stack.push(self.pc + 2)
        self.pc = target
        return (target,)

    def _op_ret(self):
        address = self.stack.pop()
        if address is None:
            self._halt(StopReason.RETURN)
            return None
        self.pc = check_address(address)
        return (address,)

    # ── I/O ──

    def _op_out(self, a):
        code = self.check_number(a)
        self.io.emit(code)
        self.pc += 2
        return (code,)

    def _op_in(self, a):
        code = self.io.next_code()
        if code is None:
            self.io.feed(self._request_input())
            code = self.io.next_code()
        self.write_to(a, code)
        self.pc += 2
        return (code,)

    def _request_input(self) -> str:
        """Block on the input provider for one line of text."""
        if self.input_provider is None:
            raise EOFError("No input provider attached and input queue is empty")
        line = self.input_provider()
        log.debug("Input line received (%d chars)", len(line))
        return line

    # ══════════════════════════════════════════════
    # Debug access
    # ══════════════════════════════════════════════

    def set_register(self, index: int, value: int):
        """Set R<index> directly (debug console)."""
        if not 0 <= index < len(self.regs):
            raise InvalidOperand(f"Invalid register index ({index})", operand=index)
        self.write_to(REGISTER_BASE + index, value)

    def display(self) -> str:
        return f"PC={self.pc} {self.regs.display()} SP={len(self.stack)}"

    def reset(self):
        """Reset registers, stack, console and PC. Memory is kept."""
        self.regs.reset()
        self.stack.clear()
        self.io.reset()
        self.pc = 0
        self.halted = False
        self.stop_reason = None
        self.steps = 0
