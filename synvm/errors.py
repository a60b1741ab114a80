"""
synvm - Error Taxonomy

Every runtime failure of the machine is fatal and derives from VMError.
The machine fills in the failing program counter and opcode name on the
way out of step(), so the message shown to the user reads like:

    Invalid number (40000) [pc=1234 op=add]
"""

from typing import Optional


class VMError(Exception):
    """Base class for all fatal machine errors."""

    def __init__(self, message: str, operand: Optional[int] = None,
                 pc: Optional[int] = None, opcode: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operand = operand
        self.pc = pc
        self.opcode = opcode

    def annotate(self, pc: int, opcode: Optional[str]) -> "VMError":
        """Attach execution context unless an inner frame already did."""
        if self.pc is None:
            self.pc = pc
        if self.opcode is None:
            self.opcode = opcode
        return self

    def __str__(self) -> str:
        context = []
        if self.pc is not None:
            context.append(f"pc={self.pc}")
        if self.opcode is not None:
            context.append(f"op={self.opcode}")
        if not context:
            return self.message
        return f"{self.message} [{' '.join(context)}]"


class OutOfRangeAddress(VMError):
    """Memory address outside [0, 32767]."""


class ValueOverflow(VMError):
    """Value written to a cell outside [0, 65535]."""


class InvalidOperand(VMError):
    """Read/write target that is neither an address nor a register."""


class InvalidNumber(VMError):
    """Value operand outside [0, 32775]."""


class InvalidOpcode(VMError):
    """Fetched opcode id above 21."""


class InvalidRegisterTarget(VMError):
    """`set` destination that does not name a register."""


class StackUnderflow(VMError):
    """`pop` on an empty operand stack."""


class DivisionByZero(VMError):
    """`mod` with a zero divisor."""


class ImageError(VMError):
    """Program image that does not fit the address space."""
