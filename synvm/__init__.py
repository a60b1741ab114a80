"""
synvm - Word-addressed 22-instruction virtual machine

    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Program image│───>│ AddressSpace │<──>│   Machine    │──> out (stdout)
    │ (.bin, LE)   │    │ 32768 words  │    │ R0-R7, stack │<── in  (input provider)
    └──────────────┘    └──────────────┘    └──────┬───────┘
                                                   └──> tracer (optional)
"""

__version__ = "0.1.0"

from .errors import (
    VMError, OutOfRangeAddress, ValueOverflow, InvalidOperand, InvalidNumber,
    InvalidOpcode, InvalidRegisterTarget, StackUnderflow, DivisionByZero,
    ImageError,
)
from .mem.memory import AddressSpace, words_to_image
from .emu import Machine, StopReason, TraceRecord
