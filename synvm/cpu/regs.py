"""
synvm - Register File + Operand Stack

Register model:
  R0..R7  eight general purpose cells, numeric references 32768..32775
  PC      lives on the Machine, not here

The operand stack is shared by push/pop and by call/ret for return
addresses. pop() reports an empty stack by returning None; the caller
decides whether that is a halt (ret) or an underflow (pop).
"""

from typing import List, Optional

from ..config import REGISTER_BASE, NUM_REGISTERS, MAX_NUMBER


def is_register(word: int) -> bool:
    return REGISTER_BASE <= word <= MAX_NUMBER


def register_index(word: int) -> int:
    return word - REGISTER_BASE


def register_name(word: int) -> str:
    """R0..R7 for register references, the decimal literal otherwise."""
    if is_register(word):
        return f"R{word - REGISTER_BASE}"
    return str(word)


class RegisterFile:
    """Eight registers, addressable by index (0..7)."""

    __slots__ = ('_values',)

    def __init__(self):
        self._values: List[int] = [0] * NUM_REGISTERS

    def __getitem__(self, index: int) -> int:
        return self._values[index]

    def __setitem__(self, index: int, value: int):
        self._values[index] = value

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return NUM_REGISTERS

    def as_list(self) -> List[int]:
        return list(self._values)

    def display(self) -> str:
        return ' '.join(f"R{i}={v}" for i, v in enumerate(self._values))

    def reset(self):
        self._values = [0] * NUM_REGISTERS


class OperandStack:
    """Unbounded LIFO of words."""

    __slots__ = ('_items',)

    def __init__(self):
        self._items: List[int] = []

    def push(self, value: int):
        self._items.append(value)

    def pop(self) -> Optional[int]:
        if not self._items:
            return None
        return self._items.pop()

    def peek(self) -> Optional[int]:
        return self._items[-1] if self._items else None

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def as_list(self) -> List[int]:
        """Bottom-first copy of the stack."""
        return list(self._items)

    def clear(self):
        self._items.clear()
