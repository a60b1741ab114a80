"""
synvm - 15-bit ALU

All arithmetic results wrap modulo 32768. Inputs are resolved operand
values; a register can hold up to 65535 (e.g. after rmem of a wide cell),
so every function here reduces or masks its result rather than assuming
15-bit inputs.
"""

from ..config import MODULUS, LITERAL_MASK
from ..errors import DivisionByZero


def add15(a: int, b: int) -> int:
    return (a + b) % MODULUS


def mult15(a: int, b: int) -> int:
    return (a * b) % MODULUS


def mod15(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero(f"Modulo by zero ({a} mod 0)", operand=b)
    return a % b


def and15(a: int, b: int) -> int:
    return a & b


def or15(a: int, b: int) -> int:
    return a | b


def not15(a: int) -> int:
    """15-bit complement. Bits above bit 14 pass through unchanged."""
    return a ^ LITERAL_MASK


def eq(a: int, b: int) -> int:
    return 1 if a == b else 0


def gt(a: int, b: int) -> int:
    return 1 if a > b else 0
