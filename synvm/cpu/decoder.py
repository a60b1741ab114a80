"""
synvm - Opcode Table / Instruction Fetch

Every instruction is one opcode word followed by 0-3 operand words:

  id  name  operands      id  name  operands
   0  halt  -             11  mod   a b c
   1  set   a b           12  and   a b c
   2  push  a             13  or    a b c
   3  pop   a             14  not   a b
   4  eq    a b c         15  rmem  a b
   5  gt    a b c         16  wmem  a b
   6  jmp   a             17  call  a
   7  jt    a b           18  ret   -
   8  jf    a b           19  out   a
   9  add   a b c         20  in    a
  10  mult  a b c         21  noop  -

Operands are raw words. Whether a word is used as a number, an address
or a register reference is decided by the handler, not here.
"""

from typing import Tuple

from ..errors import InvalidOpcode

# Format: opcode -> (mnemonic, operand_count)
OPCODES = {
    0:  ('halt', 0),
    1:  ('set',  2),
    2:  ('push', 1),
    3:  ('pop',  1),
    4:  ('eq',   3),
    5:  ('gt',   3),
    6:  ('jmp',  1),
    7:  ('jt',   2),
    8:  ('jf',   2),
    9:  ('add',  3),
    10: ('mult', 3),
    11: ('mod',  3),
    12: ('and',  3),
    13: ('or',   3),
    14: ('not',  2),
    15: ('rmem', 2),
    16: ('wmem', 2),
    17: ('call', 1),
    18: ('ret',  0),
    19: ('out',  1),
    20: ('in',   1),
    21: ('noop', 0),
}

NUM_OPCODES = len(OPCODES)

# mnemonic -> opcode
MNEMONICS = {name: op for op, (name, _) in OPCODES.items()}


def opcode_info(opcode: int) -> Tuple[str, int]:
    """(mnemonic, operand_count) for an opcode id, or raise InvalidOpcode."""
    info = OPCODES.get(opcode)
    if info is None:
        raise InvalidOpcode(f"Invalid op code ({opcode})", operand=opcode)
    return info


def fetch_operands(space, pc: int, nargs: int) -> Tuple[int, ...]:
    """Raw operand words following the opcode at pc."""
    return tuple(space.read(pc + 1 + i) for i in range(nargs))


def decode_opcode(space, pc: int) -> Tuple[int, str, Tuple[int, ...]]:
    """Fetch the instruction at pc.

    Returns: (opcode, mnemonic, raw_operands)

    Raises InvalidOpcode for ids above 21, OutOfRangeAddress when an
    operand would lie past the end of memory.
    """
    opcode = space.read(pc)
    mnem, nargs = opcode_info(opcode)
    return opcode, mnem, fetch_operands(space, pc, nargs)


def instruction_size(opcode: int) -> int:
    return 1 + opcode_info(opcode)[1]
