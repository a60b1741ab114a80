"""
synvm - Static Disassembler

Walks an address space linearly from a start address, decoding one
instruction at a time. Words that are not valid opcodes are emitted as
one-word `.word` data lines and the walk continues with the next word.

    from synvm.cpu.disasm import disassemble
    for inst in disassemble(space, 0, 30):
        print(inst.format())     # "    0: add   R0 4 4"
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from ..config import MAX_ADDRESS, NUM_REGISTERS, REGISTER_BASE
from .decoder import OPCODES, MNEMONICS
from .regs import register_name

DATA_MNEMONIC = '.word'


@dataclass
class DisassembledInstruction:
    """One decoded instruction (or data word)."""
    address: int
    mnemonic: str
    operands: Tuple[int, ...] = ()
    raw: Tuple[int, ...] = ()

    @property
    def length(self) -> int:
        return len(self.raw)

    @property
    def is_data(self) -> bool:
        return self.mnemonic == DATA_MNEMONIC

    def operand_str(self) -> str:
        parts = [register_name(w) for w in self.operands]
        if self.mnemonic == 'out' and self.operands:
            word = self.operands[0]
            if 0x20 <= word < 0x7F:
                parts = [repr(chr(word))]
            elif word == 0x0A:
                parts = ["'\\n'"]
        return ' '.join(parts)

    def format(self) -> str:
        return f"{self.address:5d}: {self.mnemonic:5s} {self.operand_str()}".rstrip()


def decode_at(space, address: int) -> DisassembledInstruction:
    """Decode the instruction at `address` without executing it."""
    word = space.read(address)
    info = OPCODES.get(word)
    if info is None:
        return DisassembledInstruction(address, DATA_MNEMONIC, (word,), (word,))
    mnem, nargs = info
    # An instruction cut off by the end of memory is shown as data
    if address + nargs > MAX_ADDRESS:
        return DisassembledInstruction(address, DATA_MNEMONIC, (word,), (word,))
    operands = tuple(space.read(address + 1 + i) for i in range(nargs))
    return DisassembledInstruction(address, mnem, operands, (word,) + operands)


def disassemble(space, start: int = 0,
                end: Optional[int] = None) -> Iterator[DisassembledInstruction]:
    """Yield instructions whose first word lies in start..end (inclusive)."""
    if end is None:
        end = MAX_ADDRESS
    address = start
    while address <= end:
        inst = decode_at(space, address)
        yield inst
        address += inst.length


def assemble_words(source: str) -> list:
    """Turn 'add R0 4 4; out R0; halt' into words. Used for quick test programs.

    Operands are decimal literals or R0..R7; statements are separated by
    ';' or newlines.
    """
    words = []
    for stmt in source.replace('\n', ';').split(';'):
        parts = stmt.split()
        if not parts:
            continue
        mnem = parts[0].lower()
        if mnem not in MNEMONICS:
            raise ValueError(f"Unknown mnemonic: {parts[0]}")
        opcode = MNEMONICS[mnem]
        nargs = OPCODES[opcode][1]
        if len(parts) - 1 != nargs:
            raise ValueError(f"{mnem} takes {nargs} operand(s), got {len(parts) - 1}")
        words.append(opcode)
        for part in parts[1:]:
            if part.upper().startswith('R'):
                index = int(part[1:])
                if not 0 <= index < NUM_REGISTERS:
                    raise ValueError(f"Unknown register: {part}")
                words.append(REGISTER_BASE + index)
            else:
                words.append(int(part, 0))
    return words
