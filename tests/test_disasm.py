"""
Decoder, disassembler and mini assembler tests.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from synvm.cpu.decoder import (
    NUM_OPCODES, OPCODES, MNEMONICS, decode_opcode, fetch_operands,
    instruction_size, opcode_info,
)
from synvm.cpu.disasm import assemble_words, decode_at, disassemble
from synvm.emu import Machine
from synvm.errors import InvalidOpcode
from synvm.mem.memory import AddressSpace

R0 = 32768


class TestOpcodeTable:

    def test_table_order(self):
        names = [OPCODES[i][0] for i in range(22)]
        assert names == ['halt', 'set', 'push', 'pop', 'eq', 'gt', 'jmp', 'jt',
                         'jf', 'add', 'mult', 'mod', 'and', 'or', 'not', 'rmem',
                         'wmem', 'call', 'ret', 'out', 'in', 'noop']

    def test_sizes(self):
        cases = {'halt': 1, 'set': 3, 'push': 2, 'eq': 4, 'jt': 3,
                 'not': 3, 'call': 2, 'ret': 1, 'in': 2, 'noop': 1}
        for mnem, size in cases.items():
            assert instruction_size(MNEMONICS[mnem]) == size, mnem

    def test_unknown_opcode(self):
        with pytest.raises(InvalidOpcode):
            opcode_info(22)

    def test_decode(self):
        space = AddressSpace.from_words([9, R0, 4, 4])
        assert decode_opcode(space, 0) == (9, 'add', (R0, 4, 4))

    def test_table_is_dense(self):
        assert NUM_OPCODES == 22
        assert sorted(OPCODES) == list(range(NUM_OPCODES))
        assert len(Machine()._dispatch) == NUM_OPCODES

    def test_fetch_operands(self):
        space = AddressSpace.from_words([4, R0, 1, 2])
        assert fetch_operands(space, 0, 3) == (R0, 1, 2)
        assert fetch_operands(space, 0, 0) == ()


class TestDisassembler:

    def test_program_listing(self):
        space = AddressSpace.from_words([9, R0, 4, 4, 19, 65, 0])
        lines = [inst.format() for inst in disassemble(space, 0, 6)]
        assert lines == [
            "    0: add   R0 4 4",
            "    4: out   'A'",
            "    6: halt",
        ]

    def test_data_words(self):
        space = AddressSpace.from_words([500, 21])
        insts = list(disassemble(space, 0, 1))
        assert insts[0].is_data
        assert insts[0].format() == "    0: .word 500"
        assert insts[1].mnemonic == 'noop'

    def test_out_newline_and_register(self):
        space = AddressSpace.from_words([19, 10, 19, R0])
        lines = [inst.format() for inst in disassemble(space, 0, 3)]
        assert lines == ["    0: out   '\\n'", "    2: out   R0"]

    def test_cut_off_instruction_is_data(self):
        space = AddressSpace()
        space.write(32767, 9)
        inst = decode_at(space, 32767)
        assert inst.is_data
        assert inst.length == 1

    def test_walk_lengths(self):
        space = AddressSpace.from_words([1, R0, 1, 2, 5, 0])
        addresses = [inst.address for inst in disassemble(space, 0, 5)]
        assert addresses == [0, 3, 5]


class TestAssembleWords:

    def test_basic(self):
        assert assemble_words("add R0 4 4; out R0; halt") == [9, 32768, 4, 4, 19, 32768, 0]

    def test_multiline_and_hex(self):
        assert assemble_words("set r7 0x10\n\nnoop\n") == [1, 32775, 16, 21]

    def test_unknown_mnemonic(self):
        with pytest.raises(ValueError, match="Unknown mnemonic"):
            assemble_words("jump 4")

    def test_operand_count(self):
        with pytest.raises(ValueError, match="takes 1 operand"):
            assemble_words("out 1 2")

    def test_register_out_of_range(self):
        with pytest.raises(ValueError, match="Unknown register: R8"):
            assemble_words("set R8 1")
        assert assemble_words("set R7 1") == [1, 32775, 1]
