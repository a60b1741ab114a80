"""
synvm - Architecture Constants and Tool Defaults

Word model:
  0 ..  32767   literal value / memory address (15-bit)
  32768 .. 32775  register reference R0..R7
  32776 .. 65535  storable in a memory cell, invalid as an operand

Everything here is a plain module constant. The command line overrides
the tool defaults; the architecture constants are fixed.
"""

from pathlib import Path

# =============================================================================
#  ARCHITECTURE
# =============================================================================
MEMORY_WORDS = 32768          # 15-bit address space
MAX_ADDRESS = MEMORY_WORDS - 1
MODULUS = 32768               # arithmetic wraps at 2^15
LITERAL_MASK = 0x7FFF         # 15-bit complement mask for `not`
WORD_MASK = 0xFFFF            # widest value a memory cell can hold

REGISTER_BASE = 32768         # R0 is numeric value 32768
NUM_REGISTERS = 8
MAX_NUMBER = REGISTER_BASE + NUM_REGISTERS - 1   # 32775

IMAGE_MAX_BYTES = MEMORY_WORDS * 2


# =============================================================================
#  TOOL DEFAULTS
# =============================================================================
DEFAULT_TRACE_FILE = Path("synvm_trace.log")
DEFAULT_PROMPT = "> "
COMMAND_PREFIX = "!"
HEXDUMP_WORDS_PER_LINE = 8
