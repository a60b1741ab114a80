"""
synvm - 15-bit Word Address Space

Memory map:
  0 .. 32767  one 16-bit cell per address, zero at power-on

Cells are stored as little-endian byte pairs in a flat bytearray, which
is the same layout the program image uses on disk, so loading an image is
a single slice copy. Addresses above 32767 never exist; values up to
65535 may be stored even though only 0..32775 are meaningful operands.
"""

import logging
import struct
from pathlib import Path
from typing import List, Union

from ..config import (
    MEMORY_WORDS, MAX_ADDRESS, WORD_MASK, IMAGE_MAX_BYTES,
    HEXDUMP_WORDS_PER_LINE,
)
from ..errors import OutOfRangeAddress, ValueOverflow, ImageError

log = logging.getLogger(__name__)


def check_address(address: int) -> int:
    """Return address unchanged, or raise OutOfRangeAddress."""
    if address < 0 or address > MAX_ADDRESS:
        raise OutOfRangeAddress(f"Invalid memory address ({address})", operand=address)
    return address


class AddressSpace:
    """32768 words of 16-bit memory.

    Usage:
        space = AddressSpace.from_image(Path('challenge.bin').read_bytes())
        space.read(0)          # first opcode
        space.write(100, 42)
    """

    def __init__(self):
        self._mem = bytearray(MEMORY_WORDS * 2)

    @classmethod
    def from_image(cls, data: bytes) -> "AddressSpace":
        space = cls()
        space.load_image(data)
        return space

    @classmethod
    def from_words(cls, words) -> "AddressSpace":
        """Build an address space from a list of words (tests, hand assembly)."""
        space = cls()
        for address, value in enumerate(words):
            space.write(address, value)
        return space

    # --- Core read/write ---

    def read(self, address: int) -> int:
        check_address(address)
        lo = self._mem[2 * address]
        hi = self._mem[2 * address + 1]
        return (hi << 8) | lo

    def write(self, address: int, value: int):
        check_address(address)
        if value < 0 or value > WORD_MASK:
            raise ValueOverflow(
                f"Invalid value ({value}), must be unsigned 16-bit", operand=value
            )
        self._mem[2 * address] = value & 0xFF
        self._mem[2 * address + 1] = value >> 8

    def __len__(self) -> int:
        return MEMORY_WORDS

    # --- Bulk load ---

    def load_image(self, data: bytes, base: int = 0):
        """Copy a little-endian program image into memory at word `base`.

        An odd trailing byte becomes the low byte of a final word whose
        high byte stays zero.
        """
        check_address(base)
        data = bytes(data)
        offset = base * 2
        if offset + len(data) > IMAGE_MAX_BYTES:
            raise ImageError(
                f"Image of {len(data)} bytes does not fit at word {base} "
                f"({IMAGE_MAX_BYTES - offset} bytes available)"
            )
        self._mem[offset:offset + len(data)] = data
        log.debug("Loaded %d bytes (%d words) at %d",
                  len(data), (len(data) + 1) // 2, base)

    def load_file(self, path: Union[str, Path], base: int = 0):
        data = Path(path).read_bytes()
        log.info("Loading image %s (%d bytes)", path, len(data))
        self.load_image(data, base)

    # --- Inspection ---

    def snapshot(self, start: int = 0, end: int = MAX_ADDRESS) -> List[int]:
        """Copy of words start..end (inclusive)."""
        check_address(start)
        check_address(end)
        return [self.read(a) for a in range(start, end + 1)]

    def hexdump(self, start: int, count: int = 64) -> str:
        """Render `count` words from `start`, 8 per line, with printable chars."""
        check_address(start)
        end = min(start + count, MEMORY_WORDS)
        lines = []
        for row in range(start, end, HEXDUMP_WORDS_PER_LINE):
            words = [self.read(a) for a in range(row, min(row + HEXDUMP_WORDS_PER_LINE, end))]
            hex_words = ' '.join(f'{w:04X}' for w in words)
            text = ''.join(chr(w) if 0x20 <= w < 0x7F else '.' for w in words)
            lines.append(f'{row:5d}  {hex_words:<39s}  {text}')
        return '\n'.join(lines)


def words_to_image(words) -> bytes:
    """Pack words into a little-endian program image."""
    words = list(words)
    for w in words:
        if w < 0 or w > WORD_MASK:
            raise ValueOverflow(f"Invalid value ({w}), must be unsigned 16-bit", operand=w)
    return struct.pack(f'<{len(words)}H', *words)
