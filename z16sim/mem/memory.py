"""
Z16 Simulator — Flat Byte Memory

A single contiguous bytearray (64 KiB by default) addressed by 16-bit
values. Words are little-endian: the low byte sits at the lower address.

Addressing rules:
  - Addresses are Word16. Callers compute effective addresses modulo
    2^16 (see wrap()) before accessing memory, so any overflow is
    explicit at the call site.
  - Data accesses (read8/write8/read16/write16/read_cstring) are bounds
    checked against capacity and raise AddressingFault. Nothing wraps
    inside Memory itself: a word access at capacity-1 faults.
  - fetch16() is the instruction-fetch path; the emulator checks the PC
    against capacity before calling it.

load_binary() clips the image to capacity and reports how many bytes
landed.
"""

import logging

from ..errors import AddressingFault, UnterminatedString

log = logging.getLogger(__name__)

MEM_SIZE = 0x10000  # 64 KiB


def wrap(addr: int) -> int:
    """Reduce an address computation to a Word16."""
    return addr & 0xFFFF


class Memory:
    """Z16 byte-addressable memory."""

    def __init__(self, size: int = MEM_SIZE):
        if not 2 <= size <= MEM_SIZE:
            raise ValueError(f"memory size {size} outside [2, {MEM_SIZE}]")
        self.size = size
        self._mem = bytearray(size)

    def __len__(self) -> int:
        return self.size

    def _check(self, addr: int, width: int):
        if addr < 0 or addr + width > self.size:
            raise AddressingFault(addr, width)

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        self._check(addr, 1)
        return self._mem[addr]

    def write8(self, addr: int, value: int):
        self._check(addr, 1)
        self._mem[addr] = value & 0xFF

    def read16(self, addr: int) -> int:
        """Read 16-bit value (little-endian)."""
        self._check(addr, 2)
        return self._mem[addr] | (self._mem[addr + 1] << 8)

    def write16(self, addr: int, value: int):
        """Write 16-bit value (little-endian)."""
        self._check(addr, 2)
        self._mem[addr] = value & 0xFF
        self._mem[addr + 1] = (value >> 8) & 0xFF

    def fetch16(self, pc: int) -> int:
        """Instruction fetch. Same byte order as read16."""
        return self._mem[pc] | (self._mem[pc + 1] << 8)

    def read_cstring(self, addr: int) -> bytes:
        """Bytes from addr up to (not including) the first NUL.

        Raises UnterminatedString when the scan reaches capacity first.
        """
        self._check(addr, 1)
        end = self._mem.find(0, addr)
        if end < 0:
            raise UnterminatedString(addr, self.size - addr)
        return bytes(self._mem[addr:end])

    # --- Bulk load ---

    def load_binary(self, data: bytes, base_addr: int = 0) -> int:
        """Copy an image into memory at base_addr.

        Returns the number of bytes stored. Anything past capacity is
        dropped with a warning.
        """
        if not 0 <= base_addr < self.size:
            raise AddressingFault(base_addr, len(data))
        room = self.size - base_addr
        if len(data) > room:
            log.warning("image is %d bytes, only %d fit at 0x%04X; truncating",
                        len(data), room, base_addr)
            data = data[:room]
        self._mem[base_addr:base_addr + len(data)] = data
        return len(data)

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 256) -> str:
        """Hex dump of memory for debugging."""
        lines = []
        stop = min(start + length, self.size)
        for addr in range(start, stop, 16):
            row = self._mem[addr:min(addr + 16, stop)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:04X}  {hex_bytes:<47}  {ascii_bytes}')
        return '\n'.join(lines)
