"""
Z16 Simulator — Register File

Eight 16-bit general purpose registers, x0..x7, with fixed ABI names:

  x0 t0   temporary
  x1 ra   return address
  x2 sp   stack pointer
  x3 s0   saved
  x4 s1   saved
  x5 t1   temporary
  x6 a0   argument / syscall operand
  x7 a1   argument

x0 is an ordinary register (not hard-wired to zero). The program
counter lives here too so a single object carries the whole CPU state.
"""

from typing import List

ABI_NAMES = ("t0", "ra", "sp", "s0", "s1", "t1", "a0", "a1")
NUM_REGS = len(ABI_NAMES)

_BY_NAME = {name: idx for idx, name in enumerate(ABI_NAMES)}
_BY_NAME.update({f"x{idx}": idx for idx in range(NUM_REGS)})


def reg_name(idx: int) -> str:
    """ABI name for a register index (reg_name(6) -> 'a0')."""
    return ABI_NAMES[idx]


def reg_index(name) -> int:
    """Register index from an ABI name, 'xN' name or int."""
    if isinstance(name, int):
        if not 0 <= name < NUM_REGS:
            raise KeyError(name)
        return name
    return _BY_NAME[name.lower()]


class Registers:
    """Z16 register file + program counter."""

    __slots__ = ('x', 'PC')

    def __init__(self):
        self.x: List[int] = [0] * NUM_REGS
        self.PC: int = 0

    def __getitem__(self, key) -> int:
        return self.x[reg_index(key)]

    def __setitem__(self, key, value: int):
        self.x[reg_index(key)] = value & 0xFFFF

    def display(self) -> str:
        """One-line register dump for debug logging."""
        cells = ' '.join(f"{name}={self.x[i]:04X}" for i, name in enumerate(ABI_NAMES))
        return f"PC={self.PC:04X} {cells}"

    def reset(self):
        self.x = [0] * NUM_REGS
        self.PC = 0
