"""
Z16 Simulator — Exception Hierarchy

All simulator-level diagnostics derive from Z16Error. None of these are
architectural traps: Z16 has no exception mechanism, so every fault here
stops the simulation.

  LoaderFault         image missing / unreadable (before the run)
  AddressingFault     load/store/string access at or beyond capacity
  UnterminatedString  svc 5 reached the end of memory without a NUL
"""

from typing import Optional


class Z16Error(Exception):
    """Base for all simulator errors."""
    pass


class LoaderFault(Z16Error):
    """The binary image could not be loaded."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot load image {path}: {reason}")


class AddressingFault(Z16Error):
    """Data access outside the memory array.

    `pc` is None when raised by Memory directly; the emulator fills it
    in with the address of the instruction that made the access.
    """

    def __init__(self, address: int, size: int = 1, pc: Optional[int] = None):
        self.address = address
        self.size = size
        self.pc = pc
        super().__init__(self._describe())

    def _describe(self) -> str:
        where = f" (instruction at 0x{self.pc:04X})" if self.pc is not None else ""
        return f"{self.size}-byte access at 0x{self.address:04X} out of range{where}"

    def at(self, pc: int) -> "AddressingFault":
        """Attach the faulting instruction address and refresh the message."""
        self.pc = pc
        self.args = (self._describe(),)
        return self


class UnterminatedString(AddressingFault):
    """svc 5 scanned to the end of memory without finding a terminator."""

    def _describe(self) -> str:
        where = f" (instruction at 0x{self.pc:04X})" if self.pc is not None else ""
        return f"string at 0x{self.address:04X} has no NUL terminator{where}"
