"""
Z16 Instruction Set Simulator
=============================
Runs flat binary images for Z16, a 16-bit-instruction, 8-register
teaching architecture: fetch a word, render it as assembly for the
trace, execute it, repeat until ecall 3 or the end of memory.

Architecture:
    ┌─────────┐    ┌─────────┐    ┌──────────────┐    ┌──────────┐
    │ Memory  │───>│ Decoder │───>│ Disassembler │───>│  Trace   │
    │ (fetch) │    │ (tagged │    │ (text)       │    │  sink    │
    └─────────┘    │ variant)│    └──────────────┘    └──────────┘
                   │         │───>┌──────────────┐    ┌──────────┐
                   └─────────┘    │  Executor    │───>│ Console  │
                                  │ regs/mem/PC  │    │ (svc1/5) │
                                  └──────────────┘    └──────────┘

    - cpu/decoder.py:  field layouts + function-code tables (one source of truth)
    - cpu/disasm.py:   text rendering keyed on the decoded operation
    - cpu/encoder.py:  field packer for building images by hand
    - cpu/alu.py:      Word16 arithmetic, shifts, comparisons
    - cpu/regs.py:     register file with ABI names
    - mem/memory.py:   64 KiB little-endian byte memory
    - emu.py:          fetch/decode/execute loop and system calls
"""

from typing import Optional

__version__ = "0.1.0"

from .config import SimConfig
from .cpu.decoder import Instruction, decode
from .cpu.disasm import disassemble
from .cpu.regs import Registers, ABI_NAMES, reg_name, reg_index
from .emu import Z16Emulator, StopReason, RunState
from .errors import Z16Error, LoaderFault, AddressingFault, UnterminatedString
from .mem.memory import Memory, MEM_SIZE
from .periph.console import BufferedConsole, StreamConsole


def run_image(data: bytes, *, config: Optional[SimConfig] = None):
    """Run a byte image to completion.

    Returns (emulator, stop_reason); trace and console output are left
    buffered on the emulator.
    """
    emu = Z16Emulator(config=config)
    emu.load_binary(data)
    return emu, emu.run()
