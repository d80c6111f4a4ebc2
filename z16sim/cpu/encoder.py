"""
Z16 Simulator — Instruction Encoder

The inverse of decoder.extract(): packs named field values into a
16-bit word using the same LAYOUTS table, plus one helper per format
that takes operands the way they are written in assembly
(registers by ABI name, signed displacements in bytes).

Used to build test images by hand:

    from z16sim.cpu import encoder as enc
    image = enc.assemble_words([
        enc.imm('li', 'a0', 5),
        enc.ecall(1),
        enc.ecall(3),
    ])
"""

import struct
from typing import Iterable

from .decoder import (
    LAYOUTS, OP_RR, OP_IMM, OP_BRANCH, OP_STORE, OP_LOAD, OP_JUMP, OP_UPPER, OP_SYS,
    RR_OPS, IMM_OPS, IMM_SHIFT_FUNCT3, SHIFT_MODES, BRANCH_OPS, STORE_OPS,
    LOAD_OPS, JUMP_OPS, UPPER_OPS,
)
from .regs import reg_index


class EncodeError(ValueError):
    pass


_RR_CODES = {name: key for key, name in RR_OPS.items()}
_IMM_CODES = {name: funct3 for funct3, name in IMM_OPS.items()}
_SHIFT_CODES = {name: mode for mode, name in SHIFT_MODES.items()}
_BRANCH_CODES = {name: funct3 for funct3, name in enumerate(BRANCH_OPS)}
_STORE_CODES = {name: funct3 for funct3, name in STORE_OPS.items()}
_LOAD_CODES = {name: funct3 for funct3, name in LOAD_OPS.items()}


def pack(opcode: int, **fields: int) -> int:
    """Place field values according to the opcode's layout.

    Omitted fields are zero. A value wider than its field raises
    EncodeError rather than being silently truncated.
    """
    layout = LAYOUTS[opcode]
    known = {name for name, _, _ in layout}
    extra = set(fields) - known
    if extra:
        raise EncodeError(f"fields {sorted(extra)} not in format {opcode}")
    word = opcode
    for name, shift, width in layout:
        value = fields.get(name, 0)
        if not 0 <= value < (1 << width):
            raise EncodeError(f"{name}={value} does not fit in {width} bits")
        word |= value << shift
    return word


def _signed_field(value: int, bits: int, what: str) -> int:
    lo, hi = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not lo <= value <= hi:
        raise EncodeError(f"{what} {value} outside [{lo}, {hi}]")
    return value & ((1 << bits) - 1)


def _even(disp: int, what: str):
    if disp & 1:
        raise EncodeError(f"{what} {disp} is not a multiple of 2")


# ══════════════════════════════════════════════
# Per-format helpers
# ══════════════════════════════════════════════

def rr(op: str, rd_rs1, rs2=0) -> int:
    funct4, funct3 = _RR_CODES[op]
    return pack(OP_RR, funct4=funct4, funct3=funct3,
                rs2=reg_index(rs2), rd_rs1=reg_index(rd_rs1))


def imm(op: str, rd_rs1, value: int) -> int:
    """I-type. Shifts take an amount 0..15, sltui takes 0..127,
    everything else a signed 7-bit value."""
    rd_rs1 = reg_index(rd_rs1)
    if op in _SHIFT_CODES:
        if not 0 <= value <= 15:
            raise EncodeError(f"shift amount {value} outside [0, 15]")
        imm7 = (_SHIFT_CODES[op] << 4) | value
        return pack(OP_IMM, imm7=imm7, rd_rs1=rd_rs1, funct3=IMM_SHIFT_FUNCT3)
    if op == 'sltui':
        if not 0 <= value <= 0x7F:
            raise EncodeError(f"sltui immediate {value} outside [0, 127]")
        imm7 = value
    else:
        imm7 = _signed_field(value, 7, 'immediate')
    return pack(OP_IMM, imm7=imm7, rd_rs1=rd_rs1, funct3=_IMM_CODES[op])


def branch(op: str, rs1, rs2, disp: int) -> int:
    """disp is the signed byte displacement, even, in [-16, 14]."""
    _even(disp, 'branch displacement')
    offset = _signed_field(disp, 5, 'branch displacement') >> 1
    return pack(OP_BRANCH, offset=offset, rs2=reg_index(rs2),
                rd_rs1=reg_index(rs1), funct3=_BRANCH_CODES[op])


def store(op: str, src, offset: int, base) -> int:
    """`sw src, offset(base)`"""
    return pack(OP_STORE, imm4=_signed_field(offset, 4, 'offset'),
                rs2=reg_index(base), rd_rs1=reg_index(src), funct3=_STORE_CODES[op])


def load(op: str, rd, offset: int, base) -> int:
    """`lw rd, offset(base)`"""
    return pack(OP_LOAD, imm4=_signed_field(offset, 4, 'offset'),
                rs2=reg_index(base), rd=reg_index(rd), funct3=_LOAD_CODES[op])


def jump(op: str, disp: int, rd=0) -> int:
    """disp is the signed byte displacement, even, in [-512, 510]."""
    _even(disp, 'jump displacement')
    value = _signed_field(disp, 10, 'jump displacement')
    return pack(OP_JUMP, link=JUMP_OPS.index(op), imm_hi=(value >> 4) & 0x3F,
                rd=reg_index(rd), imm_lo=(value >> 1) & 0x7)


def upper(op: str, rd, value: int) -> int:
    """value is the 16-bit result pattern; its low 7 bits must be zero."""
    if not 0 <= value <= 0xFFFF or value & 0x7F:
        raise EncodeError(f"upper immediate 0x{value:X} needs bits [6:0] clear")
    return pack(OP_UPPER, link=UPPER_OPS.index(op), imm_hi=(value >> 10) & 0x3F,
                rd=reg_index(rd), imm_lo=(value >> 7) & 0x7)


def ecall(svc: int) -> int:
    return pack(OP_SYS, svc=svc)


# ══════════════════════════════════════════════
# Images
# ══════════════════════════════════════════════

def assemble_words(words: Iterable[int]) -> bytes:
    """Little-endian byte image of a word sequence."""
    words = list(words)
    return struct.pack(f"<{len(words)}H", *words)
