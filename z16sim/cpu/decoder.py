"""
Z16 Simulator — Instruction Decoder

This module is the one place that knows where every field sits in a
16-bit Z16 word and which function-code combinations are defined.
Both the disassembler and the execution engine consume its output, so
they cannot disagree about what a bit pattern means.

The low 3 bits (opcode) select one of eight formats:

  0  RR      funct4[15:12] rs2[11:9] rd_rs1[8:6] funct3[5:3]
  1  IMM     imm7[15:9]              rd_rs1[8:6] funct3[5:3]
  2  BRANCH  offset[15:12] rs2[11:9] rs1[8:6]    funct3[5:3]
  3  STORE   imm4[15:12]   rs2[11:9] rs1[8:6]    funct3[5:3]
  4  LOAD    imm4[15:12]   rs2[11:9] rd[8:6]     funct3[5:3]
  5  JUMP    link[15] imm_hi[14:9]   rd[8:6]     imm_lo[5:3]
  6  UPPER   link[15] imm_hi[14:9]   rd[8:6]     imm_lo[5:3]
  7  SYS     svc[15:6]                           reserved[5:3]

Decoding is total: every word yields an Instruction. A function-code
combination with no defined operation decodes with op=None; deciding
what to do about that is the executor's job, not the decoder's.
"""

from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, Optional, Tuple

from .alu import to_signed


# ──────────────────────────────────────────────
# Opcode classes
# ──────────────────────────────────────────────

OP_RR     = 0x0
OP_IMM    = 0x1
OP_BRANCH = 0x2
OP_STORE  = 0x3
OP_LOAD   = 0x4
OP_JUMP   = 0x5
OP_UPPER  = 0x6
OP_SYS    = 0x7


# ──────────────────────────────────────────────
# Field layouts: (name, shift, width), high to low
# ──────────────────────────────────────────────

_JU_LAYOUT = (('link', 15, 1), ('imm_hi', 9, 6), ('rd', 6, 3), ('imm_lo', 3, 3))

LAYOUTS: Dict[int, Tuple[Tuple[str, int, int], ...]] = {
    OP_RR:     (('funct4', 12, 4), ('rs2', 9, 3), ('rd_rs1', 6, 3), ('funct3', 3, 3)),
    OP_IMM:    (('imm7', 9, 7), ('rd_rs1', 6, 3), ('funct3', 3, 3)),
    OP_BRANCH: (('offset', 12, 4), ('rs2', 9, 3), ('rd_rs1', 6, 3), ('funct3', 3, 3)),
    OP_STORE:  (('imm4', 12, 4), ('rs2', 9, 3), ('rd_rs1', 6, 3), ('funct3', 3, 3)),
    OP_LOAD:   (('imm4', 12, 4), ('rs2', 9, 3), ('rd', 6, 3), ('funct3', 3, 3)),
    OP_JUMP:   _JU_LAYOUT,
    OP_UPPER:  _JU_LAYOUT,
    OP_SYS:    (('svc', 6, 10), ('reserved', 3, 3)),
}


def extract(word: int, opcode: Optional[int] = None) -> Dict[str, int]:
    """Split a word into the named fields of its format."""
    if opcode is None:
        opcode = word & 0x7
    return {name: (word >> shift) & ((1 << width) - 1)
            for name, shift, width in LAYOUTS[opcode]}


# ──────────────────────────────────────────────
# Function-code tables
# ──────────────────────────────────────────────

# (funct4, funct3) -> mnemonic
RR_OPS = {
    (0x0, 0x0): 'add',
    (0x1, 0x0): 'sub',
    (0x2, 0x1): 'slt',
    (0x3, 0x2): 'sltu',
    (0x4, 0x3): 'sll',
    (0x5, 0x3): 'srl',
    (0x6, 0x3): 'sra',
    (0x7, 0x4): 'or',
    (0x8, 0x5): 'and',
    (0x9, 0x6): 'xor',
    (0xA, 0x7): 'mv',
    (0xB, 0x0): 'jr',
    (0xC, 0x0): 'jalr',
}

IMM_SHIFT_FUNCT3 = 0x3

# funct3 -> mnemonic (funct3=3 is resolved through SHIFT_MODES)
IMM_OPS = {
    0x0: 'addi',
    0x1: 'slti',
    0x2: 'sltui',
    0x4: 'ori',
    0x5: 'andi',
    0x6: 'xori',
    0x7: 'li',
}

# imm7[6:4] -> shift mnemonic
SHIFT_MODES = {
    0x1: 'slli',
    0x2: 'srli',
    0x4: 'srai',
}

BRANCH_OPS = ('beq', 'bne', 'bz', 'bnz', 'blt', 'bge', 'bltu', 'bgeu')

STORE_OPS = {0x0: 'sb', 0x1: 'sw'}
LOAD_OPS = {0x0: 'lb', 0x1: 'lw', 0x4: 'lbu'}

JUMP_OPS = ('j', 'jal')
UPPER_OPS = ('lui', 'auipc')

# System services
SVC_PRINT_INT = 1
SVC_EXIT = 3
SVC_PRINT_STR = 5

SERVICES = {
    SVC_PRINT_INT: 'print_int',
    SVC_EXIT:      'exit',
    SVC_PRINT_STR: 'print_str',
}

# Operations that set PC themselves (no default PC+2)
CONTROL_FLOW = frozenset(('jr', 'jalr', 'j', 'jal') + BRANCH_OPS)


# ══════════════════════════════════════════════
# Decoded instruction variants
# ══════════════════════════════════════════════

@dataclass(frozen=True)
class Instruction:
    """A decoded Z16 word. `op` is None for undefined combinations."""
    raw: int
    op: Optional[str]

    FORMAT: ClassVar[str] = '?'

    @property
    def opcode(self) -> int:
        return self.raw & 0x7

    @property
    def known(self) -> bool:
        return self.op is not None


@dataclass(frozen=True)
class RegReg(Instruction):
    funct4: int
    rs2: int
    rd_rs1: int
    funct3: int

    FORMAT: ClassVar[str] = 'RR'


@dataclass(frozen=True)
class Imm(Instruction):
    """I-type. `imm` is the operand as the operation uses it:
    sign-extended for addi/slti/ori/andi/xori/li, zero-extended for
    sltui, the 4-bit shift amount for slli/srli/srai, and the raw imm7
    when the shift mode is undefined.
    """
    imm7: int
    rd_rs1: int
    funct3: int
    imm: int

    FORMAT: ClassVar[str] = 'IMM'

    @property
    def shift_mode(self) -> int:
        return (self.imm7 >> 4) & 0x7


@dataclass(frozen=True)
class Branch(Instruction):
    """`disp` is the signed byte displacement (always even)."""
    offset: int
    rs2: int
    rd_rs1: int
    funct3: int
    disp: int

    FORMAT: ClassVar[str] = 'BRANCH'


@dataclass(frozen=True)
class Store(Instruction):
    """rd_rs1 supplies the value, rs2 the base address."""
    imm4: int
    rs2: int
    rd_rs1: int
    funct3: int
    offset: int

    FORMAT: ClassVar[str] = 'STORE'


@dataclass(frozen=True)
class Load(Instruction):
    imm4: int
    rs2: int
    rd: int
    funct3: int
    offset: int

    FORMAT: ClassVar[str] = 'LOAD'


@dataclass(frozen=True)
class Jump(Instruction):
    """`imm` is the signed, PC-relative byte displacement (bit 0 = 0)."""
    link: int
    imm_hi: int
    rd: int
    imm_lo: int
    imm: int

    FORMAT: ClassVar[str] = 'JUMP'


@dataclass(frozen=True)
class Upper(Instruction):
    """`imm` is the 16-bit value with imm_hi in [15:10], imm_lo in [9:7]."""
    link: int
    imm_hi: int
    rd: int
    imm_lo: int
    imm: int

    FORMAT: ClassVar[str] = 'UPPER'


@dataclass(frozen=True)
class System(Instruction):
    svc: int
    reserved: int

    FORMAT: ClassVar[str] = 'SYS'

    @property
    def service(self) -> Optional[str]:
        return SERVICES.get(self.svc)


# ══════════════════════════════════════════════
# Per-format decoders
# ══════════════════════════════════════════════

def _decode_rr(word: int, f: Dict[str, int]) -> RegReg:
    op = RR_OPS.get((f['funct4'], f['funct3']))
    return RegReg(word, op, **f)


def _decode_imm(word: int, f: Dict[str, int]) -> Imm:
    imm7, funct3 = f['imm7'], f['funct3']
    if funct3 == IMM_SHIFT_FUNCT3:
        op = SHIFT_MODES.get((imm7 >> 4) & 0x7)
        imm = imm7 & 0xF if op else imm7
    else:
        op = IMM_OPS[funct3]
        imm = imm7 if op == 'sltui' else to_signed(imm7, 7)
    return Imm(word, op, imm=imm, **f)


def _decode_branch(word: int, f: Dict[str, int]) -> Branch:
    # offset holds disp[4:1]; disp[0] is always 0
    disp = to_signed(f['offset'] << 1, 5)
    return Branch(word, BRANCH_OPS[f['funct3']], disp=disp, **f)


def _decode_store(word: int, f: Dict[str, int]) -> Store:
    return Store(word, STORE_OPS.get(f['funct3']), offset=to_signed(f['imm4'], 4), **f)


def _decode_load(word: int, f: Dict[str, int]) -> Load:
    return Load(word, LOAD_OPS.get(f['funct3']), offset=to_signed(f['imm4'], 4), **f)


def _decode_jump(word: int, f: Dict[str, int]) -> Jump:
    imm = to_signed((f['imm_hi'] << 4) | (f['imm_lo'] << 1), 10)
    return Jump(word, JUMP_OPS[f['link']], imm=imm, **f)


def _decode_upper(word: int, f: Dict[str, int]) -> Upper:
    imm = (f['imm_hi'] << 10) | (f['imm_lo'] << 7)
    return Upper(word, UPPER_OPS[f['link']], imm=imm, **f)


def _decode_sys(word: int, f: Dict[str, int]) -> System:
    op = 'ecall' if f['reserved'] == 0 else None
    return System(word, op, **f)


_DECODERS: Dict[int, Callable[[int, Dict[str, int]], Instruction]] = {
    OP_RR:     _decode_rr,
    OP_IMM:    _decode_imm,
    OP_BRANCH: _decode_branch,
    OP_STORE:  _decode_store,
    OP_LOAD:   _decode_load,
    OP_JUMP:   _decode_jump,
    OP_UPPER:  _decode_upper,
    OP_SYS:    _decode_sys,
}


def decode(word: int) -> Instruction:
    """Decode one 16-bit word into its tagged Instruction variant."""
    word &= 0xFFFF
    opcode = word & 0x7
    return _DECODERS[opcode](word, extract(word, opcode))
