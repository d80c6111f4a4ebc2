"""
Z16 Simulator — 16-bit ALU Helpers

Every Z16 register holds an unsigned Word16. Python ints are unbounded,
so each operation here masks its result back to 16 bits; nothing
implementation-defined leaks through on overflow.

Signed views are produced on demand with to_signed(). Shift amounts are
taken modulo 16 (the low 4 bits of the shift operand).
"""

MASK16 = 0xFFFF
SIGN16 = 0x8000


def u16(value: int) -> int:
    """Mask to unsigned 16 bits."""
    return value & MASK16


def to_signed(value: int, bits: int = 16) -> int:
    """Interpret the low *bits* of value as two's complement."""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


def sign_extend(value: int, bits: int) -> int:
    """Sign-extend a *bits*-wide field to a Word16."""
    return u16(to_signed(value, bits))


def zero_extend(value: int, bits: int) -> int:
    return value & ((1 << bits) - 1)


# ══════════════════════════════════════════════
# Arithmetic
# ══════════════════════════════════════════════

def add16(a: int, b: int) -> int:
    return u16(a + b)


def sub16(a: int, b: int) -> int:
    return u16(a - b)


# ══════════════════════════════════════════════
# Shifts: amount is (n & 0xF)
# ══════════════════════════════════════════════

def sll16(a: int, n: int) -> int:
    return u16(a << (n & 0xF))


def srl16(a: int, n: int) -> int:
    return u16(a) >> (n & 0xF)


def sra16(a: int, n: int) -> int:
    """Arithmetic right shift: the sign bit is replicated."""
    return u16(to_signed(a) >> (n & 0xF))


# ══════════════════════════════════════════════
# Comparisons: return 0/1 like slt/sltu
# ══════════════════════════════════════════════

def lt_signed(a: int, b: int) -> int:
    return 1 if to_signed(a) < to_signed(b) else 0


def lt_unsigned(a: int, b: int) -> int:
    return 1 if u16(a) < u16(b) else 0
