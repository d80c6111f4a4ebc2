"""
Z16 Simulator — Disassembler

Renders a decoded instruction as assembly text. Pure: no state is read
or written besides the arguments.

Everything is keyed on Instruction.op as resolved by the decoder, so the
text always names the operation the executor will perform. Undefined
function codes render as an explicit "unknown ..." marker.

Operand conventions:
  add t0, ra          RR (rd_rs1, rs2)
  addi t0, -3         signed immediate (sltui: unsigned, shifts: amount)
  beq t0, ra, -4      signed byte displacement relative to the branch
  sw t0, -2(sp)       signed offset + base register
  jal ra, 12          signed byte displacement
  lui t0, 1024        16-bit value, unsigned
  ecall 3
"""

from typing import Optional, Union

from .decoder import (
    Instruction, RegReg, Imm, Branch, Store, Load, Jump, Upper, System,
    SERVICES, decode,
)
from .regs import reg_name


def _unknown(instr: Instruction, detail: str) -> str:
    return f"unknown {instr.FORMAT.lower()} {detail} (0x{instr.raw:04X})"


def _fmt_rr(i: RegReg, pc: Optional[int]) -> str:
    if i.op is None:
        return _unknown(i, f"funct4=0x{i.funct4:X} funct3=0x{i.funct3:X}")
    if i.op == 'jr':
        return f"jr {reg_name(i.rd_rs1)}"
    return f"{i.op} {reg_name(i.rd_rs1)}, {reg_name(i.rs2)}"


def _fmt_imm(i: Imm, pc: Optional[int]) -> str:
    if i.op is None:
        return f"unknown shift {reg_name(i.rd_rs1)}, imm=0x{i.imm7:02X}"
    return f"{i.op} {reg_name(i.rd_rs1)}, {i.imm}"


def _target(pc: Optional[int], disp: int) -> str:
    if pc is None:
        return ""
    return f"  ; -> 0x{(pc + disp) & 0xFFFF:04X}"


def _fmt_branch(i: Branch, pc: Optional[int]) -> str:
    if i.op in ('bz', 'bnz'):
        text = f"{i.op} {reg_name(i.rd_rs1)}, {i.disp}"
    else:
        text = f"{i.op} {reg_name(i.rd_rs1)}, {reg_name(i.rs2)}, {i.disp}"
    return text + _target(pc, i.disp)


def _fmt_store(i: Store, pc: Optional[int]) -> str:
    if i.op is None:
        return _unknown(i, f"funct3=0x{i.funct3:X}")
    return f"{i.op} {reg_name(i.rd_rs1)}, {i.offset}({reg_name(i.rs2)})"


def _fmt_load(i: Load, pc: Optional[int]) -> str:
    if i.op is None:
        return _unknown(i, f"funct3=0x{i.funct3:X}")
    return f"{i.op} {reg_name(i.rd)}, {i.offset}({reg_name(i.rs2)})"


def _fmt_jump(i: Jump, pc: Optional[int]) -> str:
    if i.op == 'j':
        text = f"j {i.imm}"
    else:
        text = f"jal {reg_name(i.rd)}, {i.imm}"
    return text + _target(pc, i.imm)


def _fmt_upper(i: Upper, pc: Optional[int]) -> str:
    return f"{i.op} {reg_name(i.rd)}, {i.imm}"


def _fmt_sys(i: System, pc: Optional[int]) -> str:
    if i.op is None:
        return f"reserved ecall {i.svc}, bits[5:3]=0x{i.reserved:X} (0x{i.raw:04X})"
    if i.svc not in SERVICES:
        return f"ecall {i.svc}  ; unknown service"
    return f"ecall {i.svc}"


_FORMATTERS = {
    RegReg: _fmt_rr,
    Imm:    _fmt_imm,
    Branch: _fmt_branch,
    Store:  _fmt_store,
    Load:   _fmt_load,
    Jump:   _fmt_jump,
    Upper:  _fmt_upper,
    System: _fmt_sys,
}


def disassemble(instr: Union[Instruction, int], pc: Optional[int] = None) -> str:
    """Mnemonic text for a decoded instruction (or a raw word).

    With the fetch address `pc`, branches and jumps also carry their
    absolute target as a trailing comment.
    """
    if isinstance(instr, int):
        instr = decode(instr)
    return _FORMATTERS[type(instr)](instr, pc)


def branch_target(instr: Instruction, pc: int) -> int:
    """Absolute target of a branch or jump fetched at pc."""
    if isinstance(instr, Branch):
        return (pc + instr.disp) & 0xFFFF
    if isinstance(instr, Jump):
        return (pc + instr.imm) & 0xFFFF
    raise TypeError(f"{instr.FORMAT} instruction has no relative target")
