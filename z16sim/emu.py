"""
Z16 Simulator — Main Emulator Class

Integrates:
  - Register file (cpu/regs.py)
  - Flat memory (mem/memory.py)
  - Decoder + disassembler (cpu/decoder.py, cpu/disasm.py)
  - 16-bit ALU helpers (cpu/alu.py)
  - Console output for system calls (periph/console.py)

Execution model, once per step:
  1. Stop if the PC cannot hold a whole instruction (EXHAUSTED)
  2. Fetch the little-endian word at PC
  3. Decode it into a tagged Instruction
  4. Disassemble it and hand (pc, text) to the trace sink
  5. Execute: update registers / memory / PC
  6. Stop on svc 3 (HALT), on the step limit (TIMEOUT) or on an
     unimplemented operation under the "halt" policy (ILLEGAL)

The machine has two states, RUNNING and HALTED. HALTED is terminal:
step() keeps returning the same StopReason without fetching.

Addressing faults are fatal. They propagate out of step()/run() as
AddressingFault (or UnterminatedString) with .pc set to the address of
the offending instruction, after the machine has moved to HALTED.

PC arithmetic: branch/jump targets and link values wrap modulo 2^16.
The sequential PC+2 advance does not, so executing the last word of
memory leaves PC == capacity and the next step reports EXHAUSTED.
"""

import logging
import operator
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .config import SimConfig, POLICY_HALT
from .cpu import alu
from .cpu.decoder import (
    Instruction, RegReg, Imm, Branch, Store, Load, Jump, Upper, System,
    CONTROL_FLOW, SVC_PRINT_INT, SVC_EXIT, SVC_PRINT_STR, decode,
)
from .cpu.disasm import disassemble, branch_target
from .cpu.regs import Registers
from .errors import AddressingFault
from .loader import load_image
from .mem.memory import Memory, wrap
from .periph.console import BufferedConsole

log = logging.getLogger(__name__)

TraceSink = Callable[[int, str], None]


class StopReason(Enum):
    HALT = 'HALT'            # svc 3
    EXHAUSTED = 'EXHAUSTED'  # PC ran past the end of memory
    TIMEOUT = 'TIMEOUT'      # max_steps reached
    ILLEGAL = 'ILLEGAL'      # unimplemented operation, "halt" policy
    FAULT = 'FAULT'          # addressing fault (exception raised too)


class RunState(Enum):
    RUNNING = 'RUNNING'
    HALTED = 'HALTED'


# ══════════════════════════════════════════════
# Operation tables: (rd_rs1 value, operand) -> result
# ══════════════════════════════════════════════

_RR_ALU = {
    'add':  alu.add16,
    'sub':  alu.sub16,
    'slt':  alu.lt_signed,
    'sltu': alu.lt_unsigned,
    'sll':  alu.sll16,
    'srl':  alu.srl16,
    'sra':  alu.sra16,
    'or':   operator.or_,
    'and':  operator.and_,
    'xor':  operator.xor,
    'mv':   lambda a, b: b,
}

_IMM_ALU = {
    'addi':  alu.add16,
    'slti':  alu.lt_signed,
    'sltui': alu.lt_unsigned,
    'ori':   operator.or_,
    'andi':  operator.and_,
    'xori':  operator.xor,
    'li':    lambda a, b: b,
    'slli':  alu.sll16,
    'srli':  alu.srl16,
    'srai':  alu.sra16,
}

_BRANCH_COND = {
    'beq':  lambda a, b: a == b,
    'bne':  lambda a, b: a != b,
    'bz':   lambda a, b: a == 0,
    'bnz':  lambda a, b: a != 0,
    'blt':  lambda a, b: alu.to_signed(a) < alu.to_signed(b),
    'bge':  lambda a, b: alu.to_signed(a) >= alu.to_signed(b),
    'bltu': lambda a, b: a < b,
    'bgeu': lambda a, b: a >= b,
}


class Z16Emulator:
    """Z16 instruction-set simulator.

    Usage:
        emu = Z16Emulator()
        emu.load_binary('hello.bin')
        reason = emu.run()
        print(emu.console.output)
        for pc, text in emu.trace_output:
            print(f"0x{pc:04X}: {text}")
    """

    def __init__(self, config: Optional[SimConfig] = None,
                 trace_sink: Optional[TraceSink] = None,
                 console=None):
        self.config = config or SimConfig()
        self.regs = Registers()
        self.mem = Memory(self.config.mem_size)
        self.console = console if console is not None else BufferedConsole()

        # Trace: either forwarded to the sink or collected here
        self._trace_sink = trace_sink
        self.trace_output: List[Tuple[int, str]] = []

        self.state = RunState.RUNNING
        self.stop_reason: Optional[StopReason] = None
        self.steps = 0
        self.unimplemented = 0

        self._dispatch = {
            RegReg: self._exec_rr,
            Imm:    self._exec_imm,
            Branch: self._exec_branch,
            Store:  self._exec_store,
            Load:   self._exec_load,
            Jump:   self._exec_jump,
            Upper:  self._exec_upper,
            System: self._exec_sys,
        }

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_binary(self, path_or_data, base_addr: int = 0) -> int:
        """Load a .bin file or raw bytes. Returns the byte count."""
        if isinstance(path_or_data, (str, Path)):
            return load_image(self.mem, path_or_data, base_addr)
        return self.mem.load_binary(bytes(path_or_data), base_addr)

    def reset(self):
        """Zero registers and PC and return to RUNNING. Memory is kept;
        trace and buffered console output are discarded."""
        self.regs.reset()
        if hasattr(self.console, 'clear'):
            self.console.clear()
        self.state = RunState.RUNNING
        self.stop_reason = None
        self.steps = 0
        self.unimplemented = 0
        self.trace_output.clear()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def halted(self) -> bool:
        return self.state is RunState.HALTED

    def _halt(self, reason: StopReason) -> StopReason:
        self.state = RunState.HALTED
        self.stop_reason = reason
        log.info("Stopped: %s at PC=0x%04X after %d steps",
                 reason.value, self.regs.PC, self.steps)
        return reason

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason once halted, else None."""
        if self.halted:
            return self.stop_reason

        max_steps = self.config.max_steps
        if max_steps is not None and self.steps >= max_steps:
            return self._halt(StopReason.TIMEOUT)

        pc = self.regs.PC
        if pc + 1 >= self.mem.size:
            return self._halt(StopReason.EXHAUSTED)

        instr = decode(self.mem.fetch16(pc))
        if self.config.trace:
            self._emit_trace(pc, disassemble(instr, pc))

        try:
            reason = self._execute(instr, pc)
        except AddressingFault as fault:
            self._halt(StopReason.FAULT)
            raise fault.at(pc)

        self.steps += 1
        if log.isEnabledFor(logging.DEBUG):
            log.debug("%04X %-5s %s", pc, instr.op or '?', self.regs.display())
        if reason is not None:
            return self._halt(reason)
        return None

    def run(self) -> StopReason:
        """Step until the machine halts."""
        while True:
            reason = self.step()
            if reason is not None:
                return reason

    def _emit_trace(self, pc: int, text: str):
        if self._trace_sink is not None:
            self._trace_sink(pc, text)
        else:
            self.trace_output.append((pc, text))

    # ══════════════════════════════════════════════
    # Instruction execution
    # ══════════════════════════════════════════════

    def _execute(self, instr: Instruction, pc: int) -> Optional[StopReason]:
        """Apply one instruction. Non-control-flow ops advance PC by 2."""
        if not instr.known:
            return self._unimplemented(instr, pc, "undefined function code")
        reason = self._dispatch[type(instr)](instr, pc)
        if reason is None and instr.op not in CONTROL_FLOW:
            self.regs.PC = pc + 2
        return reason

    def _unimplemented(self, instr: Instruction, pc: int, what: str) -> Optional[StopReason]:
        """Apply the configured policy to an operation with no semantics."""
        self.unimplemented += 1
        log.warning("Unimplemented %s at 0x%04X: %s (0x%04X)",
                    instr.FORMAT, pc, what, instr.raw)
        if self.config.on_unimplemented == POLICY_HALT:
            return StopReason.ILLEGAL
        self.regs.PC = pc + 2
        return None

    # Handler signature: handler(instr, pc) -> Optional[StopReason]

    def _exec_rr(self, i: RegReg, pc: int):
        x = self.regs.x
        if i.op == 'jr':
            self.regs.PC = x[i.rd_rs1] & 0xFFFE
        elif i.op == 'jalr':
            target = x[i.rs2] & 0xFFFE
            x[i.rd_rs1] = wrap(pc + 2)
            self.regs.PC = target
        else:
            x[i.rd_rs1] = _RR_ALU[i.op](x[i.rd_rs1], x[i.rs2]) & 0xFFFF

    def _exec_imm(self, i: Imm, pc: int):
        x = self.regs.x
        x[i.rd_rs1] = _IMM_ALU[i.op](x[i.rd_rs1], i.imm & 0xFFFF) & 0xFFFF

    def _exec_branch(self, i: Branch, pc: int):
        x = self.regs.x
        if _BRANCH_COND[i.op](x[i.rd_rs1], x[i.rs2]):
            self.regs.PC = branch_target(i, pc)
        else:
            self.regs.PC = pc + 2

    def _exec_store(self, i: Store, pc: int):
        x = self.regs.x
        addr = wrap(x[i.rs2] + i.offset)
        if i.op == 'sb':
            self.mem.write8(addr, x[i.rd_rs1])
        else:  # sw
            self.mem.write16(addr, x[i.rd_rs1])

    def _exec_load(self, i: Load, pc: int):
        x = self.regs.x
        addr = wrap(x[i.rs2] + i.offset)
        if i.op == 'lb':
            x[i.rd] = alu.sign_extend(self.mem.read8(addr), 8)
        elif i.op == 'lbu':
            x[i.rd] = self.mem.read8(addr)
        else:  # lw
            x[i.rd] = self.mem.read16(addr)

    def _exec_jump(self, i: Jump, pc: int):
        if i.op == 'jal':
            self.regs.x[i.rd] = wrap(pc + 2)
        self.regs.PC = branch_target(i, pc)

    def _exec_upper(self, i: Upper, pc: int):
        if i.op == 'lui':
            self.regs.x[i.rd] = i.imm
        else:  # auipc
            self.regs.x[i.rd] = wrap(pc + i.imm)

    def _exec_sys(self, i: System, pc: int) -> Optional[StopReason]:
        a0 = self.regs['a0']
        if i.svc == SVC_PRINT_INT:
            self.console.write(str(alu.to_signed(a0)))
        elif i.svc == SVC_PRINT_STR:
            self.console.write(self.mem.read_cstring(a0).decode('latin-1'))
        elif i.svc == SVC_EXIT:
            return StopReason.HALT
        else:
            return self._unimplemented(i, pc, f"service {i.svc}")
        return None
