"""
Z16 Simulator — Run Configuration

One SimConfig per emulator instance. Defaults reproduce a plain run:
64 KiB memory, no step limit, unimplemented operations skipped with a
warning, trace text produced for every fetched instruction.
"""

from dataclasses import dataclass
from typing import Optional

from .mem.memory import MEM_SIZE

# Unimplemented-operation policies
POLICY_CONTINUE = "continue"
POLICY_HALT = "halt"
POLICIES = (POLICY_CONTINUE, POLICY_HALT)


@dataclass
class SimConfig:
    mem_size: int = MEM_SIZE
    max_steps: Optional[int] = None     # None = run until halt/exhaustion
    on_unimplemented: str = POLICY_CONTINUE
    trace: bool = True

    def __post_init__(self):
        if self.on_unimplemented not in POLICIES:
            raise ValueError(
                f"on_unimplemented must be one of {POLICIES}, got {self.on_unimplemented!r}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")
