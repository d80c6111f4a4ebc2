#!/usr/bin/env python3
"""
z16sim — Z16 Instruction Set Simulator CLI

Usage:
    python z16run.py <machine_code.bin> [--no-trace] [--max-steps N]
                     [--on-unimplemented continue|halt] [--dump-regs]
                     [--dump-mem START:LEN] [--log-file PATH] [-v]

The image is loaded at address 0x0000 and execution starts there. Every
fetched instruction is printed as

    0x0000: li a0, 5

followed by whatever the program prints through ecall 1 / ecall 5.

Exit status:
    0  program stopped (ecall 3, end of memory, step limit, illegal op)
    1  image could not be loaded
    2  addressing fault (load/store/string outside memory)
"""

import argparse
import logging
import sys

from z16sim import __version__
from z16sim.config import SimConfig, POLICIES, POLICY_CONTINUE
from z16sim.emu import Z16Emulator
from z16sim.errors import AddressingFault, LoaderFault
from z16sim.log_setup import setup_logging
from z16sim.mem.memory import MEM_SIZE
from z16sim.periph.console import StreamConsole

log = logging.getLogger("z16sim.cli")

EXIT_OK = 0
EXIT_LOADER = 1
EXIT_FAULT = 2


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...) or decimal."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    return int(value)


def parse_range_arg(value: str):
    """Parse START:LEN for --dump-mem (either part hex or decimal)."""
    start, _, length = value.partition(":")
    try:
        start = parse_int_arg(start)
        length = parse_int_arg(length) if length else 256
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START:LEN, got {value!r}") from None
    if not 0 <= start < MEM_SIZE:
        raise argparse.ArgumentTypeError(f"start 0x{start:X} outside memory")
    if length < 0:
        raise argparse.ArgumentTypeError(f"length {length} is negative")
    return start, length


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="z16sim",
        description="Z16 instruction set simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Services: ecall 1 = print int (a0), ecall 5 = print string (a0), ecall 3 = exit",
    )
    parser.add_argument("image", help="Z16 machine code file (.bin)")
    parser.add_argument("--no-trace", action="store_true",
                        help="Do not print the disassembly trace")
    parser.add_argument("--max-steps", type=parse_int_arg, default=None,
                        help="Stop after N instructions (default: no limit)")
    parser.add_argument("--on-unimplemented", choices=POLICIES, default=POLICY_CONTINUE,
                        help="Skip undefined operations or halt on them (default: continue)")
    parser.add_argument("--dump-regs", action="store_true",
                        help="Print the register file when the run ends")
    parser.add_argument("--dump-mem", type=parse_range_arg, default=None,
                        metavar="START:LEN", help="Hex dump a memory range when the run ends")
    parser.add_argument("--log-file", default=None,
                        help="Write a DEBUG log to this file")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="More log output on stderr (-v info, -vv debug)")
    parser.add_argument("--version", action="version",
                        version=f"z16sim {__version__}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    setup_logging(level=level, log_file=args.log_file)

    try:
        config = SimConfig(max_steps=args.max_steps,
                           on_unimplemented=args.on_unimplemented,
                           trace=not args.no_trace)
    except ValueError as e:
        parser.error(str(e))

    def trace(pc: int, text: str):
        print(f"0x{pc:04X}: {text}", flush=True)

    emu = Z16Emulator(config=config, trace_sink=trace, console=StreamConsole())

    try:
        count = emu.load_binary(args.image)
    except LoaderFault as e:
        log.error("Error opening binary file: %s", e)
        return EXIT_LOADER
    print(f"Loaded {count} bytes into memory")

    status = EXIT_OK
    try:
        reason = emu.run()
        log.info("Stop reason: %s (%d instructions, %d unimplemented)",
                 reason.value, emu.steps, emu.unimplemented)
    except AddressingFault as fault:
        log.error("Fault at 0x%04X: %s", fault.pc, fault)
        status = EXIT_FAULT

    if args.dump_regs:
        print(emu.regs.display())
    if args.dump_mem is not None:
        start, length = args.dump_mem
        print(emu.mem.hexdump(start, length))

    return status


if __name__ == "__main__":
    sys.exit(main())
