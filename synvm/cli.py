#!/usr/bin/env python3
"""
SYNVM CLI — run, debug and disassemble 15-bit word bytecode images
Commands: run · disasm · version
"""

import argparse
import logging
import sys
from pathlib import Path

from synvm import __version__

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def load_program(path: str) -> bytes:
    """Read a program image; unreadable files are fatal."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        print(f"❌ Cannot read {path}: {e.strerror or e}", file=sys.stderr)
        sys.exit(1)


def _load_state(path: str):
    from synvm.machine import MachineState, VMError
    try:
        return MachineState.from_bytes(load_program(path))
    except VMError as e:
        print(f"❌ Load error: {e}", file=sys.stderr)
        sys.exit(1)


# ---------------------------------------------------------------------------
# sub-command handlers
# ---------------------------------------------------------------------------

def cmd_run(args):
    """synvm run program.bin [--debug] [--trace] [--max-steps N] [-v]"""
    from synvm.console import Console
    from synvm.debugger import Debugger
    from synvm.machine import VMError
    from synvm.vm import Engine

    state   = _load_state(args.input)
    console = Console()
    steps   = None
    state.call_trace = args.call_trace
    try:
        if args.debug:
            engine = Engine(console, hooks=False, trace=args.trace)
            Debugger(engine).run(state)
        else:
            engine = Engine(console, trace=args.trace)
            steps = engine.run(state, max_steps=args.max_steps)
    except VMError as e:
        sys.stdout.flush()
        log.error("%s at pc=%d", type(e).__name__, state.pc)
        print(f"\n❌ Runtime error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        sys.stdout.flush()
    if args.verbose:
        if steps is not None:
            print(f"\n[VM] steps={steps} halted={state.halted}", file=sys.stderr)
        print(f"[VM] pc={state.pc} stack depth={len(state.stack)}", file=sys.stderr)


def cmd_disasm(args):
    """synvm disasm program.bin [--start ADDR] [--count N] [--all]"""
    from synvm.disasm import listing
    state = _load_state(args.input)
    print(listing(state.memory, args.start,
                  stop_at_return=not args.all, limit=args.count))


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="synvm",
        description=(
            f"SYNVM {__version__} — 15-bit word virtual machine and debugger\n\n"
            "  run        Run a program image (optionally under the debugger)\n"
            "  disasm     Disassemble a program image\n"
            "  version    Show version info\n"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"SYNVM {__version__}"
    )

    sub = parser.add_subparsers(dest="cmd", required=True)

    # ── run ────────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program image")
    p_run.add_argument("input", help="program image (little-endian 16-bit words)")
    p_run.add_argument("-d", "--debug", action="store_true",
                       help="Pause before each instruction (commands: w, d, cf, <enter>)")
    p_run.add_argument("--trace", action="store_true",
                       help="Write every executed instruction to stderr")
    p_run.add_argument("--call-trace", action="store_true",
                       help="Start with call tracing on (same as typing %%)")
    p_run.add_argument("--max-steps", type=int, default=None, metavar="N")
    p_run.add_argument("-v", "--verbose", action="store_true",
                       help="Debug logging and a final machine summary")
    p_run.set_defaults(func=cmd_run)

    # ── disasm ─────────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a program image")
    p_dis.add_argument("input", help="program image")
    p_dis.add_argument("--start", type=int, default=0, metavar="ADDR")
    p_dis.add_argument("--count", type=int, default=None, metavar="N",
                       help="Stop after N instructions")
    p_dis.add_argument("--all", action="store_true",
                       help="Do not stop at halt/ret")
    p_dis.add_argument("-v", "--verbose", action="store_true")
    p_dis.set_defaults(func=cmd_disasm)

    # ── version ────────────────────────────────────────────────────────────
    p_ver = sub.add_parser("version", help="Show version info")
    p_ver.set_defaults(func=lambda _: print(f"SYNVM {__version__}"))

    # ── dispatch ───────────────────────────────────────────────────────────
    args = parser.parse_args(argv)
    if args.cmd == "run" and args.debug and args.max_steps is not None:
        parser.error("--max-steps cannot be combined with --debug")
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(level)
    args.func(args)


if __name__ == "__main__":
    main()
