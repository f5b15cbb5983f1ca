"""Line-driven debugger layered over the execution engine.

Before every instruction a break predicate decides whether to pause.  The
predicate is one of two modes:

  Default            pause before anything that is not `out`, so runs of
                     output characters stream through uninterrupted
  RunToReturn(depth) entered with `cf`; counts calls and returns and pauses
                     on the first instruction after the current frame has
                     returned to its caller

While paused, one command line is read:

  w      where: pc, stack, registers            (stay paused)
  d      disassemble from pc to halt/ret         (stay paused)
  cf     continue until the current frame returns
  <any>  execute one instruction
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional, TextIO, Tuple, Union

from synvm.disasm import listing
from synvm.isa import OPCODES
from synvm.machine import MachineState
from synvm.vm import Engine

log = logging.getLogger(__name__)


# ── Break predicate ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Default:
    pass


@dataclass(frozen=True)
class RunToReturn:
    depth: int = 1


BreakMode = Union[Default, RunToReturn]

DEFAULT = Default()


def should_break(mode: BreakMode, opcode: int) -> Tuple[bool, BreakMode]:
    """Return ``(pause, next_mode)`` for the instruction about to execute."""
    if isinstance(mode, RunToReturn):
        if mode.depth == 0:
            return True, DEFAULT
        depth = mode.depth
        if opcode == OPCODES["call"]:
            depth += 1
        elif opcode == OPCODES["ret"]:
            depth -= 1
        return False, RunToReturn(depth)
    return opcode != OPCODES["out"], DEFAULT


# ── Controller ─────────────────────────────────────────────────────────────────

class Debugger:
    def __init__(self, engine: Engine, commands: Optional[TextIO] = None,
                 out: Optional[TextIO] = None):
        self.engine   = engine
        self.commands = commands if commands is not None else sys.stdin
        self.out      = out if out is not None else sys.stdout
        self.mode: BreakMode = DEFAULT

    def read_command(self) -> str:
        self.out.flush()
        line = self.commands.readline()
        return line.rstrip("\r\n")

    def run(self, state: MachineState) -> None:
        while not state.halted:
            pause, self.mode = should_break(self.mode, state.read(state.pc))
            if pause:
                cmd = self.read_command()
                if cmd == "w":
                    self.where(state)
                    continue
                if cmd == "d":
                    print(listing(state.memory, state.pc), file=self.out)
                    continue
                if cmd == "cf":
                    log.debug("run to return from pc=%d", state.pc)
                    self.mode = RunToReturn()
                    continue
            self.engine.step(state)

    def where(self, state: MachineState) -> None:
        stack = " ".join(str(v) for v in state.stack)
        regs  = " ".join(str(v) for v in state.registers)
        print(f"pc: {state.pc}", file=self.out)
        print(f"stack: [{stack}]", file=self.out)
        print(f"regs: [{regs}]", file=self.out)
