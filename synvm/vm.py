"""SYNVM Virtual Machine — fetch/decode/execute over a MachineState.

The engine holds no machine state of its own: every call to ``step`` takes
the state object it should advance.  What the engine does own is the
console it talks to and two switches:

  hooks   recognise the operator escape characters on input
            %   toggle call tracing on the diagnostic stream
            +   set the privileged flag cell (register 7) to 1
          both swallow the next whitespace-delimited token and are never
          delivered to the program
  trace   write every executed instruction to the diagnostic stream
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from synvm.console import Console
from synvm.disasm import decode, format_instruction
from synvm.isa import MODULUS, OPCODES, OPERAND_COUNTS, PRIVILEGED_CELL, WORD_MASK
from synvm.machine import (
    ArithmeticFault, IllegalOpcode, InvalidAddress, MachineState,
)

log = logging.getLogger(__name__)

O = OPCODES


class StepResult(Enum):
    CONTINUE = "continue"
    HALTED   = "halted"


class Engine:
    def __init__(self, console: Optional[Console] = None, *,
                 hooks: bool = True, trace: bool = False):
        self.console = console if console is not None else Console()
        self.hooks   = hooks
        self.trace   = trace

    # ── Main loop ─────────────────────────────────────────────────────────────

    def run(self, state: MachineState, max_steps: Optional[int] = None) -> int:
        """Step until halted (or ``max_steps`` instructions); return steps taken."""
        steps = 0
        while not state.halted:
            if max_steps is not None and steps >= max_steps:
                log.debug("step limit %d reached at pc=%d", max_steps, state.pc)
                break
            self.step(state)
            steps += 1
        return steps

    # ── Single-step execution ─────────────────────────────────────────────────

    def step(self, state: MachineState) -> StepResult:
        if state.halted:
            return StepResult.HALTED

        pc     = state.pc
        opcode = state.read(pc)
        if opcode not in OPERAND_COUNTS:
            raise IllegalOpcode(pc, opcode)
        count = OPERAND_COUNTS[opcode]
        args  = state.memory[pc + 1:pc + 1 + count]
        if len(args) < count:
            raise InvalidAddress(f"operands of mem[{pc}] run past the address space")

        if self.trace:
            self.console.diagnostic(format_instruction(decode(state.memory, pc)))
        if state.call_trace and opcode == O["call"]:
            following = " ".join(str(w) for w in state.memory[pc + 1:pc + 4])
            self.console.diagnostic(f" / mem[{pc}] = {opcode} .. [{following}]")

        state.pc = pc + 1 + count
        val = state.resolve

        # ── halt / noop ────────────────────────────────────────────────────────
        if opcode == O["halt"]:
            state.halted = True
            log.debug("halt at mem[%d]", pc)
            return StepResult.HALTED

        elif opcode == O["noop"]:
            pass

        # ── Data movement ──────────────────────────────────────────────────────
        elif opcode == O["set"]:
            a, b = args
            state.write(a, val(b))

        elif opcode == O["push"]:
            state.push(val(args[0]))

        elif opcode == O["pop"]:
            state.write(args[0], state.pop("pop", pc))

        elif opcode == O["rmem"]:
            a, b = args
            state.write(a, state.read(val(b)))

        elif opcode == O["wmem"]:
            a, b = args
            state.write(val(a), val(b))

        # ── Comparison ─────────────────────────────────────────────────────────
        elif opcode == O["eq"]:
            a, b, c = args
            state.write(a, 1 if val(b) == val(c) else 0)

        elif opcode == O["gt"]:
            a, b, c = args
            state.write(a, 1 if val(b) > val(c) else 0)

        # ── Control flow ───────────────────────────────────────────────────────
        elif opcode == O["jmp"]:
            state.pc = val(args[0])

        elif opcode == O["jt"]:
            a, b = args
            if val(a) != 0:
                state.pc = val(b)

        elif opcode == O["jf"]:
            a, b = args
            if val(a) == 0:
                state.pc = val(b)

        elif opcode == O["call"]:
            target = val(args[0])
            state.push(state.pc)
            state.pc = target

        elif opcode == O["ret"]:
            state.pc = state.pop("ret", pc)

        # ── Arithmetic ─────────────────────────────────────────────────────────
        elif opcode == O["add"]:
            a, b, c = args
            state.write(a, (val(b) + val(c)) % MODULUS)

        elif opcode == O["mult"]:
            a, b, c = args
            state.write(a, (val(b) * val(c)) % MODULUS)

        elif opcode == O["mod"]:
            a, b, c = args
            divisor = val(c)
            if divisor == 0:
                raise ArithmeticFault(f"mod by zero at mem[{pc}]")
            state.write(a, val(b) % divisor)

        elif opcode == O["and"]:
            a, b, c = args
            state.write(a, val(b) & val(c))

        elif opcode == O["or"]:
            a, b, c = args
            state.write(a, val(b) | val(c))

        elif opcode == O["not"]:
            a, b = args
            state.write(a, ~val(b) & WORD_MASK)

        # ── Character I/O ──────────────────────────────────────────────────────
        elif opcode == O["out"]:
            self.console.write_char(val(args[0]))

        elif opcode == O["in"]:
            state.write(args[0], self._read_input(state))

        return StepResult.CONTINUE

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _read_input(self, state: MachineState) -> int:
        while True:
            c = self.console.read_char()
            if self.hooks and c == "%":
                self.console.skip_token()
                state.call_trace = not state.call_trace
                log.info("call trace %s", "on" if state.call_trace else "off")
                continue
            if self.hooks and c == "+":
                self.console.skip_token()
                state.write(PRIVILEGED_CELL, 1)
                log.info("privileged flag set (mem[%d] = 1)", PRIVILEGED_CELL)
                continue
            return ord(c)
