"""
tests/test_debugger.py
======================
Break predicate modes and the paused command loop (w · d · cf · <enter>).

Run with:   pytest tests/test_debugger.py -v
"""
import io
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from synvm.console import Console
from synvm.debugger import DEFAULT, Debugger, Default, RunToReturn, should_break
from synvm.isa import OPCODES
from synvm.machine import MachineState, StackUnderflow
from synvm.vm import Engine


def R(n):
    return 32768 + n


def _session(words, commands, stdin=""):
    """Run ``words`` under the debugger; return (state, program output, debugger output)."""
    prog_out = io.StringIO()
    dbg_out  = io.StringIO()
    engine = Engine(Console(stdin=io.StringIO(stdin), stdout=prog_out,
                            diag=io.StringIO()), hooks=False)
    dbg = Debugger(engine, commands=io.StringIO(commands), out=dbg_out)
    state = MachineState.from_words(words)
    dbg.run(state)
    return state, prog_out.getvalue(), dbg_out.getvalue()


# ── Break predicate ────────────────────────────────────────────────────────────

class TestShouldBreak:
    def test_default_pauses_on_everything_but_out(self):
        for name, op in OPCODES.items():
            pause, mode = should_break(DEFAULT, op)
            assert pause is (name != "out")
            assert mode == Default()

    def test_call_deepens(self):
        assert should_break(RunToReturn(1), OPCODES["call"]) == (False, RunToReturn(2))

    def test_ret_shallows(self):
        assert should_break(RunToReturn(2), OPCODES["ret"]) == (False, RunToReturn(1))
        assert should_break(RunToReturn(1), OPCODES["ret"]) == (False, RunToReturn(0))

    def test_other_opcodes_keep_depth(self):
        assert should_break(RunToReturn(3), OPCODES["add"]) == (False, RunToReturn(3))
        assert should_break(RunToReturn(3), OPCODES["out"]) == (False, RunToReturn(3))

    def test_depth_zero_pauses_and_reverts(self):
        for op in (OPCODES["out"], OPCODES["call"], OPCODES["noop"]):
            assert should_break(RunToReturn(0), op) == (True, DEFAULT)

    def test_modes_are_values(self):
        assert RunToReturn(2) == RunToReturn(2)
        assert RunToReturn() == RunToReturn(1)


# ── Command loop ───────────────────────────────────────────────────────────────

class TestDebuggerSession:
    def test_output_runs_without_pausing(self):
        # out A, out B, halt — only the halt needs a command
        state, out, _ = _session([19, 65, 19, 66, 0], "\n")
        assert state.halted
        assert out == "AB"

    def test_exhausted_commands_keep_stepping(self):
        state, out, _ = _session([21, 21, 19, 67, 0], "")
        assert state.halted
        assert out == "C"

    def test_unknown_command_steps(self):
        state, _, dbg = _session([21, 0], "bogus\nnope\n")
        assert state.halted
        assert dbg == ""

    def test_where(self):
        state, _, dbg = _session([2, 7, 1, R(2), 9, 0], "w\n\n\nw\n\n")
        lines = dbg.splitlines()
        assert lines[:3] == ["pc: 0", "stack: []", "regs: [0 0 0 0 0 0 0 0]"]
        assert lines[3:] == ["pc: 5", "stack: [7]", "regs: [0 0 9 0 0 0 0 0]"]
        assert state.halted

    def test_where_does_not_execute(self):
        state, _, dbg = _session([2, 7, 0], "w\nw\nw\n\n\n")
        assert dbg.count("pc: 0") == 3
        assert state.stack == [7]

    def test_crlf_commands(self):
        _, _, dbg = _session([0], "w\r\n\r\n")
        assert dbg.startswith("pc: 0\n")

    def test_disassemble_from_pc(self):
        prog = [17, 3,              # 0: call 3
                0,                  # 2: halt
                1, R(0), 65,        # 3: set <0> 65
                19, R(0),           # 6: out <0>
                18]                 # 8: ret
        state, out, dbg = _session(prog, "\nd\n")
        assert dbg.splitlines() == ["    3: set <0> 65", "    6: out <0>", "    8: ret"]
        assert out == "A"
        assert state.halted

    def test_disassemble_stops_at_halt(self):
        _, _, dbg = _session([21, 0, 21], "d\n")
        assert dbg.splitlines() == ["    0: noop", "    1: halt"]

    def test_cf_runs_until_frame_returns(self):
        prog = [17, 5,              # 0: call f
                19, 90,             # 2: out 'Z'
                0,                  # 4: halt
                17, 11,             # 5: f: call g
                19, 70,             # 7:    out 'F'
                18,                 # 9:    ret
                21,                 # 10: noop
                19, 71,             # 11: g: out 'G'
                18]                 # 13:    ret
        # step into f, `cf` at the nested call, then inspect where we stopped
        state, out, dbg = _session(prog, "\ncf\nw\n")
        assert dbg.splitlines()[:2] == ["pc: 2", "stack: []"]
        assert out == "GFZ"
        assert state.halted

    def test_cf_pauses_even_before_out(self):
        prog = [17, 5,              # 0: call 5
                19, 88,             # 2: out 'X'
                0,                  # 4: halt
                18]                 # 5: ret
        # `cf` issued on the ret itself; the pause lands on the `out` at 2
        state, out, dbg = _session(prog, "\ncf\nw\n")
        assert dbg.startswith("pc: 2\n")
        assert out == "X"
        assert state.halted

    def test_ret_with_empty_stack_is_fatal(self):
        with pytest.raises(StackUnderflow):
            _session([18], "\n")

    def test_cf_at_top_level_runs_to_halt(self):
        state, out, dbg = _session([19, 72, 21, 19, 73, 0], "\ncf\n")
        assert state.halted
        assert out == "HI"
        assert dbg == ""

    def test_program_input_is_separate_channel(self):
        state, _, _ = _session([20, R(0), 0], "\n\n", stdin="q")
        assert state.register(0) == ord("q")

    def test_hooks_off_under_debugger(self):
        state, _, _ = _session([20, R(0), 0], "\n\n", stdin="%")
        assert state.register(0) == ord("%")
        assert not state.call_trace
