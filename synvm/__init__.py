"""
synvm
=====
15-bit word virtual machine with a line-driven debugger.

Exports:
    MachineState — address space, operand stack, pc, halted flag
    Engine       — fetch/decode/execute over a MachineState
    StepResult   — CONTINUE / HALTED
    Console      — program input/output and diagnostic streams
    Debugger     — pause/inspect/step layer over an Engine
    VMError      — root of all fatal machine errors
"""

__version__ = "1.0.0"

from .machine  import MachineState, VMError
from .console  import Console
from .vm       import Engine, StepResult
from .debugger import Debugger

__all__ = [
    "MachineState", "VMError", "Console", "Engine", "StepResult", "Debugger",
]
