"""Machine state — address space, operand stack, program counter, halted flag.

The state is a plain mutable object owned by whoever drives the engine.
It knows how to address itself (resolve operands, read and write cells,
push and pop) but has no idea what an opcode is.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from synvm.codec import words_from_bytes
from synvm.isa import (
    ADDRESS_SPACE, MEMORY_SIZE, REGISTER_BASE, REGISTER_COUNT,
    encode_reg, is_register,
)


# ── Errors ─────────────────────────────────────────────────────────────────────

class VMError(Exception):
    """Fatal machine condition; the program cannot continue."""


class StackUnderflow(VMError):
    pass


class IllegalOpcode(VMError):
    def __init__(self, address: int, value: int):
        super().__init__(f"unimplemented instr: mem[{address}] = {value}")
        self.address = address
        self.value   = value


class InvalidValue(VMError):
    pass


class InvalidAddress(VMError):
    pass


class ArithmeticFault(VMError):
    pass


class InputExhausted(VMError):
    pass


# ── State ──────────────────────────────────────────────────────────────────────

@dataclass
class MachineState:
    memory: List[int] = field(default_factory=lambda: [0] * ADDRESS_SPACE)
    stack:  List[int] = field(default_factory=list)
    pc:     int  = 0
    halted: bool = False

    # Toggled by the `%` input hook: report every `call` on the diagnostic stream
    call_trace: bool = False

    @classmethod
    def from_words(cls, words: List[int]) -> "MachineState":
        if len(words) > MEMORY_SIZE:
            raise VMError(
                f"Program image is {len(words)} words; memory holds {MEMORY_SIZE}"
            )
        state = cls()
        state.memory[:len(words)] = words
        return state

    @classmethod
    def from_bytes(cls, data: bytes) -> "MachineState":
        return cls.from_words(words_from_bytes(data))

    # ── Registers ─────────────────────────────────────────────────────────────

    @property
    def registers(self) -> List[int]:
        return self.memory[REGISTER_BASE:REGISTER_BASE + REGISTER_COUNT]

    def register(self, n: int) -> int:
        return self.memory[encode_reg(n)]

    # ── Operand decoding ──────────────────────────────────────────────────────

    def resolve(self, word: int) -> int:
        """Literal → itself, register reference → register contents."""
        if word < MEMORY_SIZE:
            return word
        if is_register(word):
            return self.memory[word]
        raise InvalidValue(f"{word} is neither a literal nor a register")

    def read(self, address: int) -> int:
        if not 0 <= address < ADDRESS_SPACE:
            raise InvalidAddress(f"read from mem[{address}] outside the address space")
        return self.memory[address]

    def write(self, address: int, value: int) -> None:
        if not 0 <= address < ADDRESS_SPACE:
            raise InvalidAddress(f"write to mem[{address}] outside the address space")
        self.memory[address] = value & 0xFFFF

    # ── Stack ─────────────────────────────────────────────────────────────────

    def push(self, value: int) -> None:
        self.stack.append(value & 0xFFFF)

    def pop(self, op: str = "pop", address: Optional[int] = None) -> int:
        if not self.stack:
            where = f" at mem[{address}]" if address is not None else ""
            raise StackUnderflow(f"{op} on empty stack{where}")
        return self.stack.pop()
