"""Disassembler — forward listing of instructions starting at an address."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from synvm.isa import (
    ADDRESS_SPACE, OPCODE_NAMES, OPERAND_COUNTS, TERMINATORS, format_operand,
)


@dataclass(frozen=True)
class Instruction:
    address:  int
    opcode:   int
    operands: tuple

    @property
    def name(self) -> str:
        return OPCODE_NAMES.get(self.opcode, "???")

    @property
    def valid(self) -> bool:
        return self.opcode in OPERAND_COUNTS

    @property
    def size(self) -> int:
        return 1 + len(self.operands)


def decode(memory: Sequence[int], address: int) -> Instruction:
    """Decode the instruction at ``address``.

    Unknown opcodes decode as a one-word instruction with no operands;
    operands running past the end of the address space are truncated.
    """
    opcode = memory[address]
    count  = OPERAND_COUNTS.get(opcode, 0)
    end    = min(address + 1 + count, ADDRESS_SPACE, len(memory))
    return Instruction(address, opcode, tuple(memory[address + 1:end]))


def disassemble(memory: Sequence[int], start: int, *,
                stop_at_return: bool = True,
                limit: Optional[int] = None) -> List[Instruction]:
    out: List[Instruction] = []
    addr = start
    end  = min(ADDRESS_SPACE, len(memory))
    while addr < end:
        if limit is not None and len(out) >= limit:
            break
        ins = decode(memory, addr)
        out.append(ins)
        addr += ins.size
        if stop_at_return and ins.opcode in TERMINATORS:
            break
    return out


def format_instruction(ins: Instruction) -> str:
    if not ins.valid:
        return f"{ins.address:5d}: ??? {ins.opcode}"
    parts = [ins.name] + [format_operand(w) for w in ins.operands]
    return f"{ins.address:5d}: " + " ".join(parts)


def listing(memory: Sequence[int], start: int, **kwargs) -> str:
    return "\n".join(format_instruction(i) for i in disassemble(memory, start, **kwargs))
