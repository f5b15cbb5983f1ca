"""SYNVM ISA — opcode table, operand counts and address-space layout.

Word layout:
  Every cell is a 16-bit unsigned word; only the low 15 bits take part in
  arithmetic.  An operand word is either
    0     – 32767   a literal
    32768 – 32775   register 0–7
    32776 – 65535   invalid
"""

# ── Address space ──────────────────────────────────────────────────────────────
MODULUS        = 1 << 15          # arithmetic wraps at 32768
WORD_MASK      = MODULUS - 1      # 0x7FFF
MEMORY_SIZE    = MODULUS          # cells 0..32767
REGISTER_COUNT = 8
REGISTER_BASE  = MEMORY_SIZE      # registers live right after memory
ADDRESS_SPACE  = MEMORY_SIZE + REGISTER_COUNT   # 32776 addressable cells

# `+` input hook writes here (last cell of the address space == register 7)
PRIVILEGED_CELL = ADDRESS_SPACE - 1

# ── Opcodes ────────────────────────────────────────────────────────────────────
OPCODES: dict[str, int] = {
    # ── Machine control ─────────────────────────────────────────────────────
    "halt":  0,
    "noop": 21,

    # ── Data movement ───────────────────────────────────────────────────────
    "set":   1,
    "push":  2,
    "pop":   3,
    "rmem": 15,
    "wmem": 16,

    # ── Comparison ──────────────────────────────────────────────────────────
    "eq":    4,
    "gt":    5,

    # ── Control flow ────────────────────────────────────────────────────────
    "jmp":   6,
    "jt":    7,
    "jf":    8,
    "call": 17,
    "ret":  18,

    # ── Arithmetic / bitwise ────────────────────────────────────────────────
    "add":   9,
    "mult": 10,
    "mod":  11,
    "and":  12,
    "or":   13,
    "not":  14,

    # ── Character I/O ───────────────────────────────────────────────────────
    "out":  19,
    "in":   20,
}

# Reverse lookup: opcode int → mnemonic string
OPCODE_NAMES: dict[int, str] = {v: k for k, v in OPCODES.items()}

# Operand words following each opcode
OPERAND_COUNTS: dict[int, int] = {
    OPCODES["halt"]: 0,
    OPCODES["set"]:  2,
    OPCODES["push"]: 1,
    OPCODES["pop"]:  1,
    OPCODES["eq"]:   3,
    OPCODES["gt"]:   3,
    OPCODES["jmp"]:  1,
    OPCODES["jt"]:   2,
    OPCODES["jf"]:   2,
    OPCODES["add"]:  3,
    OPCODES["mult"]: 3,
    OPCODES["mod"]:  3,
    OPCODES["and"]:  3,
    OPCODES["or"]:   3,
    OPCODES["not"]:  2,
    OPCODES["rmem"]: 2,
    OPCODES["wmem"]: 2,
    OPCODES["call"]: 1,
    OPCODES["ret"]:  0,
    OPCODES["out"]:  1,
    OPCODES["in"]:   1,
    OPCODES["noop"]: 0,
}

# Opcodes that end a forward disassembly listing
TERMINATORS = frozenset({OPCODES["halt"], OPCODES["ret"]})


# ── Register encoding ──────────────────────────────────────────────────────────

def is_register(word: int) -> bool:
    return REGISTER_BASE <= word < ADDRESS_SPACE


def encode_reg(n: int) -> int:
    if not 0 <= n < REGISTER_COUNT:
        raise ValueError(f"Register index {n} out of range (0–{REGISTER_COUNT - 1})")
    return REGISTER_BASE + n


def decode_reg(word: int) -> int:
    if not is_register(word):
        raise ValueError(f"{word} is not a register operand")
    return word - REGISTER_BASE


def format_operand(word: int) -> str:
    """Literals print bare, registers as ``<n>``."""
    if is_register(word):
        return f"<{decode_reg(word)}>"
    return str(word)
