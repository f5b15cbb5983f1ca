"""Character I/O channels for a running program.

Three streams, all supplied by the caller:
  stdin   characters consumed by the `in` opcode
  stdout  characters emitted by the `out` opcode
  diag    diagnostic trace lines (call trace, instruction trace)
"""
from __future__ import annotations

import sys
from typing import Optional, TextIO

from synvm.machine import InputExhausted

_BLANKS = " \t"


class Console:
    def __init__(self, stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None,
                 diag: Optional[TextIO] = None):
        self.stdin  = stdin  if stdin  is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.diag   = diag   if diag   is not None else sys.stderr
        self._pending = ""

    # ── Input ─────────────────────────────────────────────────────────────────

    def _getc(self) -> str:
        if self._pending:
            c, self._pending = self._pending[0], self._pending[1:]
            return c
        return self.stdin.read(1)

    def _ungetc(self, c: str) -> None:
        self._pending = c + self._pending

    def read_char(self) -> str:
        """Block for one character; a CR is dropped and the next char becomes LF."""
        self.stdout.flush()
        c = self._getc()
        if c == "\r":
            if not self._getc():
                raise InputExhausted("end of input after carriage return")
            c = "\n"
        if not c:
            raise InputExhausted("end of program input")
        return c

    def skip_token(self) -> str:
        """Discard one whitespace-delimited token, leaving the delimiter unread."""
        c = self._getc()
        while c and c in _BLANKS:
            c = self._getc()
        token = []
        while c and not c.isspace():
            token.append(c)
            c = self._getc()
        if c:
            self._ungetc(c)
        return "".join(token)

    # ── Output ────────────────────────────────────────────────────────────────

    def write_char(self, code: int) -> None:
        self.stdout.write(chr(code))

    def diagnostic(self, line: str) -> None:
        print(line, file=self.diag)
