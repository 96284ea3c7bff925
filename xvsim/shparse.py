"""Parser for the shell's command language: words, redirections, pipes, lists, jobs and blocks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union

O_RDONLY = 0x000
O_WRONLY = 0x001
O_RDWR = 0x002
O_CREATE = 0x200

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""


@dataclass
class ExecCmd:
    """A program and its arguments."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """A command whose descriptor ``fd`` is reopened on ``file`` with ``mode``."""

    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass
class PipeCmd:
    """``left | right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """``left ; right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """``cmd &``."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


def _skip(s: str, pos: int) -> int:
    while pos < len(s) and s[pos] in WHITESPACE:
        pos += 1
    return pos


def gettoken(s: str, pos: int = 0) -> Tuple[str, int, int, int]:
    """Scan one token of ``s`` from ``pos``.

    Returns ``(token, start, end, next_pos)``: the token is a symbol character,
    ``"+"`` for ``>>``, ``"a"`` for a word, or ``""`` at the end of input.
    ``s[start:end]`` is the token's text and ``next_pos`` follows any whitespace.
    """
    start = _skip(s, pos)
    end = start
    if start >= len(s):
        tok = ""
    else:
        c = s[start]
        if c in "|();&<":
            tok = c
            end += 1
        elif c == ">":
            tok = ">"
            end += 1
            if end < len(s) and s[end] == ">":
                tok = "+"
                end += 1
        else:
            tok = "a"
            while end < len(s) and s[end] not in WHITESPACE and s[end] not in SYMBOLS:
                end += 1
    return tok, start, end, _skip(s, end)


class _Parser:
    def __init__(self, s: str) -> None:
        self.s = s
        self.pos = 0

    def peek(self, toks: str) -> bool:
        self.pos = _skip(self.s, self.pos)
        return self.pos < len(self.s) and self.s[self.pos] in toks

    def take(self) -> Tuple[str, str]:
        tok, start, end, self.pos = gettoken(self.s, self.pos)
        return tok, self.s[start:end]

    def line(self) -> Command:
        cmd = self.pipe()
        while self.peek("&"):
            self.take()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.take()
            cmd = ListCmd(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.peek("|"):
            self.take()
            cmd = PipeCmd(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.peek("<>"):
            tok, _ = self.take()
            kind, name = self.take()
            if kind != "a":
                raise ShellSyntaxError("missing file for redirection")
            if tok == "<":
                cmd = RedirCmd(cmd, name, O_RDONLY, 0)
            else:
                cmd = RedirCmd(cmd, name, O_WRONLY | O_CREATE, 1)
        return cmd

    def block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.take()
        cmd = self.line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.take()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.peek("("):
            return self.block()
        node = ExecCmd()
        ret = self.redirs(node)
        while not self.peek("|)&;"):
            tok, word = self.take()
            if tok == "":
                break
            if tok != "a":
                raise ShellSyntaxError("syntax")
            node.argv.append(word)
            if len(node.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.redirs(ret)
        return ret


def parsecmd(s: str) -> Command:
    """Parse a whole command line; text left over after it is a syntax error."""
    s = s.split("\0", 1)[0]
    parser = _Parser(s)
    cmd = parser.line()
    parser.peek("")
    if parser.pos != len(s):
        raise ShellSyntaxError(f"leftovers: {s[parser.pos:]}")
    return cmd