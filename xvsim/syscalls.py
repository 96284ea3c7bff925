"""System call numbers, argument fetching from user memory, and dispatch."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Optional, TextIO

_U32 = 0xFFFFFFFF

T_DIR = 1
T_FILE = 2
T_DEV = 3


class SysNum(IntEnum):
    """System call numbers."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    SIGNAL = 22


_NSYSCALLS = max(SysNum) + 1


class SyscallError(Exception):
    """Raised when a system call argument is invalid; the call then returns -1."""


@dataclass
class Stat:
    """File status as returned by fstat."""

    type: int = 0
    dev: int = 0
    ino: int = 0
    nlink: int = 0
    size: int = 0


@dataclass(eq=False)
class SyscallContext:
    """A process's user memory and registers as seen by a system call."""

    memory: bytearray
    esp: int = 0
    pid: int = 1
    name: str = ""
    eax: int = 0

    @property
    def sz(self) -> int:
        """Size of the user address space."""
        return len(self.memory)

    def fetchint(self, addr: int) -> int:
        """The signed 32-bit integer at user address ``addr``."""
        addr &= _U32
        if addr >= self.sz or addr + 4 > self.sz:
            raise SyscallError(f"bad int address {addr:#x}")
        return int.from_bytes(self.memory[addr:addr + 4], "little", signed=True)

    def fetchstr(self, addr: int) -> bytes:
        """The NUL-terminated string at user address ``addr``, without the NUL."""
        addr &= _U32
        if addr >= self.sz:
            raise SyscallError(f"bad string address {addr:#x}")
        end = self.memory.find(b"\0", addr)
        if end < 0:
            raise SyscallError("unterminated string")
        return bytes(self.memory[addr:end])

    def argint(self, n: int) -> int:
        """The ``n``th 32-bit argument."""
        return self.fetchint((self.esp + 4 + 4 * n) & _U32)

    def argptr(self, n: int, size: int) -> int:
        """The ``n``th argument as the address of ``size`` bytes of user memory."""
        addr = self.argint(n) & _U32
        if size < 0 or addr >= self.sz or addr + size > self.sz:
            raise SyscallError(f"bad pointer {addr:#x} size {size}")
        return addr

    def argstr(self, n: int) -> bytes:
        """The ``n``th argument as a string."""
        return self.fetchstr(self.argint(n))


Handler = Callable[[SyscallContext], int]


class SyscallTable:
    """Maps system call numbers to handlers and runs them."""

    def __init__(self, console: Optional[TextIO] = None) -> None:
        self._handlers: Dict[int, Handler] = {}
        self.console = console

    def register(self, num: int, handler: Handler) -> Handler:
        """Install ``handler`` for system call ``num``."""
        self._handlers[SysNum(num)] = handler
        return handler

    def dispatch(self, ctx: SyscallContext, num: int) -> int:
        """Run call ``num``; its result, or -1, is stored in ``ctx.eax`` and returned."""
        handler = self._handlers.get(num) if 0 < num < _NSYSCALLS else None
        if handler is None:
            print(
                f"{ctx.pid} {ctx.name}: unknown sys call {num}",
                file=self.console if self.console is not None else sys.stderr,
            )
            ctx.eax = -1
        else:
            try:
                ctx.eax = handler(ctx)
            except SyscallError:
                ctx.eax = -1
        return ctx.eax