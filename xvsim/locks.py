"""Spin locks, sleep locks and the per-CPU interrupt-disable nesting they rely on."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional


class LockError(RuntimeError):
    """Raised where the kernel would panic over misuse of a lock."""


@dataclass(eq=False)
class Cpu:
    """The lock-relevant state of one processor."""

    id: int = 0
    ncli: int = 0
    intena: bool = False
    interrupts: bool = True

    def pushcli(self) -> None:
        """Disable interrupts, remembering whether they were on at the outermost level."""
        were_enabled = self.interrupts
        self.interrupts = False
        if self.ncli == 0:
            self.intena = were_enabled
        self.ncli += 1

    def popcli(self) -> None:
        """Undo one pushcli; interrupts come back on only when the nesting reaches zero."""
        if self.interrupts:
            raise LockError("popcli - interruptible")
        if self.ncli <= 0:
            raise LockError("popcli")
        self.ncli -= 1
        if self.ncli == 0 and self.intena:
            self.interrupts = True


class SpinLock:
    """A mutual-exclusion lock owned by a CPU; interrupts stay off while it is held."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cpu: Optional[Cpu] = None
        self._word = threading.Lock()

    @property
    def locked(self) -> bool:
        """Whether any CPU holds the lock."""
        return self._word.locked()

    def acquire(self, cpu: Cpu) -> None:
        """Take the lock on ``cpu``, waiting while another CPU holds it."""
        cpu.pushcli()
        if self.holding(cpu):
            cpu.popcli()
            raise LockError(f"acquire {self.name}".rstrip())
        self._word.acquire()
        self.cpu = cpu

    def release(self, cpu: Cpu) -> None:
        """Give the lock up; ``cpu`` must be holding it."""
        if not self.holding(cpu):
            raise LockError(f"release {self.name}".rstrip())
        self.cpu = None
        self._word.release()
        cpu.popcli()

    def holding(self, cpu: Cpu) -> bool:
        """Whether ``cpu`` is the holder of this lock."""
        cpu.pushcli()
        try:
            return self.locked and self.cpu is cpu
        finally:
            cpu.popcli()


class SleepLock:
    """A long-term lock owned by a process; waiters sleep instead of spinning."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._guard = threading.Condition()

    def acquire(self, pid: int) -> None:
        """Take the lock for process ``pid``, sleeping until it is free."""
        with self._guard:
            while self.locked:
                self._guard.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Free the lock and wake every sleeper."""
        with self._guard:
            self.locked = False
            self.pid = 0
            self._guard.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process ``pid`` holds the lock."""
        with self._guard:
            return self.locked and self.pid == pid