"""A first-fit free-list allocator over a break-grown heap of simulated addresses."""

from __future__ import annotations

from typing import Dict, Optional, Set

from .mmu import KERNBASE

HEADER_SIZE = 8
MIN_UNITS = 4096

_BASE = 0


class Heap:
    """Heap memory grown with ``sbrk`` and carved up by ``malloc`` and ``free``."""

    def __init__(self, start: int = 0x1000, limit: int = KERNBASE) -> None:
        if start < HEADER_SIZE or start % HEADER_SIZE or limit < start:
            raise ValueError("heap start must be header aligned and below the limit")
        self.start = start
        self.brk = start
        self.limit = limit
        self._ptr: Dict[int, int] = {}
        self._size: Dict[int, int] = {}
        self._allocated: Set[int] = set()
        self._freep: Optional[int] = None

    def sbrk(self, n: int) -> int:
        """Move the break by ``n`` bytes and return the old break."""
        new = self.brk + n
        if new < self.start or new > self.limit:
            raise MemoryError(f"sbrk({n}) outside heap")
        old, self.brk = self.brk, new
        return old

    def malloc(self, nbytes: int) -> int:
        """Address of a new block of at least ``nbytes`` bytes."""
        if nbytes < 0:
            raise ValueError("negative allocation size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._ptr[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._ptr[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._ptr[prevp] = self._ptr[p]
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * HEADER_SIZE
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._ptr[p]

    def free(self, addr: int) -> None:
        """Return the block at ``addr`` to the free list."""
        bp = addr - HEADER_SIZE
        if bp not in self._allocated:
            raise ValueError(f"free of unallocated address {addr:#x}")
        self._allocated.discard(bp)
        self._release(bp)

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_UNITS)
        hp = self.sbrk(nunits * HEADER_SIZE)
        self._size[hp] = nunits
        self._release(hp)
        return self._freep

    def _drop(self, hp: int) -> None:
        self._ptr.pop(hp, None)
        self._size.pop(hp, None)

    def _release(self, bp: int) -> None:
        p = self._freep
        while not (p < bp < self._ptr[p]):
            if p >= self._ptr[p] and (bp > p or bp < self._ptr[p]):
                break
            p = self._ptr[p]
        nxt = self._ptr[p]
        if bp + self._size[bp] * HEADER_SIZE == nxt:
            self._size[bp] += self._size[nxt]
            self._ptr[bp] = self._ptr[nxt]
            self._drop(nxt)
        else:
            self._ptr[bp] = nxt
        if p + self._size[p] * HEADER_SIZE == bp:
            self._size[p] += self._size[bp]
            self._ptr[p] = self._ptr[bp]
            self._drop(bp)
        else:
            self._ptr[p] = bp
        self._freep = p