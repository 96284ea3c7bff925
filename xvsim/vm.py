"""Two-level x86 page tables over a simulated pool of physical pages."""

from __future__ import annotations

import struct
from typing import Optional, Union

from .mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    p2v,
    pdx,
    pgaddr,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_U32 = 0xFFFFFFFF
_ENTRY = struct.Struct("<I")

BytesLike = Union[bytes, bytearray, memoryview]


class VmError(RuntimeError):
    """Raised where the kernel would panic or report a bad mapping."""


class OutOfMemory(VmError):
    """Raised when no physical page is left."""


class PhysicalMemory:
    """A range of physical page frames with a free list."""

    def __init__(self, start: int = 0x400000, npages: int = 512) -> None:
        if start % PGSIZE or npages < 0 or start + npages * PGSIZE > PHYSTOP:
            raise ValueError("physical memory range must be page aligned and below PHYSTOP")
        self.start = start
        self.end = start + npages * PGSIZE
        self._pages = {pa: bytearray(PGSIZE) for pa in range(start, self.end, PGSIZE)}
        self._free = list(range(self.end - PGSIZE, start - PGSIZE, -PGSIZE))
        self._free_set = set(self._free)

    def __len__(self) -> int:
        """Number of free pages."""
        return len(self._free)

    def kalloc(self) -> int:
        """Physical address of a free page; its contents are left as they were."""
        if not self._free:
            raise OutOfMemory("out of physical memory")
        pa = self._free.pop()
        self._free_set.discard(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Return the page at ``pa`` to the free list."""
        if pa % PGSIZE or pa not in self._pages or pa in self._free_set:
            raise VmError(f"kfree {pa:#x}")
        self._free.append(pa)
        self._free_set.add(pa)

    def _page(self, pa: int) -> bytearray:
        try:
            return self._pages[pa - pa % PGSIZE]
        except KeyError:
            raise VmError(f"no physical memory at {pa:#x}") from None

    def read(self, pa: int, n: int) -> bytes:
        """``n`` bytes starting at physical address ``pa``."""
        if n < 0:
            raise ValueError("negative length")
        out = bytearray()
        while n > 0:
            page = self._page(pa)
            off = pa % PGSIZE
            chunk = min(n, PGSIZE - off)
            out += page[off:off + chunk]
            pa += chunk
            n -= chunk
        return bytes(out)

    def write(self, pa: int, data: BytesLike) -> None:
        """Store ``data`` at physical address ``pa``."""
        view = memoryview(bytes(data))
        while view:
            page = self._page(pa)
            off = pa % PGSIZE
            chunk = min(len(view), PGSIZE - off)
            page[off:off + chunk] = view[:chunk]
            view = view[chunk:]
            pa += chunk


class AddressSpace:
    """A page directory and the page tables hanging off it."""

    def __init__(self, mem: PhysicalMemory, kernel_data: int) -> None:
        self.mem = mem
        self.kernel_data = kernel_data
        pgdir = mem.kalloc()
        mem.write(pgdir, bytes(PGSIZE))
        self.pgdir: Optional[int] = pgdir

    def _load(self, addr: int) -> int:
        return _ENTRY.unpack_from(self.mem._page(addr), addr % PGSIZE)[0]

    def _store(self, addr: int, value: int) -> None:
        _ENTRY.pack_into(self.mem._page(addr), addr % PGSIZE, value & _U32)

    def _directory(self) -> int:
        if self.pgdir is None:
            raise VmError("address space has been freed")
        return self.pgdir

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the PTE for ``va``; page tables are made if ``alloc``."""
        pde_at = self._directory() + 4 * pdx(va)
        pde = self._load(pde_at)
        if pde & PTE_P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = self.mem.kalloc()
            self.mem.write(pgtab, bytes(PGSIZE))
            self._store(pde_at, pgtab | PTE_P | PTE_W | PTE_U)
        return pgtab + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering ``va``..``va+size`` to physical memory from ``pa``."""
        a = pgrounddown(va)
        last = pgrounddown((va + size - 1) & _U32)
        while True:
            pte = self.walk(a, True)
            if self._load(pte) & PTE_P:
                raise VmError("remap")
            self._store(pte, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & _U32
            pa += PGSIZE

    def init_user(self, code: BytesLike) -> None:
        """Put ``code`` (less than a page) at user address 0."""
        code = bytes(code)
        if len(code) >= PGSIZE:
            raise VmError("inituvm: more than a page")
        page = self.mem.kalloc()
        self.mem.write(page, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, page, PTE_W | PTE_U)
        self.mem.write(page, code)

    def load(self, addr: int, data: BytesLike, offset: int, sz: int) -> None:
        """Copy ``sz`` bytes of ``data`` from ``offset`` into already mapped pages at ``addr``."""
        if addr % PGSIZE:
            raise VmError("loaduvm: addr must be page aligned")
        source = memoryview(bytes(data))
        for i in range(0, sz, PGSIZE):
            pte = self.walk(addr + i)
            if pte is None:
                raise VmError("loaduvm: address should exist")
            pa = pte_addr(self._load(pte))
            n = min(sz - i, PGSIZE)
            chunk = source[offset + i:offset + i + n]
            if len(chunk) != n:
                raise VmError("loaduvm: short read")
            self.mem.write(pa, chunk)

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from ``oldsz`` to ``newsz`` with zeroed pages; return the new size."""
        if newsz >= KERNBASE:
            raise VmError(f"allocuvm: size {newsz:#x} reaches kernel space")
        if newsz < oldsz:
            return oldsz
        for a in range(pgroundup(oldsz), newsz, PGSIZE):
            try:
                page = self.mem.kalloc()
            except OutOfMemory:
                self.dealloc_user(newsz, oldsz)
                raise
            self.mem.write(page, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, page, PTE_W | PTE_U)
            except OutOfMemory:
                self.dealloc_user(newsz, oldsz)
                self.mem.kfree(page)
                raise
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Free user pages to shrink from ``oldsz`` to ``newsz``; return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pgroundup(newsz)
        while a < oldsz:
            pte = self.walk(a)
            if pte is None:
                a = (pgaddr(pdx(a) + 1, 0, 0) - PGSIZE) & _U32
            else:
                entry = self._load(pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VmError("kfree")
                    self.mem.kfree(pa)
                    self._store(pte, 0)
            following = (a + PGSIZE) & _U32
            if following < a:
                break
            a = following
        return newsz

    def copy(self, sz: int) -> "AddressSpace":
        """A new address space holding a copy of the first ``sz`` bytes of user memory."""
        child = setup_kvm(self.mem, self.kernel_data)
        try:
            for i in range(0, sz, PGSIZE):
                pte = self.walk(i)
                if pte is None:
                    raise VmError("copyuvm: pte should exist")
                entry = self._load(pte)
                if not entry & PTE_P:
                    raise VmError("copyuvm: page not present")
                page = self.mem.kalloc()
                self.mem.write(page, self.mem.read(pte_addr(entry), PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, page, pte_flags(entry))
                except OutOfMemory:
                    self.mem.kfree(page)
                    raise
        except Exception:
            child.free()
            raise
        return child

    def free(self) -> None:
        """Release all user pages, the page tables and the directory."""
        pgdir = self.pgdir
        if pgdir is None:
            raise VmError("freevm: no pgdir")
        self.dealloc_user(KERNBASE, 0)
        for i in range(NPDENTRIES):
            entry = self._load(pgdir + 4 * i)
            if entry & PTE_P:
                self.mem.kfree(pte_addr(entry))
        self.mem.kfree(pgdir)
        self.pgdir = None

    def clear_user(self, uva: int) -> None:
        """Make the page at ``uva`` inaccessible to user code."""
        pte = self.walk(uva)
        if pte is None:
            raise VmError("clearpteu")
        self._store(pte, self._load(pte) & ~PTE_U)

    def uva2ka(self, uva: int) -> Optional[int]:
        """Kernel address of the user page at ``uva``, or None if not user-accessible."""
        pte = self.walk(uva)
        if pte is None:
            return None
        entry = self._load(pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def copyout(self, va: int, data: BytesLike) -> None:
        """Copy ``data`` to user address ``va``; every page touched must be user-mapped."""
        view = memoryview(bytes(data))
        while view:
            va0 = pgrounddown(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise VmError(f"copyout: {va0:#x} is not user memory")
            n = min(PGSIZE - (va - va0), len(view))
            self.mem.write(v2p(ka) + (va - va0), view[:n])
            view = view[n:]
            va = va0 + PGSIZE


def setup_kvm(mem: PhysicalMemory, kernel_data: int) -> AddressSpace:
    """An address space holding the kernel mappings; ``kernel_data`` starts writable kernel data."""
    if p2v(PHYSTOP) > DEVSPACE:
        raise VmError("PHYSTOP too high")
    if kernel_data % PGSIZE or not KERNLINK < kernel_data < p2v(PHYSTOP):
        raise ValueError("kernel data must be page aligned inside the kernel image")
    space = AddressSpace(mem, kernel_data)
    kmap = (
        (KERNBASE, 0, EXTMEM, PTE_W),
        (KERNLINK, v2p(KERNLINK), v2p(kernel_data), 0),
        (kernel_data, v2p(kernel_data), PHYSTOP, PTE_W),
        (DEVSPACE, DEVSPACE, 0, PTE_W),
    )
    try:
        for virt, phys_start, phys_end, perm in kmap:
            space.map_pages(virt, (phys_end - phys_start) & _U32, phys_start, perm)
    except OutOfMemory:
        space.free()
        raise
    return space