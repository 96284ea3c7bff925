"""x86 memory-management definitions: paging helpers, descriptors and layout."""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields

_U32 = 0xFFFFFFFF

# Eflags register
FL_IF = 0x00000200

# Control register flags
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

# Memory layout
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# Kernel parameters
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

# The null descriptor as laid out in assembler
SEG_NULLASM = bytes(8)


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _U32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _U32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _U32


def pgroundup(sz: int) -> int:
    """Round up to the next page boundary (32-bit arithmetic)."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _U32


def pgrounddown(a: int) -> int:
    """Round down to a page boundary."""
    return a & ~(PGSIZE - 1) & _U32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table or directory entry."""
    return pte & ~0xFFF & _U32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table or directory entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _U32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _U32


def _pack_bits(values, widths) -> bytes:
    raw = 0
    shift = 0
    for value, width in zip(values, widths):
        raw |= (value & ((1 << width) - 1)) << shift
        shift += width
    return raw.to_bytes(shift // 8, "little")


@dataclass(frozen=True)
class SegDesc:
    """A segment descriptor, field by field."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    _WIDTHS = (16, 16, 8, 4, 1, 2, 1, 4, 1, 1, 1, 1, 8)

    def pack(self) -> bytes:
        """The 8 bytes the processor reads for this descriptor."""
        return _pack_bits(astuple(self), self._WIDTHS)


def seg(type: int, base: int, lim: int, dpl: int) -> SegDesc:
    """A normal 32-bit segment with 4 KiB granularity."""
    base &= _U32
    lim &= _U32
    return SegDesc(
        lim_15_0=(lim >> 12) & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type & 0xF,
        s=1,
        dpl=dpl & 0x3,
        p=1,
        lim_19_16=(lim >> 28) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_31_24=base >> 24,
    )


def seg16(type: int, base: int, lim: int, dpl: int) -> SegDesc:
    """A segment with byte granularity."""
    base &= _U32
    lim &= _U32
    return SegDesc(
        lim_15_0=lim & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type & 0xF,
        s=1,
        dpl=dpl & 0x3,
        p=1,
        lim_19_16=(lim >> 16) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_31_24=base >> 24,
    )


def seg_asm(type: int, base: int, lim: int) -> bytes:
    """Descriptor bytes as the boot-time assembler macro lays them out."""
    base &= _U32
    lim &= _U32
    return bytes(
        [
            (lim >> 12) & 0xFF,
            (lim >> 20) & 0xFF,
            base & 0xFF,
            (base >> 8) & 0xFF,
            (base >> 16) & 0xFF,
            0x90 | type,
            0xC0 | ((lim >> 28) & 0xF),
            (base >> 24) & 0xFF,
        ]
    )


@dataclass(frozen=True)
class GateDesc:
    """An interrupt or trap gate descriptor."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    _WIDTHS = (16, 16, 5, 3, 4, 1, 2, 1, 16)

    def pack(self) -> bytes:
        """The 8 bytes of this gate as stored in the IDT."""
        return _pack_bits((getattr(self, f.name) for f in fields(self)), self._WIDTHS)


def set_gate(istrap: bool, sel: int, off: int, d: int) -> GateDesc:
    """A gate to handler ``off`` in segment ``sel``; trap gates leave IF alone."""
    off &= _U32
    return GateDesc(
        off_15_0=off & 0xFFFF,
        cs=sel & 0xFFFF,
        args=0,
        rsv1=0,
        type=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=d & 0x3,
        p=1,
        off_31_16=off >> 16,
    )