"""Modelled kernel pieces: paging, locks, ELF headers, system calls, shell parsing and user tools."""

__version__ = "0.1.0"

__all__ = [
    "elf",
    "kstring",
    "locks",
    "mmu",
    "rm",
    "shparse",
    "syscalls",
    "umalloc",
    "vm",
    "wc",
]