"""ELF32 executable file and program headers."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass

ELF_MAGIC = 0x464C457F  # "\x7fELF" little endian

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELFHDR = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


class ElfFormatError(ValueError):
    """Raised when bytes do not hold a valid ELF image."""


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _ELFHDR.size

    @classmethod
    def parse(cls, data: bytes) -> "ElfHeader":
        """Read a header from the start of ``data``; the magic must match."""
        if len(data) < _ELFHDR.size:
            raise ElfFormatError("truncated ELF header")
        header = cls(*_ELFHDR.unpack_from(data))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self) -> bytes:
        """Serialise the header."""
        return _ELFHDR.pack(*astuple(self))


@dataclass(frozen=True)
class ProgHeader:
    """A program section header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    SIZE = _PROGHDR.size

    @classmethod
    def parse(cls, data: bytes) -> "ProgHeader":
        """Read a program header from the start of ``data``."""
        if len(data) < _PROGHDR.size:
            raise ElfFormatError("truncated program header")
        return cls(*_PROGHDR.unpack_from(data))

    def pack(self) -> bytes:
        """Serialise the program header."""
        return _PROGHDR.pack(*astuple(self))


def read_program_headers(data: bytes) -> list[ProgHeader]:
    """All program headers of the ELF image in ``data``."""
    header = ElfHeader.parse(data)
    view = memoryview(data)
    offsets = (header.phoff + i * _PROGHDR.size for i in range(header.phnum))
    return [ProgHeader.parse(view[off:off + _PROGHDR.size]) for off in offsets]