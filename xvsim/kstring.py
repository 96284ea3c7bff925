"""Byte-string helpers with C string semantics (NUL-terminated)."""

from __future__ import annotations

from itertools import takewhile
from typing import BinaryIO, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _bytes(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: BytesLike) -> bytes:
    """The part of ``s`` before its first NUL."""
    return _bytes(s).split(b"\0", 1)[0]


def _diff(a: bytes, b: bytes) -> int:
    return next((x - y for x, y in zip(a, b) if x != y), 0)


def memset(buf: bytearray, c: int, n: int) -> bytearray:
    """Fill the first ``n`` bytes of ``buf`` with ``c``; return ``buf``."""
    if n < 0 or n > len(buf):
        raise ValueError("memset range outside buffer")
    buf[:n] = bytes([c & 0xFF]) * n
    return buf


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Difference of the first unequal byte among the first ``n``, else 0."""
    a, b = _bytes(a), _bytes(b)
    if n < 0 or n > len(a) or n > len(b):
        raise ValueError("memcmp length exceeds input")
    return _diff(a[:n], b[:n])


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy ``n`` bytes within ``buf`` from ``src`` to ``dst``; overlap is safe."""
    if min(dst, src, n) < 0 or max(dst, src) + n > len(buf):
        raise ValueError("memmove range outside buffer")
    buf[dst:dst + n] = buf[src:src + n]
    return buf


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most ``n`` characters of two C strings."""
    if n <= 0:
        return 0
    a, b = _cstr(p)[:n], _cstr(q)[:n]
    return _diff(a + b"\0", b + b"\0")


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two C strings."""
    return _diff(_cstr(p) + b"\0", _cstr(q) + b"\0")


def strncpy(t: BytesLike, n: int) -> bytes:
    """An ``n``-byte buffer holding ``t``, zero padded; unterminated if ``t`` is long."""
    if n <= 0:
        return b""
    s = _cstr(t)[:n]
    return s + bytes(n - len(s))


def safestrcpy(t: BytesLike, n: int) -> bytes:
    """The bytes written into an ``n``-byte buffer: ``t`` cut to fit, always terminated."""
    if n <= 0:
        return b""
    return _cstr(t)[: n - 1] + b"\0"


def strlen(s: BytesLike) -> int:
    """Length of a C string."""
    return len(_cstr(s))


def strchr(s: BytesLike, c: Union[int, str, bytes]) -> Optional[int]:
    """Index of the first ``c`` before the terminator, or None."""
    code = c if isinstance(c, int) else _bytes(c)[0]
    idx = _cstr(s).find(bytes([code & 0xFF]))
    return None if idx < 0 else idx


def atoi(s: BytesLike) -> int:
    """Value of the leading decimal digits of ``s`` (no sign, no spaces)."""
    digits = bytes(takewhile(lambda b: 0x30 <= b <= 0x39, _bytes(s)))
    return int(digits) if digits else 0


def gets(stream: BinaryIO, max: int) -> bytes:
    """Read one line (at most ``max - 1`` bytes) ending at newline, CR or EOF."""
    line = bytearray()
    while len(line) + 1 < max:
        c = stream.read(1)
        if not c:
            break
        line += c
        if c in (b"\n", b"\r"):
            break
    return bytes(line)