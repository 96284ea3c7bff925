"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from itertools import chain
from typing import BinaryIO, Iterable, Optional, Sequence

_SPACE = frozenset(b" \r\t\n\v\0")
_CHUNK = 512


@dataclass(frozen=True)
class Counts:
    """Line, word and byte counts."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def _tally(chunks: Iterable[bytes]) -> Counts:
    lines = words = chars = 0
    inword = False
    for byte in chain.from_iterable(chunks):
        chars += 1
        if byte == 0x0A:
            lines += 1
        if byte in _SPACE:
            inword = False
        elif not inword:
            words += 1
            inword = True
    return Counts(lines, words, chars)


def count(data: bytes) -> Counts:
    """Counts for a block of bytes."""
    return _tally([bytes(data)])


def wc(stream: BinaryIO, name: str = "") -> str:
    """Read ``stream`` to the end and return the report line for it."""
    c = _tally(iter(lambda: stream.read(_CHUNK), b""))
    return f"{c.lines} {c.words} {c.chars} {name}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Report counts for each named file, or for standard input."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if not args:
            print(wc(sys.stdin.buffer, ""))
            return 0
        for name in args:
            try:
                stream = open(name, "rb")
            except OSError:
                print(f"wc: cannot open {name}")
                return 1
            with stream:
                print(wc(stream, name))
    except OSError:
        print("wc: read error")
        return 1
    return 0