"""Remove files and empty directories."""

from __future__ import annotations

import os
import sys
from typing import Optional, Sequence


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Remove each named path, stopping at the first that cannot be removed."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: rm files...", file=sys.stderr)
        return 1
    for path in args:
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                os.rmdir(path)
            else:
                os.unlink(path)
        except OSError:
            print(f"rm: {path} failed to delete", file=sys.stderr)
            return 1
    return 0