"""Count lines, words and bytes."""

import sys
from dataclasses import dataclass

from .fmt import printf

_CHUNK = 512
# NUL counts as a separator as well as the usual blanks.
_SEPARATORS = frozenset(b" \r\t\n\v\0")


@dataclass(frozen=True)
class Counts:
    """Line, word and byte totals of a stream."""

    lines: int
    words: int
    chars: int


def count(stream):
    """Count lines, words and bytes read from ``stream``."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(_CHUNK):
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in _SEPARATORS:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return Counts(lines, words, chars)


def _report(stream, name):
    try:
        counts = count(stream)
    except OSError:
        printf("wc: read error\n")
        return 1
    sys.stdout.write(f"{counts.lines} {counts.words} {counts.chars} {name}\n")
    return 0


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        return _report(sys.stdin.buffer, "")
    for path in args:
        try:
            f = open(path, "rb")
        except OSError:
            printf("wc: cannot open %s\n", path)
            return 1
        with f:
            status = _report(f, path)
        if status:
            return status
    return 0