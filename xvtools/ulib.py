"""Small string helpers with classic C-library semantics."""

from itertools import zip_longest


def atoi(s):
    """Return the value of the leading decimal digits of ``s`` (0 if none)."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return n


def gets(stream, max):
    """Read at most ``max - 1`` characters, stopping after a newline or CR."""
    pieces = []
    while len(pieces) + 1 < max:
        c = stream.read(1)
        if not c:
            break
        pieces.append(c)
        if c in ("\n", "\r", b"\n", b"\r"):
            break
    if pieces and isinstance(pieces[0], (bytes, bytearray)):
        return b"".join(pieces)
    return "".join(pieces)


def _codes(s):
    if isinstance(s, (bytes, bytearray)):
        return list(s)
    return [ord(c) for c in s]


def strcmp(p, q):
    """Compare two strings byte-wise; negative, zero or positive like C."""
    for a, b in zip_longest(_codes(p), _codes(q), fillvalue=0):
        if a != b or a == 0:
            return a - b
    return 0