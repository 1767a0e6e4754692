"""A tiny grep supporting only the ^ . * $ operators."""

import sys

from .fmt import printf

# Longest partial line the reader can buffer; a longer line ends the search.
_LINE_LIMIT = 1023


def match(re, text):
    """Return True if ``re`` matches anywhere in ``text``."""
    if re.startswith("^"):
        return _matchhere(re[1:], text)
    return any(_matchhere(re, text[i:]) for i in range(len(text) + 1))


def _matchhere(re, text):
    if not re:
        return True
    if re[1:2] == "*":
        return _matchstar(re[0], re[2:], text)
    if re == "$":
        return not text
    if text and (re[0] == "." or re[0] == text[0]):
        return _matchhere(re[1:], text[1:])
    return False


def _matchstar(c, re, text):
    while True:
        if _matchhere(re, text):
            return True
        if text and (text[0] == c or c == "."):
            text = text[1:]
        else:
            return False


def grep(pattern, stream, out):
    """Write every newline-terminated line of ``stream`` matching ``pattern``."""
    for line in stream:
        if not line.endswith("\n") or len(line) - 1 >= _LINE_LIMIT:
            break
        if match(pattern, line[:-1]):
            out.write(line)


def main(argv=None):
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, *paths = args
    if not paths:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for path in paths:
        try:
            f = open(path, encoding="utf-8", errors="replace", newline="")
        except OSError:
            printf("grep: cannot open %s\n", path)
            return 1
        with f:
            grep(pattern, f, sys.stdout)
    return 0