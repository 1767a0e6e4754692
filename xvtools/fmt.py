"""Minimal printf-style formatting understanding %d, %u, %x, %p, %s and %%."""

import re
import sys

_U32 = 0xFFFFFFFF
_U64 = 0xFFFFFFFFFFFFFFFF
_SIGN32 = 0x80000000

# A conversion is '%' followed by an optional length prefix and a letter.
# Anything else after '%' is echoed back verbatim to draw attention.
_SPEC = re.compile(r"%(?:(ll[dux]|l[dux]|[duxps%])|(.))?", re.DOTALL)

_INT_CONVERSIONS = {"d": (10, True), "u": (10, False), "x": (16, False)}


def _format_int(value, base, signed):
    """Render an integer the way a 32-bit int/uint is printed."""
    x = int(value) & _U32
    negative = signed and bool(x & _SIGN32)
    if negative:
        x = (-x) & _U32
    digits = format(x, "X" if base == 16 else "d")
    return "-" + digits if negative else digits


def sprintf(fmt, *args):
    """Format ``args`` according to ``fmt`` and return the resulting string."""
    values = iter(args)

    def next_arg():
        try:
            return next(values)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def convert(m):
        spec, unknown = m.groups()
        if unknown is not None:
            return "%" + unknown
        if spec is None:
            return ""
        conversion = spec[-1]
        if conversion == "%":
            return "%"
        if conversion == "s":
            s = next_arg()
            return "(null)" if s is None else str(s)
        if conversion == "p":
            return "0x" + format(int(next_arg()) & _U64, "016X")
        base, signed = _INT_CONVERSIONS[conversion]
        return _format_int(next_arg(), base, signed)

    return _SPEC.sub(convert, fmt)


def fprintf(stream, fmt, *args):
    """Write formatted output to ``stream``."""
    stream.write(sprintf(fmt, *args))


def printf(fmt, *args):
    """Write formatted output to standard output."""
    fprintf(sys.stdout, fmt, *args)