"""Minimal printf: %d %u %x with l/ll variants, %p, %s and %%."""

import operator
import re
import sys

_DIGITS = "0123456789ABCDEF"
_SPEC = re.compile(r"%(ll[dux]|l[dux]|.)?", re.DOTALL)

# conversion -> (base, signed)
_INTEGER = {
    "d": (10, True),
    "ld": (10, True),
    "lld": (10, True),
    "u": (10, False),
    "lu": (10, False),
    "llu": (10, False),
    "x": (16, False),
    "lx": (16, False),
    "llx": (16, False),
}


def _digits(x, base):
    out = []
    while True:
        out.append(_DIGITS[x % base])
        x //= base
        if x == 0:
            return "".join(reversed(out))


def _format_int(value, base, signed):
    # Every integer conversion goes through a 32-bit int.
    x = operator.index(value) & 0xFFFFFFFF
    if signed and x & 0x80000000:
        return "-" + _digits(0x100000000 - x, base)
    return _digits(x, base)


def _format_ptr(value):
    return "0x" + format(operator.index(value) & 0xFFFFFFFFFFFFFFFF, "016X")


def _format_str(value):
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("latin-1")
    return str(value).split("\0", 1)[0]


def format_string(fmt, *args):
    """Render ``fmt`` with ``args`` and return the resulting text."""
    pending = iter(args)

    def take():
        try:
            return next(pending)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def convert(m):
        spec = m.group(1)
        if spec is None:
            return ""
        if spec in _INTEGER:
            base, signed = _INTEGER[spec]
            return _format_int(take(), base, signed)
        if spec == "p":
            return _format_ptr(take())
        if spec == "s":
            return _format_str(take())
        if spec == "%":
            return "%"
        return "%" + spec

    return _SPEC.sub(convert, fmt)


def fprintf(stream, fmt, *args):
    """Write formatted text to ``stream``."""
    stream.write(format_string(fmt, *args))


def printf(fmt, *args):
    """Write formatted text to standard output."""
    fprintf(sys.stdout, fmt, *args)