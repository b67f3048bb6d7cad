"""Small C-library helpers whose behaviour programs rely on."""

import os
import stat as _mode
from dataclasses import dataclass

from .headers import FileType, Stat


@dataclass
class Sysinfo:
    """System-wide counters reported by the sysinfo call."""

    freemem: int = 0
    nproc: int = 0
    nopenfiles: int = 0


def _as_bytes(s):
    if isinstance(s, str):
        return s.encode("utf-8")
    return bytes(s)


def atoi(s):
    """Value of the leading decimal digits of ``s``; no sign, no blanks."""
    n = 0
    for ch in s:
        if not "0" <= ch <= "9":
            break
        n = n * 10 + ord(ch) - ord("0")
    return n


def strcmp(p, q):
    """Compare two strings byte by byte as unsigned chars."""
    a = _as_bytes(p).split(b"\0", 1)[0]
    b = _as_bytes(q).split(b"\0", 1)[0]
    for x, y in zip(a, b):
        if x != y:
            return x - y
    if len(a) == len(b):
        return 0
    return (a[len(b)] if len(a) > len(b) else 0) - (b[len(a)] if len(b) > len(a) else 0)


def memcmp(s1, s2, n):
    """Compare the first ``n`` bytes of two buffers."""
    a, b = _as_bytes(s1), _as_bytes(s2)
    if n < 0 or len(a) < n or len(b) < n:
        raise ValueError("buffers shorter than the compared length")
    for x, y in zip(a[:n], b[:n]):
        if x != y:
            return x - y
    return 0


def gets(stream, max):
    """Read one line of at most ``max - 1`` characters, keeping its terminator.

    Stops after a newline or carriage return; returns an empty value at EOF.
    """
    line = stream.read(0)
    while len(line) + 1 < max:
        c = stream.read(1)
        if not c:
            break
        line += c
        if c in ("\n", "\r", b"\n", b"\r"):
            break
    return line


def stat(path):
    """Status of the file at ``path``; raises OSError if it cannot be opened."""
    st = os.stat(path)
    if _mode.S_ISDIR(st.st_mode):
        kind = FileType.DIR
    elif _mode.S_ISREG(st.st_mode):
        kind = FileType.FILE
    else:
        kind = FileType.DEVICE
    return Stat(dev=st.st_dev, ino=st.st_ino, type=kind, nlink=st.st_nlink, size=st.st_size)