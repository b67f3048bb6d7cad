"""List directory contents."""

import os
import sys

from .fmt import format_string
from .headers import FileType
from .ulib import stat

DIRSIZ = 14
BUFSIZE = 512


def fmtname(path):
    """Last component of ``path``, blank-padded to ``DIRSIZ`` characters."""
    name = path.rsplit("/", 1)[-1]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _line(path, st):
    return format_string("%s %d %d %d\n", fmtname(path), int(st.type), st.ino, st.size)


def ls(path, out):
    """Write one line per entry of ``path``: name, type, inode number, size."""
    try:
        st = stat(path)
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    if st.type != FileType.DIR:
        out.write(_line(path, st))
        return
    if len(path) + 1 + DIRSIZ + 1 > BUFSIZE:
        out.write("ls: path too long\n")
        return
    try:
        names = [".", ".."] + os.listdir(path)
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    for name in names:
        entry = f"{path}/{name}"
        try:
            est = stat(entry)
        except OSError:
            out.write(f"ls: cannot stat {entry}\n")
            continue
        out.write(_line(entry, est))


def main(argv=None):
    """List each path given, or the current directory."""
    args = sys.argv[1:] if argv is None else list(argv)
    for path in args or ["."]:
        ls(path, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())