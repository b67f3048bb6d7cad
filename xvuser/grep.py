"""Search for lines matching a simple regular expression.

Only the ``^``, ``.``, ``*`` and ``$`` operators are understood.
"""

import sys

BUFSIZE = 1024


def _cstr(s):
    return s.split("\0", 1)[0]


def _matchhere(re, ri, text, ti):
    """True if ``re[ri:]`` matches at the start of ``text[ti:]``."""
    while True:
        if ri == len(re):
            return True
        if ri + 1 < len(re) and re[ri + 1] == "*":
            return _matchstar(re[ri], re, ri + 2, text, ti)
        if re[ri] == "$" and ri + 1 == len(re):
            return ti == len(text)
        if ti < len(text) and (re[ri] == "." or re[ri] == text[ti]):
            ri += 1
            ti += 1
            continue
        return False


def _matchstar(c, re, ri, text, ti):
    """True if ``c*`` followed by ``re[ri:]`` matches at ``text[ti:]``."""
    while True:
        if _matchhere(re, ri, text, ti):
            return True
        if ti < len(text) and (text[ti] == c or c == "."):
            ti += 1
        else:
            return False


def match(re, text):
    """True if ``re`` matches anywhere in ``text``."""
    re = _cstr(re)
    text = _cstr(text)
    if re.startswith("^"):
        return _matchhere(re, 1, text, 0)
    return any(_matchhere(re, 0, text, start) for start in range(len(text) + 1))


def grep(pattern, stream, out):
    """Write every newline-terminated line of ``stream`` that matches ``pattern``.

    A final line without a newline is not examined, and reading stops once
    a partial line fills the whole buffer.
    """
    pending = ""
    while True:
        want = BUFSIZE - 1 - len(pending)
        if want <= 0:
            return
        chunk = stream.read(want)
        if not chunk:
            return
        pending += chunk
        *lines, pending = pending.split("\n")
        for line in lines:
            if match(pattern, line):
                out.write(line + "\n")


def main(argv=None):
    """Search the named files, or standard input if none are given."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, paths = args[0], args[1:]
    if not paths:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for path in paths:
        try:
            f = open(path, encoding="utf-8", errors="surrogateescape", newline="")
        except OSError:
            sys.stdout.write(f"grep: cannot open {path}\n")
            return 1
        with f:
            grep(pattern, f, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())