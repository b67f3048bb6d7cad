"""Count lines, words and bytes."""

import sys
from dataclasses import dataclass

BUFSIZE = 512
# A NUL byte counts as a separator too.
_SEPARATORS = frozenset(b" \r\t\n\v\0")


@dataclass
class WordCount:
    """Totals for one input."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def wc(stream):
    """Count lines, words and bytes of a binary stream."""
    lines = words = chars = 0
    in_word = False
    for chunk in iter(lambda: stream.read(BUFSIZE), b""):
        for byte in chunk:
            chars += 1
            if byte == 0x0A:
                lines += 1
            if byte in _SEPARATORS:
                in_word = False
            elif not in_word:
                words += 1
                in_word = True
    return WordCount(lines, words, chars)


def _report(counts, name):
    sys.stdout.write(f"{counts.lines} {counts.words} {counts.chars} {name}\n")


def main(argv=None):
    """Print counts for each path, or for standard input if none."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        if not args:
            _report(wc(sys.stdin.buffer), "")
            return 0
        for path in args:
            try:
                f = open(path, "rb")
            except OSError:
                sys.stdout.write(f"wc: cannot open {path}\n")
                return 1
            with f:
                _report(wc(f), path)
    except OSError:
        sys.stdout.write("wc: read error\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())