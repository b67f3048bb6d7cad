"""Print arguments separated by spaces."""

import sys


def echo(args):
    """Text echo prints for ``args``: joined by spaces, newline-terminated."""
    args = list(args)
    if not args:
        return ""
    return " ".join(args) + "\n"


def main(argv=None):
    """Write the arguments to standard output."""
    args = sys.argv[1:] if argv is None else list(argv)
    sys.stdout.write(echo(args))
    return 0


if __name__ == "__main__":
    sys.exit(main())