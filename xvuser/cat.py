"""Concatenate files to standard output."""

import sys

BUFSIZE = 512


def cat(stream, out):
    """Copy the binary ``stream`` to ``out`` in fixed-size chunks."""
    while True:
        try:
            chunk = stream.read(BUFSIZE)
        except OSError as exc:
            raise OSError("read error") from exc
        if not chunk:
            return
        try:
            written = out.write(chunk)
        except OSError as exc:
            raise OSError("write error") from exc
        if written is not None and written != len(chunk):
            raise OSError("write error")


def main(argv=None):
    """Run cat on the given paths, or on standard input if none."""
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout.buffer
    try:
        if not args:
            cat(sys.stdin.buffer, out)
            return 0
        for path in args:
            try:
                f = open(path, "rb")
            except OSError:
                sys.stderr.write(f"cat: cannot open {path}\n")
                return 1
            with f:
                cat(f, out)
    except OSError as exc:
        sys.stderr.write(f"cat: {exc}\n")
        return 1
    finally:
        out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())