"""Parser for shell command lines: pipes, lists, background jobs, redirections and blocks."""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .headers import OpenFlag

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """Raised when a command line cannot be parsed."""

    def __init__(self, message, leftovers=None):
        super().__init__(message)
        self.leftovers = leftovers


@dataclass
class ExecCmd:
    """Run a program with arguments; ``argv[0]`` names the program."""

    argv: List[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """Run ``cmd`` with descriptor ``fd`` reopened on ``file`` using ``mode``."""

    cmd: "Command"
    file: str
    mode: OpenFlag
    fd: int


@dataclass
class PipeCmd:
    """Connect the output of ``left`` to the input of ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """Run ``left`` to completion, then ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """Run ``cmd`` without waiting for it."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]

# token kinds returned by the scanner
_END = ""
_WORD = "a"
_APPEND = "+"


class _Scanner:
    def __init__(self, text):
        self.text = text
        self.pos = 0

    def _skip(self):
        while self.pos < len(self.text) and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks):
        """True if the next non-blank character is one of ``toks``."""
        self._skip()
        return self.pos < len(self.text) and self.text[self.pos] in toks

    def at_end(self):
        self._skip()
        return self.pos == len(self.text)

    def rest(self):
        return self.text[self.pos:]

    def gettoken(self):
        """Consume one token; return its kind and its text."""
        self._skip()
        text = self.text
        start = self.pos
        if self.pos == len(text):
            kind = _END
        else:
            c = text[self.pos]
            if c in "|();&<":
                kind = c
                self.pos += 1
            elif c == ">":
                kind = c
                self.pos += 1
                if self.pos < len(text) and text[self.pos] == ">":
                    kind = _APPEND
                    self.pos += 1
            else:
                kind = _WORD
                while (
                    self.pos < len(text)
                    and text[self.pos] not in WHITESPACE
                    and text[self.pos] not in SYMBOLS
                ):
                    self.pos += 1
        value = text[start:self.pos]
        self._skip()
        return kind, value


def _parse_line(sc):
    cmd = _parse_pipe(sc)
    while sc.peek("&"):
        sc.gettoken()
        cmd = BackCmd(cmd)
    if sc.peek(";"):
        sc.gettoken()
        cmd = ListCmd(cmd, _parse_line(sc))
    return cmd


def _parse_pipe(sc):
    cmd = _parse_exec(sc)
    if sc.peek("|"):
        sc.gettoken()
        cmd = PipeCmd(cmd, _parse_pipe(sc))
    return cmd


_REDIRECTIONS = {
    "<": (OpenFlag.RDONLY, 0),
    ">": (OpenFlag.WRONLY | OpenFlag.CREATE | OpenFlag.TRUNC, 1),
    _APPEND: (OpenFlag.WRONLY | OpenFlag.CREATE, 1),
}


def _parse_redirs(cmd, sc):
    while sc.peek("<>"):
        tok, _ = sc.gettoken()
        kind, name = sc.gettoken()
        if kind != _WORD:
            raise ShellSyntaxError("missing file for redirection")
        mode, fd = _REDIRECTIONS[tok]
        cmd = RedirCmd(cmd, name, mode, fd)
    return cmd


def _parse_block(sc):
    if not sc.peek("("):
        raise ShellSyntaxError("parseblock")
    sc.gettoken()
    cmd = _parse_line(sc)
    if not sc.peek(")"):
        raise ShellSyntaxError("syntax - missing )")
    sc.gettoken()
    return _parse_redirs(cmd, sc)


def _parse_exec(sc):
    if sc.peek("("):
        return _parse_block(sc)
    ecmd = ExecCmd()
    ret = _parse_redirs(ecmd, sc)
    while not sc.peek("|)&;"):
        kind, word = sc.gettoken()
        if kind == _END:
            break
        if kind != _WORD:
            raise ShellSyntaxError("syntax")
        ecmd.argv.append(word)
        if len(ecmd.argv) >= MAXARGS:
            raise ShellSyntaxError("too many args")
        ret = _parse_redirs(ret, sc)
    return ret


def parse_command(s) -> Optional[Command]:
    """Parse one command line into a command tree."""
    text = s.split("\0", 1)[0]
    sc = _Scanner(text)
    cmd = _parse_line(sc)
    if not sc.at_end():
        raise ShellSyntaxError("syntax", leftovers=sc.rest())
    return cmd