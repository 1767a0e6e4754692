"""A small command shell: parsing and in-process execution of command lines."""

import io
import os
import sys
from dataclasses import dataclass, field

from .coreutils import cat as _cat
from .coreutils import ls as _ls
from .filetypes import OpenFlags, open_mode
from .grep import grep as _grep
from .ulib import gets
from .wc import count as _count

MAXARGS = 10
_WHITESPACE = " \t\r\n\v"
_SYMBOLS = "<|>&;()"
_LINE_MAX = 100


class ShellSyntaxError(ValueError):
    """A command line could not be parsed."""

    def __init__(self, message, leftover=None):
        super().__init__(message)
        self.leftover = leftover


@dataclass
class ExecCmd:
    argv: list = field(default_factory=list)


@dataclass
class RedirCmd:
    cmd: object
    file: str
    mode: OpenFlags
    fd: int


@dataclass
class PipeCmd:
    left: object
    right: object


@dataclass
class ListCmd:
    left: object
    right: object


@dataclass
class BackCmd:
    cmd: object


def _skip_ws(line, pos):
    while pos < len(line) and line[pos] in _WHITESPACE:
        pos += 1
    return pos


def gettoken(line, pos):
    """Read one token at ``pos``; return (kind, text, next position).

    ``kind`` is '' at end of input, 'a' for a word, '+' for '>>', or the
    symbol character itself.
    """
    s = _skip_ws(line, pos)
    start = s
    if s >= len(line):
        kind = ""
    else:
        kind = line[s]
        if kind in "|();&<":
            s += 1
        elif kind == ">":
            s += 1
            if s < len(line) and line[s] == ">":
                kind = "+"
                s += 1
        else:
            kind = "a"
            while (s < len(line) and line[s] not in _WHITESPACE
                   and line[s] not in _SYMBOLS):
                s += 1
    text = line[start:s]
    return kind, text, _skip_ws(line, s)


class _Parser:
    def __init__(self, line):
        self.line = line
        self.pos = 0

    def peek(self, toks):
        self.pos = _skip_ws(self.line, self.pos)
        return self.pos < len(self.line) and self.line[self.pos] in toks

    def token(self):
        kind, text, self.pos = gettoken(self.line, self.pos)
        return kind, text

    def parse(self):
        cmd = self.parseline()
        self.peek("")
        if self.pos != len(self.line):
            raise ShellSyntaxError("syntax", leftover=self.line[self.pos:])
        return cmd

    def parseline(self):
        cmd = self.parsepipe()
        while self.peek("&"):
            self.token()
            cmd = BackCmd(cmd)
        if self.peek(";"):
            self.token()
            cmd = ListCmd(cmd, self.parseline())
        return cmd

    def parsepipe(self):
        cmd = self.parseexec()
        if self.peek("|"):
            self.token()
            cmd = PipeCmd(cmd, self.parsepipe())
        return cmd

    def parseredirs(self, cmd):
        while self.peek("<>"):
            tok, _ = self.token()
            kind, file = self.token()
            if kind != "a":
                raise ShellSyntaxError("missing file for redirection")
            if tok == "<":
                cmd = RedirCmd(cmd, file, OpenFlags.RDONLY, 0)
            elif tok == ">":
                cmd = RedirCmd(cmd, file,
                               OpenFlags.WRONLY | OpenFlags.CREATE | OpenFlags.TRUNC, 1)
            else:
                cmd = RedirCmd(cmd, file, OpenFlags.WRONLY | OpenFlags.CREATE, 1)
        return cmd

    def parseblock(self):
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.token()
        cmd = self.parseline()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.token()
        return self.parseredirs(cmd)

    def parseexec(self):
        if self.peek("("):
            return self.parseblock()
        ecmd = ExecCmd()
        ret = self.parseredirs(ecmd)
        while not self.peek("|)&;"):
            kind, text = self.token()
            if kind == "":
                break
            if kind != "a":
                raise ShellSyntaxError("syntax")
            ecmd.argv.append(text)
            if len(ecmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.parseredirs(ret)
        return ret


def parse_command(line):
    """Parse a command line into a command tree."""
    return _Parser(line).parse()


def _echo(argv, stdin, stdout, stderr):
    if len(argv) > 1:
        stdout.write(" ".join(argv[1:]) + "\n")
    return 0


def _cat_cmd(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        _cat(stdin, stdout)
        return 0
    for path in argv[1:]:
        try:
            f = open(path, encoding="utf-8", errors="replace", newline="")
        except OSError:
            stderr.write(f"cat: cannot open {path}\n")
            return 1
        with f:
            _cat(f, stdout)
    return 0


def _grep_cmd(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern, paths = argv[1], argv[2:]
    if not paths:
        _grep(pattern, stdin, stdout)
        return 0
    for path in paths:
        try:
            f = open(path, encoding="utf-8", errors="replace", newline="")
        except OSError:
            stdout.write(f"grep: cannot open {path}\n")
            return 1
        with f:
            _grep(pattern, f, stdout)
    return 0


def _wc_cmd(argv, stdin, stdout, stderr):
    sources = argv[1:]
    if not sources:
        c = _count(stdin)
        stdout.write(f"{c.lines} {c.words} {c.chars} \n")
        return 0
    for path in sources:
        try:
            f = open(path, "rb")
        except OSError:
            stdout.write(f"wc: cannot open {path}\n")
            return 1
        with f:
            c = _count(f)
        stdout.write(f"{c.lines} {c.words} {c.chars} {path}\n")
    return 0


def _ls_cmd(argv, stdin, stdout, stderr):
    for path in argv[1:] or ["."]:
        _ls(path, stdout)
    return 0


def _mkdir_cmd(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        stderr.write("Usage: mkdir files...\n")
        return 1
    for path in argv[1:]:
        try:
            os.mkdir(path)
        except OSError:
            stderr.write(f"mkdir: {path} failed to create\n")
            break
    return 0


def _rm_cmd(argv, stdin, stdout, stderr):
    if len(argv) < 2:
        stderr.write("Usage: rm files...\n")
        return 1
    for path in argv[1:]:
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                os.rmdir(path)
            else:
                os.unlink(path)
        except OSError:
            stderr.write(f"rm: {path} failed to delete\n")
            break
    return 0


def _default_commands():
    return {
        "echo": _echo,
        "cat": _cat_cmd,
        "grep": _grep_cmd,
        "wc": _wc_cmd,
        "ls": _ls_cmd,
        "mkdir": _mkdir_cmd,
        "rm": _rm_cmd,
    }


class Shell:
    """Runs parsed commands against a table of named commands.

    A command is a callable ``f(argv, stdin, stdout, stderr)`` returning an
    exit status (``None`` counts as 0).
    """

    def __init__(self, commands=None, stdin=None, stdout=None, stderr=None):
        self.commands = _default_commands() if commands is None else dict(commands)
        self.stdin = sys.stdin if stdin is None else stdin
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr

    def run(self, cmd):
        """Execute a command tree and return its exit status."""
        return self._run(cmd, self.stdin, self.stdout)

    def _run(self, cmd, stdin, stdout):
        if cmd is None:
            return 1
        if isinstance(cmd, ExecCmd):
            if not cmd.argv:
                return 1
            func = self.commands.get(cmd.argv[0])
            if func is None:
                self.stderr.write(f"exec {cmd.argv[0]} failed\n")
                return 0
            status = func(list(cmd.argv), stdin, stdout, self.stderr)
            return 0 if status is None else status
        if isinstance(cmd, RedirCmd):
            try:
                fd = os.open(cmd.file, open_mode(cmd.mode), 0o666)
            except OSError:
                self.stderr.write(f"open {cmd.file} failed\n")
                return 1
            reading = cmd.mode == OpenFlags.RDONLY
            with os.fdopen(fd, "r" if reading else "w",
                           encoding="utf-8", newline="") as f:
                if cmd.fd == 0:
                    return self._run(cmd.cmd, f, stdout)
                return self._run(cmd.cmd, stdin, f)
        if isinstance(cmd, ListCmd):
            self._run(cmd.left, stdin, stdout)
            return self._run(cmd.right, stdin, stdout)
        if isinstance(cmd, PipeCmd):
            buf = io.StringIO()
            self._run(cmd.left, stdin, buf)
            buf.seek(0)
            self._run(cmd.right, buf, stdout)
            return 0
        if isinstance(cmd, BackCmd):
            self._run(cmd.cmd, stdin, stdout)
            return 0
        raise TypeError(f"not a command: {cmd!r}")

    def run_line(self, line):
        """Parse and run one input line; return its exit status."""
        if line.startswith("cd "):
            path = line[3:]
            if path.endswith("\n"):
                path = path[:-1]
            try:
                os.chdir(path)
            except OSError:
                self.stderr.write(f"cannot cd {path}\n")
                return 1
            return 0
        try:
            cmd = parse_command(line)
        except ShellSyntaxError as exc:
            if exc.leftover is not None:
                self.stderr.write(f"leftovers: {exc.leftover}\n")
            self.stderr.write(f"{exc}\n")
            return 1
        return self.run(cmd)

    def repl(self):
        """Prompt for and run lines until end of input."""
        while True:
            self.stderr.write("$ ")
            line = gets(self.stdin, _LINE_MAX)
            if not line:
                return 0
            self.run_line(line)


def main(argv=None):
    return Shell().repl()