"""Small file utilities: cat, echo, kill, ln, ls, mkdir and rm."""

import os
import signal
import sys

from .filetypes import FileType, Stat
from .ulib import atoi

_CHUNK = 512
_DIRSIZ = 14
_PATHBUF = 512
_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


class _CatError(OSError):
    """Reading the input or writing the output failed."""


def _args(argv):
    return sys.argv[1:] if argv is None else list(argv)


def cat(stream, out):
    """Copy ``stream`` to ``out`` in fixed-size chunks."""
    while True:
        try:
            chunk = stream.read(_CHUNK)
        except OSError as exc:
            raise _CatError("read error") from exc
        if not chunk:
            return
        try:
            written = out.write(chunk)
        except OSError as exc:
            raise _CatError("write error") from exc
        if written is not None and written != len(chunk):
            raise _CatError("write error")


def cat_main(argv=None):
    args = _args(argv)
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
    except _CatError as exc:
        sys.stderr.write(f"cat: {exc}\n")
        return 1
    finally:
        out.flush()
    return 0


def echo_main(argv=None):
    args = _args(argv)
    if args:
        sys.stdout.write(" ".join(args) + "\n")
    return 0


def kill_main(argv=None):
    args = _args(argv)
    if not args:
        sys.stderr.write("usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            continue
        try:
            os.kill(pid, _KILL_SIGNAL)
        except OSError:
            pass
    return 0


def ln_main(argv=None):
    args = _args(argv)
    if len(args) != 2:
        sys.stderr.write("Usage: ln old new\n")
        return 1
    old, new = args
    try:
        os.link(old, new)
    except OSError:
        sys.stderr.write(f"link {old} {new}: failed\n")
    return 0


def fmtname(path):
    """Return the last path component, blank-padded to the name width."""
    name = path[path.rfind("/") + 1:]
    if len(name) >= _DIRSIZ:
        return name
    return name.ljust(_DIRSIZ)


def _line(path, st):
    return f"{fmtname(path)} {int(st.type)} {st.ino} {st.size}\n"


def ls(path, out):
    """List ``path`` to ``out``: a file's own entry or a directory's entries."""
    try:
        st = Stat.from_path(path)
        names = sorted(os.listdir(path)) if st.type is FileType.DIR else []
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    if st.type is not FileType.DIR:
        out.write(_line(path, st))
        return
    if len(path) + 1 + _DIRSIZ + 1 > _PATHBUF:
        out.write("ls: path too long\n")
        return
    for name in [".", ".."] + names:
        entry = f"{path}/{name}"
        try:
            entry_st = Stat.from_path(entry)
        except OSError:
            out.write(f"ls: cannot stat {entry}\n")
            continue
        out.write(_line(entry, entry_st))


def ls_main(argv=None):
    args = _args(argv) or ["."]
    for path in args:
        ls(path, sys.stdout)
    return 0


def mkdir_main(argv=None):
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: mkdir files...\n")
        return 1
    for path in args:
        try:
            os.mkdir(path)
        except OSError:
            sys.stderr.write(f"mkdir: {path} failed to create\n")
            break
    return 0


def rm_main(argv=None):
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: rm files...\n")
        return 1
    for path in args:
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                os.rmdir(path)
            else:
                os.unlink(path)
        except OSError:
            sys.stderr.write(f"rm: {path} failed to delete\n")
            break
    return 0