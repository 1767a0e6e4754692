"""File types, open flags and file status records."""

import os
import stat as _stat
from dataclasses import dataclass
from enum import IntEnum, IntFlag


class FileType(IntEnum):
    """Kind of object a path refers to."""

    DIR = 1
    FILE = 2
    DEVICE = 3


class OpenFlags(IntFlag):
    """Flags accepted when opening a file."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


@dataclass(frozen=True)
class Stat:
    """Status of a file."""

    dev: int
    ino: int
    type: FileType
    nlink: int
    size: int

    @classmethod
    def from_path(cls, path):
        """Return the status of ``path``; raises OSError if it cannot be read."""
        st = os.stat(path)
        if _stat.S_ISDIR(st.st_mode):
            kind = FileType.DIR
        elif _stat.S_ISREG(st.st_mode):
            kind = FileType.FILE
        else:
            kind = FileType.DEVICE
        return cls(
            dev=st.st_dev,
            ino=st.st_ino,
            type=kind,
            nlink=st.st_nlink,
            size=st.st_size,
        )


def open_mode(flags):
    """Translate ``OpenFlags`` into flags for ``os.open``."""
    flags = OpenFlags(flags)
    if flags & OpenFlags.RDWR:
        mode = os.O_RDWR
    elif flags & OpenFlags.WRONLY:
        mode = os.O_WRONLY
    else:
        mode = os.O_RDONLY
    if flags & OpenFlags.CREATE:
        mode |= os.O_CREAT
    if flags & OpenFlags.TRUNC:
        mode |= os.O_TRUNC
    return mode