"""Reading and writing ELF64 file and program headers."""

import struct
from dataclasses import astuple, dataclass

ELF_MAGIC = 0x464C457F  # "\x7FELF" read as a little-endian word

PROG_LOAD = 1

PROG_FLAG_EXEC = 1
PROG_FLAG_WRITE = 2
PROG_FLAG_READ = 4

_ELF = struct.Struct("<I12sHHIQQQIHHHHHH")
_PROG = struct.Struct("<IIQQQQQQ")


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


def _pack(layout, record):
    try:
        return layout.pack(*astuple(record))
    except struct.error as exc:
        raise ElfFormatError(str(exc)) from exc


@dataclass
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = _ELF.size
    phentsize: int = _PROG.size
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _ELF.size

    @classmethod
    def parse(cls, data):
        """Decode a header from the start of ``data``."""
        if len(data) < _ELF.size:
            raise ElfFormatError("file too short for an ELF header")
        header = cls(*_ELF.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError("bad ELF magic")
        return header

    def pack(self):
        """Encode the header as bytes."""
        return _pack(_ELF, self)


@dataclass
class ProgramHeader:
    """One entry of the program header table."""

    type: int = PROG_LOAD
    flags: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    SIZE = _PROG.size

    @classmethod
    def parse(cls, data):
        """Decode a program header from the start of ``data``."""
        if len(data) < _PROG.size:
            raise ElfFormatError("data too short for a program header")
        return cls(*_PROG.unpack_from(data, 0))

    def pack(self):
        """Encode the program header as bytes."""
        return _pack(_PROG, self)


def program_headers(data, header):
    """Return the program headers that ``header`` describes within ``data``."""
    result = []
    for i in range(header.phnum):
        off = header.phoff + i * _PROG.size
        if off + _PROG.size > len(data):
            raise ElfFormatError("program header table runs past end of file")
        result.append(ProgramHeader.parse(data[off:off + _PROG.size]))
    return result