import pytest

from xvtools.elf import (
    ELF_MAGIC,
    PROG_FLAG_EXEC,
    PROG_FLAG_READ,
    PROG_LOAD,
    ElfFormatError,
    ElfHeader,
    ProgramHeader,
    program_headers,
)


def test_header_starts_with_magic_bytes():
    data = ElfHeader(entry=0x1000).pack()
    assert data[:4] == b"\x7fELF"


def test_header_round_trip():
    header = ElfHeader(type=2, machine=0xF3, version=1, entry=0x1234,
                       phoff=64, phnum=2, flags=5)
    assert ElfHeader.parse(header.pack()) == header


def test_header_size_matches_layout():
    assert len(ElfHeader().pack()) == 64


def test_bad_magic_rejected():
    data = bytearray(ElfHeader().pack())
    data[0] = 0
    with pytest.raises(ElfFormatError):
        ElfHeader.parse(bytes(data))


def test_short_header_rejected():
    with pytest.raises(ElfFormatError):
        ElfHeader.parse(b"\x7fELF")


def test_program_header_round_trip():
    ph = ProgramHeader(type=PROG_LOAD, flags=PROG_FLAG_READ | PROG_FLAG_EXEC,
                       off=0x1000, vaddr=0, paddr=0, filesz=100, memsz=200,
                       align=4096)
    assert ProgramHeader.parse(ph.pack()) == ph


def test_program_headers_table():
    phs = [ProgramHeader(vaddr=0x1000 * i, filesz=i, memsz=i) for i in range(3)]
    header = ElfHeader(phoff=ElfHeader.SIZE, phnum=len(phs))
    image = header.pack() + b"".join(ph.pack() for ph in phs)
    parsed = ElfHeader.parse(image)
    assert parsed.magic == ELF_MAGIC
    assert program_headers(image, parsed) == phs


def test_truncated_program_table_rejected():
    header = ElfHeader(phoff=ElfHeader.SIZE, phnum=2)
    image = header.pack() + ProgramHeader().pack()
    with pytest.raises(ElfFormatError):
        program_headers(image, header)


def test_pack_out_of_range_rejected():
    with pytest.raises(ElfFormatError):
        ProgramHeader(type=-1).pack()