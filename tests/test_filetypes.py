import os

import pytest

from xvtools.filetypes import FileType, OpenFlags, Stat, open_mode


def test_stat_types_carry_format_values(tmp_path):
    path = tmp_path / "f"
    path.write_bytes(b"")
    assert Stat.from_path(tmp_path).type.value == 1
    assert Stat.from_path(path).type.value == 2
    assert open_mode(0x200) == os.O_RDONLY | os.O_CREAT
    assert open_mode(0x401) == os.O_WRONLY | os.O_TRUNC


def test_stat_of_regular_file(tmp_path):
    path = tmp_path / "f"
    path.write_bytes(b"hello")
    st = Stat.from_path(path)
    assert st.type is FileType.FILE
    assert st.size == 5
    assert st.ino == os.stat(path).st_ino
    assert st.nlink == 1


def test_stat_of_directory(tmp_path):
    assert Stat.from_path(tmp_path).type is FileType.DIR


def test_stat_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Stat.from_path(tmp_path / "nope")


def test_open_mode_read_only():
    assert open_mode(OpenFlags.RDONLY) == os.O_RDONLY


def test_open_mode_create_truncate_write():
    flags = OpenFlags.WRONLY | OpenFlags.CREATE | OpenFlags.TRUNC
    assert open_mode(flags) == os.O_WRONLY | os.O_CREAT | os.O_TRUNC


def test_open_mode_rdwr_from_int():
    assert open_mode(0x202) == os.O_RDWR | os.O_CREAT


def test_open_mode_creates_file(tmp_path):
    path = tmp_path / "new"
    fd = os.open(path, open_mode(OpenFlags.CREATE | OpenFlags.RDWR), 0o644)
    try:
        os.write(fd, b"ok")
    finally:
        os.close(fd)
    assert path.read_bytes() == b"ok"