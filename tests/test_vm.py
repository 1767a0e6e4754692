import pytest

from xvtools.memlayout import MAXVA, PGSIZE
from xvtools.vm import (
    AddressSpace,
    BadAddress,
    KernelPanic,
    OutOfMemory,
    PhysicalMemory,
    PteFlag,
    pa2pte,
    pg_round_down,
    pg_round_up,
    pte2pa,
    px,
)

WILD_ADDRS = [0x80000000, 0x3FFFFFE000, 0x3FFFFFF000, 0x4000000000,
              0xFFFFFFFFFFFFFFFF]


@pytest.fixture
def mem():
    return PhysicalMemory(npages=64)


@pytest.fixture
def space(mem):
    return AddressSpace(mem)


def test_rounding():
    assert pg_round_up(0) == 0
    assert pg_round_up(1) == PGSIZE
    assert pg_round_up(PGSIZE) == PGSIZE
    assert pg_round_down(PGSIZE + 1) == PGSIZE
    assert pg_round_down(PGSIZE - 1) == 0


def test_px_extracts_each_level():
    va = (5 << 30) | (7 << 21) | (9 << 12) | 0x123
    assert (px(2, va), px(1, va), px(0, va)) == (5, 7, 9)


def test_pte_round_trip():
    pa = 0x80042000
    assert pte2pa(pa2pte(pa) | PteFlag.V | PteFlag.R | PteFlag.U) == pa


def test_kalloc_hands_out_distinct_aligned_pages():
    mem = PhysicalMemory(npages=4)
    pages = [mem.kalloc() for _ in range(4)]
    assert len(set(pages)) == 4
    assert all(p % PGSIZE == 0 for p in pages)
    assert mem.free_pages() == 0
    with pytest.raises(OutOfMemory):
        mem.kalloc()


def test_kfree_rejects_bad_frees(mem):
    pa = mem.kalloc()
    with pytest.raises(KernelPanic):
        mem.kfree(pa + 1)
    mem.kfree(pa)
    with pytest.raises(KernelPanic):
        mem.kfree(pa)


def test_physical_read_out_of_range(mem):
    with pytest.raises(BadAddress):
        mem.read(mem.base + mem.size - 4, 8)


def test_physical_memory_rejects_unaligned_base():
    with pytest.raises(ValueError):
        PhysicalMemory(base=100, npages=1)


def test_map_and_walkaddr(mem, space):
    pa = mem.kalloc()
    space.map_pages(3 * PGSIZE, PGSIZE, pa, PteFlag.R | PteFlag.U)
    assert space.walkaddr(3 * PGSIZE) == pa
    assert space.walkaddr(4 * PGSIZE) is None
    assert space.walkaddr(MAXVA) is None


def test_walkaddr_ignores_kernel_only_pages(mem, space):
    space.map_pages(0, PGSIZE, mem.kalloc(), PteFlag.R | PteFlag.W)
    assert space.walk(0, False) is not None
    assert space.walkaddr(0) is None


def test_map_pages_panics(mem, space):
    pa = mem.kalloc()
    with pytest.raises(KernelPanic):
        space.map_pages(1, PGSIZE, pa, PteFlag.R)
    with pytest.raises(KernelPanic):
        space.map_pages(0, PGSIZE + 1, pa, PteFlag.R)
    with pytest.raises(KernelPanic):
        space.map_pages(0, 0, pa, PteFlag.R)
    space.map_pages(0, PGSIZE, pa, PteFlag.R)
    with pytest.raises(KernelPanic, match="remap"):
        space.map_pages(0, PGSIZE, pa, PteFlag.R)


def test_walk_panics_beyond_maxva(space):
    with pytest.raises(KernelPanic):
        space.walk(MAXVA, False)


def test_unmap_unmapped_panics(space):
    with pytest.raises(KernelPanic):
        space.unmap(0, 1, True)
    with pytest.raises(KernelPanic):
        space.unmap(10, 1, True)


def test_grow_and_free_return_every_page(mem):
    initial = mem.free_pages()
    space = AddressSpace(mem)
    assert space.grow(0, 3 * PGSIZE) == 3 * PGSIZE
    assert mem.free_pages() < initial
    space.free(3 * PGSIZE)
    assert mem.free_pages() == initial


def test_grow_smaller_and_shrink_larger_are_no_ops(space):
    assert space.grow(3 * PGSIZE, PGSIZE) == 3 * PGSIZE
    assert space.shrink(PGSIZE, 3 * PGSIZE) == PGSIZE


def test_shrink_keeps_partial_page(space):
    space.grow(0, 2 * PGSIZE)
    assert space.shrink(2 * PGSIZE, PGSIZE + 10) == PGSIZE + 10
    assert space.walkaddr(PGSIZE) is not None
    assert space.shrink(PGSIZE + 10, PGSIZE) == PGSIZE
    assert space.walkaddr(PGSIZE) is None
    assert space.walkaddr(0) is not None


def test_grow_out_of_memory_cleans_up():
    mem = PhysicalMemory(npages=4)
    space = AddressSpace(mem)
    with pytest.raises(OutOfMemory):
        space.grow(0, 10 * PGSIZE)
    assert space.walkaddr(0) is None
    space.free(0)
    assert mem.free_pages() == 4


def test_copy_round_trip_across_pages(space):
    space.grow(0, 2 * PGSIZE, PteFlag.W)
    space.copyout(PGSIZE - 2, b"hello")
    assert space.copyin(PGSIZE - 2, 5) == b"hello"
    assert space.copyin(0, 0) == b""


def test_copyout_needs_write_permission(space):
    space.grow(0, PGSIZE)
    with pytest.raises(BadAddress):
        space.copyout(0, b"x")


@pytest.mark.parametrize("addr", WILD_ADDRS)
def test_wild_addresses_are_refused(space, addr):
    space.grow(0, PGSIZE, PteFlag.W)
    with pytest.raises(BadAddress):
        space.copyin(addr, 8192)
    with pytest.raises(BadAddress):
        space.copyout(addr, bytes(8192))
    with pytest.raises(BadAddress):
        space.copyinstr(addr, 128)


def test_copyout_to_unmapped_zero(space):
    with pytest.raises(BadAddress):
        space.copyout(0, bytes(8192))


def test_copyinstr(space):
    space.grow(0, 2 * PGSIZE, PteFlag.W)
    space.copyout(PGSIZE - 3, b"abcdef\0")
    assert space.copyinstr(PGSIZE - 3, 64) == b"abcdef"
    with pytest.raises(BadAddress):
        space.copyinstr(PGSIZE - 3, 3)


def test_copyinstr_past_last_page(space):
    space.grow(0, PGSIZE, PteFlag.W)
    space.copyout(PGSIZE - 1, b"x")
    with pytest.raises(BadAddress):
        space.copyinstr(PGSIZE - 1, 100)


def test_copy_to_duplicates_memory(mem, space):
    space.grow(0, 2 * PGSIZE, PteFlag.W)
    space.copyout(PGSIZE - 2, b"hello")
    child = AddressSpace(mem)
    space.copy_to(child, 2 * PGSIZE)
    assert child.copyin(PGSIZE - 2, 5) == b"hello"
    space.copyout(PGSIZE - 2, b"HELLO")
    assert child.copyin(PGSIZE - 2, 5) == b"hello"
    assert child.walkaddr(0) != space.walkaddr(0)


def test_copy_to_out_of_memory():
    mem = PhysicalMemory(npages=6)
    parent = AddressSpace(mem)
    parent.grow(0, 2 * PGSIZE)
    child = AddressSpace(mem)
    with pytest.raises(OutOfMemory):
        parent.copy_to(child, 2 * PGSIZE)
    assert child.walkaddr(0) is None


def test_clear_user(space):
    space.grow(0, 2 * PGSIZE)
    space.clear_user(0)
    assert space.walkaddr(0) is None
    with pytest.raises(BadAddress):
        space.copyin(0, 1)
    with pytest.raises(KernelPanic):
        space.clear_user(10 << 30)


def test_load_first(space):
    code = b"\x13\x00\x00\x00\x73\x00\x00\x00"
    space.load_first(code)
    assert space.copyin(0, len(code)) == code
    assert space.copyin(len(code), 4) == bytes(4)
    space.copyout(0, b"ok")
    assert space.copyin(0, 2) == b"ok"


def test_load_first_too_big(space):
    with pytest.raises(KernelPanic):
        space.load_first(bytes(PGSIZE))


def test_free_with_remaining_leaf_panics(mem, space):
    space.map_pages(5 * PGSIZE, PGSIZE, mem.kalloc(), PteFlag.R | PteFlag.U)
    with pytest.raises(KernelPanic, match="leaf"):
        space.free(0)