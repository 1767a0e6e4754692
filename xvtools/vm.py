"""Three-level Sv39 page tables kept in a simulated physical memory."""

import struct
from enum import IntFlag

from .memlayout import KERNBASE, MAXVA, PGSHIFT, PGSIZE

_NPTES = 512
_PTE_SIZE = 8
_FLAG_MASK = 0x3FF
_TABLE = struct.Struct(f"<{_NPTES}Q")


class KernelPanic(RuntimeError):
    """An invariant of the page-table code was violated."""


class OutOfMemory(MemoryError):
    """No free physical page was available."""


class BadAddress(ValueError):
    """An address is not mapped, not accessible, or out of range."""


class PteFlag(IntFlag):
    """Page table entry permission and validity bits."""

    V = 1 << 0
    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4


def pg_round_up(a):
    """Round ``a`` up to a page boundary."""
    return (a + PGSIZE - 1) & ~(PGSIZE - 1)


def pg_round_down(a):
    """Round ``a`` down to a page boundary."""
    return a & ~(PGSIZE - 1)


def px(level, va):
    """The 9-bit page table index of ``va`` at ``level`` (2 is the root)."""
    return (va >> (PGSHIFT + 9 * level)) & 0x1FF


def pa2pte(pa):
    """Shift a physical address into the PPN field of a PTE."""
    return (pa >> PGSHIFT) << 10


def pte2pa(pte):
    """Extract the physical address a PTE refers to."""
    return (pte >> 10) << PGSHIFT


class PhysicalMemory:
    """A contiguous range of page frames with a page allocator."""

    def __init__(self, base=KERNBASE, npages=256):
        if base < 0 or base % PGSIZE:
            raise ValueError("base must be a non-negative page-aligned address")
        if npages <= 0:
            raise ValueError("npages must be positive")
        self.base = base
        self.size = npages * PGSIZE
        self._data = bytearray(self.size)
        self._free = [base + i * PGSIZE for i in reversed(range(npages))]
        self._allocated = set()

    def kalloc(self):
        """Allocate one page and return its physical address."""
        if not self._free:
            raise OutOfMemory("kalloc: out of memory")
        pa = self._free.pop()
        self._allocated.add(pa)
        return pa

    def kfree(self, pa):
        """Return the page at ``pa`` to the allocator."""
        if pa % PGSIZE or pa not in self._allocated:
            raise KernelPanic("kfree")
        self._allocated.remove(pa)
        self._free.append(pa)

    def _offset(self, pa, n):
        off = pa - self.base
        if off < 0 or n < 0 or off + n > self.size:
            raise BadAddress(f"physical address {pa:#x} out of range")
        return off

    def read(self, pa, n):
        """Read ``n`` bytes starting at physical address ``pa``."""
        off = self._offset(pa, n)
        return bytes(self._data[off:off + n])

    def write(self, pa, data):
        """Write ``data`` starting at physical address ``pa``."""
        data = bytes(data)
        off = self._offset(pa, len(data))
        self._data[off:off + len(data)] = data

    def free_pages(self):
        """Number of pages available to kalloc."""
        return len(self._free)


class AddressSpace:
    """A user page table and the memory it maps."""

    def __init__(self, memory):
        self.memory = memory
        self.root = memory.kalloc()
        memory.write(self.root, bytes(PGSIZE))

    def _load(self, addr):
        return int.from_bytes(self.memory.read(addr, _PTE_SIZE), "little")

    def _store(self, addr, value):
        self.memory.write(addr, value.to_bytes(_PTE_SIZE, "little"))

    def walk(self, va, alloc=False):
        """Physical address of the leaf PTE for ``va``, or None if absent.

        With ``alloc``, missing page-table pages are created.
        """
        if va >= MAXVA:
            raise KernelPanic("walk")
        table = self.root
        for level in (2, 1):
            addr = table + px(level, va) * _PTE_SIZE
            pte = self._load(addr)
            if pte & PteFlag.V:
                table = pte2pa(pte)
            else:
                if not alloc:
                    return None
                table = self.memory.kalloc()
                self.memory.write(table, bytes(PGSIZE))
                self._store(addr, pa2pte(table) | PteFlag.V)
        return table + px(0, va) * _PTE_SIZE

    def walkaddr(self, va):
        """Physical address of the user page mapped at ``va``, or None."""
        if va >= MAXVA:
            return None
        addr = self.walk(va, False)
        if addr is None:
            return None
        pte = self._load(addr)
        if not pte & PteFlag.V or not pte & PteFlag.U:
            return None
        return pte2pa(pte)

    def map_pages(self, va, size, pa, perm):
        """Map ``size`` bytes at ``va`` to physical memory from ``pa``."""
        if va % PGSIZE:
            raise KernelPanic("mappages: va not aligned")
        if size % PGSIZE:
            raise KernelPanic("mappages: size not aligned")
        if size == 0:
            raise KernelPanic("mappages: size")
        for offset in range(0, size, PGSIZE):
            addr = self.walk(va + offset, True)
            if self._load(addr) & PteFlag.V:
                raise KernelPanic("mappages: remap")
            self._store(addr, pa2pte(pa + offset) | int(perm) | PteFlag.V)

    def unmap(self, va, npages, do_free):
        """Remove ``npages`` existing mappings from ``va``, optionally freeing them."""
        if va % PGSIZE:
            raise KernelPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            addr = self.walk(a, False)
            if addr is None:
                raise KernelPanic("uvmunmap: walk")
            pte = self._load(addr)
            if not pte & PteFlag.V:
                raise KernelPanic("uvmunmap: not mapped")
            if pte & _FLAG_MASK == PteFlag.V:
                raise KernelPanic("uvmunmap: not a leaf")
            if do_free:
                self.memory.kfree(pte2pa(pte))
            self._store(addr, 0)

    def load_first(self, code):
        """Place ``code`` (less than a page) at address 0."""
        code = bytes(code)
        if len(code) >= PGSIZE:
            raise KernelPanic("uvmfirst: more than a page")
        mem = self.memory.kalloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, mem, PteFlag.W | PteFlag.R | PteFlag.X | PteFlag.U)
        self.memory.write(mem, code)

    def grow(self, oldsz, newsz, xperm=0):
        """Allocate zeroed user pages to grow from ``oldsz`` to ``newsz``."""
        if newsz < oldsz:
            return oldsz
        oldsz = pg_round_up(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                mem = self.memory.kalloc()
            except OutOfMemory:
                self.shrink(a, oldsz)
                raise
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, mem, PteFlag.R | PteFlag.U | int(xperm))
            except OutOfMemory:
                self.memory.kfree(mem)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz, newsz):
        """Free user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        if pg_round_up(newsz) < pg_round_up(oldsz):
            npages = (pg_round_up(oldsz) - pg_round_up(newsz)) // PGSIZE
            self.unmap(pg_round_up(newsz), npages, True)
        return newsz

    def _freewalk(self, table):
        entries = _TABLE.unpack(self.memory.read(table, PGSIZE))
        for i, pte in enumerate(entries):
            if pte & PteFlag.V and not pte & (PteFlag.R | PteFlag.W | PteFlag.X):
                self._freewalk(pte2pa(pte))
                self._store(table + i * _PTE_SIZE, 0)
            elif pte & PteFlag.V:
                raise KernelPanic("freewalk: leaf")
        self.memory.kfree(table)

    def free(self, sz):
        """Free the user pages below ``sz``, then every page-table page."""
        if sz > 0:
            self.unmap(0, pg_round_up(sz) // PGSIZE, True)
        self._freewalk(self.root)

    def copy_to(self, other, sz):
        """Copy the first ``sz`` bytes of memory and mappings into ``other``."""
        for i in range(0, sz, PGSIZE):
            addr = self.walk(i, False)
            if addr is None:
                raise KernelPanic("uvmcopy: pte should exist")
            pte = self._load(addr)
            if not pte & PteFlag.V:
                raise KernelPanic("uvmcopy: page not present")
            try:
                mem = other.memory.kalloc()
            except OutOfMemory:
                other.unmap(0, i // PGSIZE, True)
                raise
            other.memory.write(mem, self.memory.read(pte2pa(pte), PGSIZE))
            try:
                other.map_pages(i, PGSIZE, mem, pte & _FLAG_MASK)
            except OutOfMemory:
                other.memory.kfree(mem)
                other.unmap(0, i // PGSIZE, True)
                raise

    def clear_user(self, va):
        """Make the page at ``va`` inaccessible to user code."""
        addr = self.walk(va, False)
        if addr is None:
            raise KernelPanic("uvmclear")
        self._store(addr, self._load(addr) & ~PteFlag.U)

    def copyout(self, dstva, data):
        """Copy ``data`` to user virtual address ``dstva``."""
        data = bytes(data)
        pos = 0
        needed = PteFlag.V | PteFlag.U | PteFlag.W
        while pos < len(data):
            va0 = pg_round_down(dstva)
            if va0 >= MAXVA:
                raise BadAddress(f"copyout: {dstva:#x} beyond MAXVA")
            addr = self.walk(va0, False)
            pte = 0 if addr is None else self._load(addr)
            if pte & needed != needed:
                raise BadAddress(f"copyout: {dstva:#x} not writable")
            n = min(PGSIZE - (dstva - va0), len(data) - pos)
            self.memory.write(pte2pa(pte) + (dstva - va0), data[pos:pos + n])
            pos += n
            dstva = va0 + PGSIZE

    def copyin(self, srcva, n):
        """Copy ``n`` bytes from user virtual address ``srcva``."""
        chunks = []
        while n > 0:
            va0 = pg_round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"copyin: {srcva:#x} not mapped")
            step = min(PGSIZE - (srcva - va0), n)
            chunks.append(self.memory.read(pa0 + (srcva - va0), step))
            n -= step
            srcva = va0 + PGSIZE
        return b"".join(chunks)

    def copyinstr(self, srcva, max):
        """Copy a NUL-terminated string of at most ``max`` bytes from ``srcva``."""
        out = bytearray()
        while max > 0:
            va0 = pg_round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"copyinstr: {srcva:#x} not mapped")
            n = min(PGSIZE - (srcva - va0), max)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            nul = chunk.find(0)
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            max -= n
            srcva = va0 + PGSIZE
        raise BadAddress("copyinstr: string not terminated")