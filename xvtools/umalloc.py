"""A first-fit free-list allocator over a simulated program break."""

from dataclasses import dataclass

_UNIT = 16  # size of a block header; every block is a multiple of this
_MIN_GROW = 4096  # fewest units requested from sbrk at a time


@dataclass
class _Header:
    ptr: int
    size: int


class Heap:
    """A circular free list of blocks carved out of memory obtained by sbrk."""

    def __init__(self, limit):
        self._limit = limit
        self._brk = 0
        self._base = -_UNIT  # sentinel header, below all heap memory
        self._headers = {}
        self._allocated = set()
        self._freep = None

    def sbrk(self, n):
        """Move the break by ``n`` bytes and return the old break."""
        old = self._brk
        new = old + n
        if new < 0 or new > self._limit:
            raise MemoryError("sbrk: out of memory")
        self._brk = new
        return old

    def free(self, addr):
        """Return the block at ``addr`` to the free list."""
        bp = addr - _UNIT
        if bp not in self._allocated:
            raise ValueError(f"free of unallocated address {addr}")
        self._allocated.discard(bp)
        self._release(bp)

    def _release(self, bp):
        h = self._headers
        p = self._freep
        while not (p < bp < h[p].ptr):
            if p >= h[p].ptr and (bp > p or bp < h[p].ptr):
                break
            p = h[p].ptr
        nxt = h[p].ptr
        if bp + h[bp].size * _UNIT == nxt:
            h[bp].size += h[nxt].size
            h[bp].ptr = h[nxt].ptr
            del h[nxt]
        else:
            h[bp].ptr = nxt
        if p + h[p].size * _UNIT == bp:
            h[p].size += h[bp].size
            h[p].ptr = h[bp].ptr
            del h[bp]
        else:
            h[p].ptr = bp
        self._freep = p

    def _morecore(self, nu):
        nu = max(nu, _MIN_GROW)
        try:
            hp = self.sbrk(nu * _UNIT)
        except MemoryError:
            return None
        self._headers[hp] = _Header(ptr=hp, size=nu)
        self._release(hp)
        return self._freep

    def malloc(self, nbytes):
        """Allocate at least ``nbytes`` bytes and return the block's address."""
        nunits = (nbytes + _UNIT - 1) // _UNIT + 1
        h = self._headers
        if self._freep is None:
            h[self._base] = _Header(ptr=self._base, size=0)
            self._freep = self._base
        prevp = self._freep
        p = h[prevp].ptr
        while True:
            if h[p].size >= nunits:
                if h[p].size == nunits:
                    h[prevp].ptr = h[p].ptr
                else:
                    h[p].size -= nunits
                    p += h[p].size * _UNIT
                    h[p] = _Header(ptr=0, size=nunits)
                self._freep = prevp
                self._allocated.add(p)
                return p + _UNIT
            if p == self._freep:
                p = self._morecore(nunits)
                if p is None:
                    raise MemoryError("malloc: out of memory")
            prevp = p
            p = h[p].ptr

    def block_size(self, addr):
        """Return the usable size in bytes of the allocated block at ``addr``."""
        bp = addr - _UNIT
        if bp not in self._allocated:
            raise ValueError(f"address {addr} is not allocated")
        return (self._headers[bp].size - 1) * _UNIT