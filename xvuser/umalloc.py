"""First-fit free-list allocator over a simulated break-extended heap."""


class Allocator:
    """Heap allocator handing out byte addresses in a simulated heap.

    Memory is managed in units of one block header. The heap grows by at
    least ``MIN_GROWTH`` units at a time; growth beyond ``limit`` bytes fails
    and ``malloc`` then returns None.
    """

    HEADER_SIZE = 16
    MIN_GROWTH = 4096
    _BASE = -1  # the empty sentinel block, placed below the heap

    def __init__(self, limit=None):
        self._limit_units = None if limit is None else limit // self.HEADER_SIZE
        self._brk = 0
        self._next = {}
        self._size = {}
        self._freep = None
        self._allocated = set()

    def _morecore(self, nunits):
        nunits = max(nunits, self.MIN_GROWTH)
        if self._limit_units is not None and self._brk + nunits > self._limit_units:
            return None
        hp = self._brk
        self._brk += nunits
        self._size[hp] = nunits
        self._release(hp)
        return self._freep

    def malloc(self, nbytes):
        """Return the address of ``nbytes`` of fresh memory, or None."""
        if nbytes < 0:
            raise ValueError("negative allocation size")
        nunits = (nbytes + self.HEADER_SIZE - 1) // self.HEADER_SIZE + 1
        if self._freep is None:
            self._next[self._BASE] = self._BASE
            self._size[self._BASE] = 0
            self._freep = self._BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next[p]
                else:
                    self._size[p] -= nunits
                    p += self._size[p]
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return (p + 1) * self.HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
                if p is None:
                    return None
            prevp, p = p, self._next[p]

    def free(self, ap):
        """Return memory obtained from ``malloc`` to the free list."""
        bp, rem = divmod(ap, self.HEADER_SIZE)
        bp -= 1
        if rem or bp not in self._allocated:
            raise ValueError(f"address {ap} was not allocated")
        self._allocated.discard(bp)
        self._release(bp)

    def _release(self, bp):
        nxt, size = self._next, self._size
        p = self._freep
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        if bp + size[bp] == nxt[p]:
            size[bp] += size[nxt[p]]
            nxt[bp] = nxt[nxt[p]]
        else:
            nxt[bp] = nxt[p]
        if p + size[p] == bp:
            size[p] += size[bp]
            nxt[p] = nxt[bp]
        else:
            nxt[p] = bp
        self._freep = p