"""Sv39 page tables over a simulated physical memory, with user copy routines."""

import errno

from .headers import KERNBASE, MAXVA, PGSIZE

PTE_V = 1 << 0  # valid
PTE_R = 1 << 1
PTE_W = 1 << 2
PTE_X = 1 << 3
PTE_U = 1 << 4  # user can access

PTES_PER_PAGE = 512
_PTE_BYTES = 8
_PXMASK = 0x1FF
_PGSHIFT = 12


class VmPanic(RuntimeError):
    """An invariant of the page-table code was violated."""


def pgroundup(a):
    """Round ``a`` up to a page boundary."""
    return (a + PGSIZE - 1) & ~(PGSIZE - 1)


def pgrounddown(a):
    """Round ``a`` down to a page boundary."""
    return a & ~(PGSIZE - 1)


def px(level, va):
    """Index into the page-table page at ``level`` for virtual address ``va``."""
    return (va >> (_PGSHIFT + 9 * level)) & _PXMASK


def _pa2pte(pa):
    return (pa >> 12) << 10


def _pte2pa(pte):
    return (pte >> 10) << 12


def _pte_flags(pte):
    return pte & 0x3FF


def _fault(message="bad address"):
    return OSError(errno.EFAULT, message)


class PhysicalMemory:
    """A range of page-sized frames starting at ``base``."""

    def __init__(self, npages, base=KERNBASE):
        if npages <= 0:
            raise ValueError("physical memory needs at least one page")
        if base % PGSIZE:
            raise ValueError("base must be page-aligned")
        self.npages = npages
        self.base = base
        self._data = bytearray(npages * PGSIZE)
        # Popped from the end, so the lowest frames are handed out first.
        self._free = [base + i * PGSIZE for i in reversed(range(npages))]
        self._free_set = set(self._free)

    @property
    def free_pages(self):
        """Number of frames not currently allocated."""
        return len(self._free)

    def kalloc(self):
        """Allocate one frame and return its address, or None if none is left."""
        if not self._free:
            return None
        pa = self._free.pop()
        self._free_set.discard(pa)
        return pa

    def kfree(self, pa):
        """Return the frame at ``pa`` to the allocator."""
        if pa % PGSIZE or not self.base <= pa < self.base + self.npages * PGSIZE:
            raise VmPanic("kfree")
        if pa in self._free_set:
            raise VmPanic("kfree: double free")
        self._free.append(pa)
        self._free_set.add(pa)

    def _offset(self, pa, n):
        off = pa - self.base
        if off < 0 or n < 0 or off + n > len(self._data):
            raise ValueError(f"physical access {pa:#x}+{n} out of range")
        return off

    def read(self, pa, n):
        """Bytes ``[pa, pa + n)``."""
        off = self._offset(pa, n)
        return bytes(self._data[off:off + n])

    def write(self, pa, data):
        """Store ``data`` at ``pa``."""
        data = bytes(data)
        off = self._offset(pa, len(data))
        self._data[off:off + len(data)] = data

    def _zero(self, pa):
        self.write(pa, bytes(PGSIZE))


class AddressSpace:
    """A user page table rooted in a frame of ``mem``."""

    def __init__(self, mem):
        self.mem = mem
        root = mem.kalloc()
        if root is None:
            raise MemoryError("no memory for a page table")
        mem._zero(root)
        self.root = root

    # ------------------------------------------------------------ PTE access

    def _get(self, addr):
        return int.from_bytes(self.mem.read(addr, _PTE_BYTES), "little")

    def _set(self, addr, value):
        self.mem.write(addr, value.to_bytes(_PTE_BYTES, "little"))

    @staticmethod
    def _slot(table, index):
        return table + index * _PTE_BYTES

    # ------------------------------------------------------------ walking

    def walk(self, va, alloc=False):
        """Physical address of the level-0 PTE for ``va``, or None.

        With ``alloc`` true, missing page-table pages are created; None is
        then returned only when memory runs out.
        """
        if va >= MAXVA:
            raise VmPanic("walk")
        table = self.root
        for level in (2, 1):
            slot = self._slot(table, px(level, va))
            pte = self._get(slot)
            if pte & PTE_V:
                table = _pte2pa(pte)
                continue
            if not alloc:
                return None
            table = self.mem.kalloc()
            if table is None:
                return None
            self.mem._zero(table)
            self._set(slot, _pa2pte(table) | PTE_V)
        return self._slot(table, px(0, va))

    def walkaddr(self, va):
        """Physical address mapped at user page ``va``, or None."""
        if va >= MAXVA:
            return None
        slot = self.walk(va)
        if slot is None:
            return None
        pte = self._get(slot)
        if not pte & PTE_V or not pte & PTE_U:
            return None
        return _pte2pa(pte)

    # ------------------------------------------------------------ mapping

    def mappages(self, va, size, pa, perm):
        """Map ``size`` bytes at ``va`` to physical ``pa`` with ``perm``.

        Raises MemoryError if a page-table page cannot be allocated.
        """
        if va % PGSIZE:
            raise VmPanic("mappages: va not aligned")
        if size % PGSIZE:
            raise VmPanic("mappages: size not aligned")
        if size == 0:
            raise VmPanic("mappages: size")
        for a in range(va, va + size, PGSIZE):
            slot = self.walk(a, True)
            if slot is None:
                raise MemoryError("no memory for a page-table page")
            if self._get(slot) & PTE_V:
                raise VmPanic("mappages: remap")
            self._set(slot, _pa2pte(pa + (a - va)) | perm | PTE_V)

    def unmap(self, va, npages, do_free):
        """Remove ``npages`` existing mappings from ``va``, optionally freeing frames."""
        if va % PGSIZE:
            raise VmPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            slot = self.walk(a)
            if slot is None:
                raise VmPanic("uvmunmap: walk")
            pte = self._get(slot)
            if not pte & PTE_V:
                raise VmPanic("uvmunmap: not mapped")
            if _pte_flags(pte) == PTE_V:
                raise VmPanic("uvmunmap: not a leaf")
            if do_free:
                self.mem.kfree(_pte2pa(pte))
            self._set(slot, 0)

    def load_first(self, src):
        """Place ``src`` (less than a page) at address 0 for the first process."""
        src = bytes(src)
        if len(src) >= PGSIZE:
            raise VmPanic("uvmfirst: more than a page")
        page = self.mem.kalloc()
        if page is None:
            raise MemoryError("no memory for the first page")
        self.mem._zero(page)
        self.mappages(0, PGSIZE, page, PTE_W | PTE_R | PTE_X | PTE_U)
        self.mem.write(page, src)

    def grow(self, oldsz, newsz, xperm=0):
        """Allocate zeroed user pages to grow from ``oldsz`` to ``newsz``.

        Returns the new size; on running out of memory the pages added are
        released and MemoryError is raised.
        """
        if newsz < oldsz:
            return oldsz
        oldsz = pgroundup(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            page = self.mem.kalloc()
            if page is None:
                self.shrink(a, oldsz)
                raise MemoryError("out of physical memory")
            self.mem._zero(page)
            try:
                self.mappages(a, PGSIZE, page, PTE_R | PTE_U | xperm)
            except MemoryError:
                self.mem.kfree(page)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz, newsz):
        """Release user pages to bring the size from ``oldsz`` to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        if pgroundup(newsz) < pgroundup(oldsz):
            npages = (pgroundup(oldsz) - pgroundup(newsz)) // PGSIZE
            self.unmap(pgroundup(newsz), npages, True)
        return newsz

    def _freewalk(self, table):
        for i in range(PTES_PER_PAGE):
            slot = self._slot(table, i)
            pte = self._get(slot)
            if pte & PTE_V and not pte & (PTE_R | PTE_W | PTE_X):
                self._freewalk(_pte2pa(pte))
                self._set(slot, 0)
            elif pte & PTE_V:
                raise VmPanic("freewalk: leaf")
        self.mem.kfree(table)

    def free(self, sz):
        """Free ``sz`` bytes of user memory and then every page-table page."""
        if sz > 0:
            self.unmap(0, pgroundup(sz) // PGSIZE, True)
        self._freewalk(self.root)

    def copy_to(self, other, sz):
        """Copy the first ``sz`` bytes of memory and mappings into ``other``.

        On running out of memory the copies already made are released and
        MemoryError is raised.
        """
        for i in range(0, sz, PGSIZE):
            slot = self.walk(i)
            if slot is None:
                raise VmPanic("uvmcopy: pte should exist")
            pte = self._get(slot)
            if not pte & PTE_V:
                raise VmPanic("uvmcopy: page not present")
            page = self.mem.kalloc()
            try:
                if page is None:
                    raise MemoryError("out of physical memory")
                other.mem.write(page, self.mem.read(_pte2pa(pte), PGSIZE))
                try:
                    other.mappages(i, PGSIZE, page, _pte_flags(pte))
                except MemoryError:
                    self.mem.kfree(page)
                    raise
            except MemoryError:
                other.unmap(0, i // PGSIZE, True)
                raise

    def clear_user(self, va):
        """Make the page at ``va`` inaccessible to user code."""
        slot = self.walk(va)
        if slot is None:
            raise VmPanic("uvmclear")
        self._set(slot, self._get(slot) & ~PTE_U)

    # ------------------------------------------------------------ copying

    def copyout(self, dstva, data):
        """Copy ``data`` to user address ``dstva``; raises OSError(EFAULT) on a bad address."""
        view = memoryview(bytes(data))
        while view:
            va0 = pgrounddown(dstva)
            if va0 >= MAXVA:
                raise _fault()
            slot = self.walk(va0)
            pte = 0 if slot is None else self._get(slot)
            if not (pte & PTE_V and pte & PTE_U and pte & PTE_W):
                raise _fault()
            n = min(PGSIZE - (dstva - va0), len(view))
            self.mem.write(_pte2pa(pte) + (dstva - va0), view[:n])
            view = view[n:]
            dstva = va0 + PGSIZE

    def copyin(self, srcva, n):
        """Read ``n`` bytes from user address ``srcva``; raises OSError(EFAULT) on a bad address."""
        out = bytearray()
        while n > 0:
            va0 = pgrounddown(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise _fault()
            k = min(PGSIZE - (srcva - va0), n)
            out += self.mem.read(pa0 + (srcva - va0), k)
            n -= k
            srcva = va0 + PGSIZE
        return bytes(out)

    def copyinstr(self, srcva, max):
        """Read a NUL-terminated string of at most ``max`` bytes from ``srcva``.

        The terminator is not returned. Raises OSError(EFAULT) on a bad
        address and OSError(ENAMETOOLONG) if no terminator is found in time.
        """
        out = bytearray()
        while max > 0:
            va0 = pgrounddown(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise _fault()
            k = min(PGSIZE - (srcva - va0), max)
            chunk = self.mem.read(pa0 + (srcva - va0), k)
            end = chunk.find(b"\0")
            if end >= 0:
                out += chunk[:end]
                return bytes(out)
            out += chunk
            max -= k
            srcva = va0 + PGSIZE
        raise OSError(errno.ENAMETOOLONG, "string not terminated")