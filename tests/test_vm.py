import errno

import pytest

from xvuser.headers import KERNBASE, MAXVA, PGSIZE
from xvuser.vm import (
    PTE_R,
    PTE_U,
    PTE_W,
    PTE_X,
    AddressSpace,
    PhysicalMemory,
    VmPanic,
    pgrounddown,
    pgroundup,
    px,
)


@pytest.fixture
def mem():
    return PhysicalMemory(64)


@pytest.fixture
def space(mem):
    return AddressSpace(mem)


def test_rounding():
    assert pgroundup(0) == 0
    assert pgroundup(1) == PGSIZE
    assert pgroundup(PGSIZE) == PGSIZE
    assert pgroundup(PGSIZE + 1) == 2 * PGSIZE
    assert pgrounddown(PGSIZE - 1) == 0
    assert pgrounddown(3 * PGSIZE + 7) == 3 * PGSIZE


@pytest.mark.parametrize("level", [0, 1, 2])
@pytest.mark.parametrize("index", [0, 1, 300, 511])
def test_px_extracts_index(level, index):
    va = index << (12 + 9 * level)
    assert px(level, va) == index
    assert px(level, va + PGSIZE - 1) == index


def test_kalloc_exhausts_and_kfree_returns(mem):
    pages = [mem.kalloc() for _ in range(64)]
    assert None not in pages
    assert len(set(pages)) == 64
    assert all(p % PGSIZE == 0 and p >= KERNBASE for p in pages)
    assert mem.kalloc() is None
    mem.kfree(pages[0])
    assert mem.free_pages == 1
    assert mem.kalloc() == pages[0]


def test_kfree_rejects_bad_addresses(mem):
    with pytest.raises(VmPanic):
        mem.kfree(KERNBASE + 1)
    with pytest.raises(VmPanic):
        mem.kfree(KERNBASE + 64 * PGSIZE)
    with pytest.raises(VmPanic):
        mem.kfree(KERNBASE)  # still free


def test_memory_read_write_round_trip(mem):
    pa = mem.kalloc()
    mem.write(pa + 10, b"hello")
    assert mem.read(pa + 10, 5) == b"hello"


def test_walk_without_alloc_on_empty_table(space):
    assert space.walk(0) is None
    assert space.walkaddr(0) is None


def test_walk_rejects_high_address(space):
    with pytest.raises(VmPanic):
        space.walk(MAXVA)
    assert space.walkaddr(MAXVA) is None


def test_mappages_and_walkaddr(mem, space):
    pa = mem.kalloc()
    space.mappages(2 * PGSIZE, PGSIZE, pa, PTE_R | PTE_U)
    assert space.walkaddr(2 * PGSIZE) == pa
    assert space.walkaddr(3 * PGSIZE) is None


def test_walkaddr_ignores_kernel_only_pages(mem, space):
    pa = mem.kalloc()
    space.mappages(0, PGSIZE, pa, PTE_R | PTE_W)
    assert space.walk(0) is not None
    assert space.walkaddr(0) is None


def test_mappages_panics(mem, space):
    pa = mem.kalloc()
    with pytest.raises(VmPanic, match="va not aligned"):
        space.mappages(1, PGSIZE, pa, PTE_R)
    with pytest.raises(VmPanic, match="size not aligned"):
        space.mappages(0, 10, pa, PTE_R)
    with pytest.raises(VmPanic, match="mappages: size"):
        space.mappages(0, 0, pa, PTE_R)
    space.mappages(0, PGSIZE, pa, PTE_R)
    with pytest.raises(VmPanic, match="remap"):
        space.mappages(0, PGSIZE, pa, PTE_R)


def test_mappages_out_of_memory():
    mem = PhysicalMemory(1)
    space = AddressSpace(mem)
    with pytest.raises(MemoryError):
        space.mappages(0, PGSIZE, KERNBASE, PTE_R)


def test_unmap_missing_panics(space):
    with pytest.raises(VmPanic):
        space.unmap(0, 1, True)
    with pytest.raises(VmPanic):
        space.unmap(5, 1, True)


def test_grow_copyout_copyin_round_trip(space):
    assert space.grow(0, 3 * PGSIZE, PTE_W) == 3 * PGSIZE
    data = bytes(range(256)) * 20
    space.copyout(PGSIZE - 100, data)
    assert space.copyin(PGSIZE - 100, len(data)) == data


def test_grow_gives_zeroed_memory(space):
    space.grow(0, PGSIZE, PTE_W)
    assert space.copyin(0, PGSIZE) == bytes(PGSIZE)


def test_grow_smaller_returns_old_size(space):
    assert space.grow(2 * PGSIZE, PGSIZE) == 2 * PGSIZE


def test_copyout_bad_addresses(space):
    space.grow(0, PGSIZE)  # read-only for the user
    with pytest.raises(OSError) as exc:
        space.copyout(0, b"x")
    assert exc.value.errno == errno.EFAULT
    with pytest.raises(OSError) as exc:
        space.copyout(5 * PGSIZE, b"x")
    assert exc.value.errno == errno.EFAULT
    with pytest.raises(OSError) as exc:
        space.copyout(MAXVA, b"x")
    assert exc.value.errno == errno.EFAULT


def test_copyin_bad_addresses(space):
    space.grow(0, PGSIZE, PTE_W)
    for addr in (PGSIZE, KERNBASE, MAXVA, 0xFFFFFFFFFFFFFFFF):
        with pytest.raises(OSError) as exc:
            space.copyin(addr, 8)
        assert exc.value.errno == errno.EFAULT
    with pytest.raises(OSError):
        space.copyin(PGSIZE - 4, 8)


def test_copyinstr(space):
    space.grow(0, 2 * PGSIZE, PTE_W)
    space.copyout(PGSIZE - 3, b"hello\0world")
    assert space.copyinstr(PGSIZE - 3, 64) == b"hello"
    assert space.copyinstr(PGSIZE - 3, 6) == b"hello"


def test_copyinstr_without_terminator(space):
    space.grow(0, PGSIZE, PTE_W)
    space.copyout(0, b"abcdef")
    with pytest.raises(OSError) as exc:
        space.copyinstr(0, 5)
    assert exc.value.errno == errno.ENAMETOOLONG


def test_copyinstr_runs_off_the_end(space):
    space.grow(0, PGSIZE, PTE_W)
    space.copyout(PGSIZE - 1, b"x")
    with pytest.raises(OSError) as exc:
        space.copyinstr(PGSIZE - 1, 100)
    assert exc.value.errno == errno.EFAULT


def test_shrink_releases_pages(mem, space):
    space.grow(0, 4 * PGSIZE, PTE_W)
    before = mem.free_pages
    assert space.shrink(4 * PGSIZE, PGSIZE + 1) == PGSIZE + 1
    assert mem.free_pages == before + 2
    assert space.walkaddr(PGSIZE) is not None
    assert space.walkaddr(2 * PGSIZE) is None
    assert space.shrink(PGSIZE, 3 * PGSIZE) == PGSIZE


def test_free_returns_every_page(mem):
    initial = mem.free_pages
    space = AddressSpace(mem)
    space.grow(0, 5 * PGSIZE, PTE_W)
    space.free(5 * PGSIZE)
    assert mem.free_pages == initial


def test_free_with_leaf_left_panics(space):
    space.grow(0, PGSIZE)
    with pytest.raises(VmPanic, match="leaf"):
        space.free(0)


def test_grow_out_of_memory_releases_new_pages():
    mem = PhysicalMemory(8)
    space = AddressSpace(mem)
    with pytest.raises(MemoryError):
        space.grow(0, 20 * PGSIZE, PTE_W)
    assert space.walkaddr(0) is None
    assert space.walkaddr(4 * PGSIZE) is None


def test_copy_to_duplicates_memory(mem, space):
    space.grow(0, 2 * PGSIZE, PTE_W)
    space.copyout(PGSIZE - 2, b"abcd")
    child = AddressSpace(mem)
    space.copy_to(child, 2 * PGSIZE)
    assert child.copyin(PGSIZE - 2, 4) == b"abcd"
    child.copyout(PGSIZE - 2, b"zz")
    assert space.copyin(PGSIZE - 2, 4) == b"abcd"
    assert child.walkaddr(0) != space.walkaddr(0)


def test_copy_to_out_of_memory_cleans_up():
    mem = PhysicalMemory(12)
    space = AddressSpace(mem)
    space.grow(0, 4 * PGSIZE, PTE_W)
    child = AddressSpace(mem)
    with pytest.raises(MemoryError):
        space.copy_to(child, 4 * PGSIZE)
    assert child.walkaddr(0) is None
    assert space.walkaddr(3 * PGSIZE) is not None


def test_copy_to_missing_page_panics(mem, space):
    child = AddressSpace(mem)
    with pytest.raises(VmPanic, match="uvmcopy"):
        space.copy_to(child, PGSIZE)


def test_load_first(space):
    space.load_first(b"\x13\x00\x00\x00init")
    assert space.copyin(0, 8) == b"\x13\x00\x00\x00init"
    assert space.copyin(8, 8) == bytes(8)
    pte_pa = space.walkaddr(0)
    assert pte_pa is not None


def test_load_first_too_big(space):
    with pytest.raises(VmPanic):
        space.load_first(bytes(PGSIZE))


def test_load_first_is_executable(space):
    space.load_first(b"x")
    slot = space.walk(0)
    pte = int.from_bytes(space.mem.read(slot, 8), "little")
    assert pte & 0x3FF == PTE_R | PTE_W | PTE_X | PTE_U | 1
    assert (pte >> 10) << 12 == space.walkaddr(0)


def test_clear_user(space):
    space.grow(0, 2 * PGSIZE, PTE_W)
    space.clear_user(0)
    assert space.walkaddr(0) is None
    assert space.walkaddr(PGSIZE) is not None
    with pytest.raises(OSError):
        space.copyout(0, b"x")


def test_clear_user_unmapped_panics(space):
    with pytest.raises(VmPanic, match="uvmclear"):
        space.clear_user(0)