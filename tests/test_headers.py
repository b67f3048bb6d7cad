import pytest

from xvuser.headers import (
    MAXVA,
    PGSIZE,
    PLIC,
    TRAMPOLINE,
    TRAPFRAME,
    ElfHeader,
    FileType,
    ProgramHeader,
    Stat,
    VirtioBlkReq,
    VirtqDesc,
    kstack,
    plic_sclaim,
    plic_senable,
    plic_spriority,
)


def test_elf_header_round_trip():
    hdr = ElfHeader(
        elf=b"\x02\x01\x01" + bytes(9),
        type=2,
        machine=0xF3,
        version=1,
        entry=0x1000,
        phoff=ElfHeader.SIZE,
        shoff=0x2000,
        flags=5,
        ehsize=ElfHeader.SIZE,
        phentsize=ProgramHeader.SIZE,
        phnum=3,
        shentsize=0,
        shnum=0,
        shstrndx=0,
    )
    data = hdr.pack()
    assert len(data) == ElfHeader.SIZE
    assert ElfHeader.parse(data) == hdr


def test_elf_header_starts_with_magic_bytes():
    data = ElfHeader().pack()
    assert data[:4] == b"\x7fELF"
    assert ElfHeader.parse(data).valid


def test_elf_header_with_wrong_magic_is_not_valid():
    assert not ElfHeader.parse(ElfHeader(magic=0).pack()).valid


def test_elf_header_too_short():
    with pytest.raises(ValueError):
        ElfHeader.parse(b"\x7fELF")


def test_program_header_round_trip_ignores_trailing_bytes():
    ph = ProgramHeader(
        type=1, flags=5, off=0x1000, vaddr=0, paddr=0, filesz=300, memsz=400, align=PGSIZE
    )
    data = ph.pack()
    assert len(data) == ProgramHeader.SIZE
    assert ProgramHeader.parse(data + b"extra") == ph


def test_stat_round_trip_keeps_type():
    st = Stat(dev=1, ino=17, type=FileType.DIR, nlink=2, size=1024)
    parsed = Stat.parse(st.pack())
    assert parsed == st
    assert parsed.type == FileType.DIR
    assert len(st.pack()) == Stat.SIZE


def test_stat_too_short():
    with pytest.raises(ValueError):
        Stat.parse(bytes(Stat.SIZE - 1))


def test_virtq_desc_round_trip():
    desc = VirtqDesc(addr=0x87654000, len=512, flags=3, next=7)
    assert VirtqDesc.parse(desc.pack()) == desc


def test_blk_req_round_trip():
    req = VirtioBlkReq(type=1, reserved=0, sector=4096)
    data = req.pack()
    assert len(data) == VirtioBlkReq.SIZE
    assert VirtioBlkReq.parse(data) == req


def test_plic_registers():
    assert plic_senable(0) == PLIC + 0x2080
    assert plic_senable(3) - plic_senable(2) == 0x100
    assert plic_spriority(1) - plic_spriority(0) == 0x2000
    for hart in range(3):
        assert plic_sclaim(hart) - plic_spriority(hart) == 4


def test_trampoline_and_stacks():
    assert MAXVA == 0x4000000000
    assert TRAMPOLINE == 0x3FFFFFF000
    assert TRAPFRAME == 0x3FFFFFE000
    assert kstack(0) == TRAMPOLINE - 2 * PGSIZE
    assert kstack(5) - kstack(6) == 2 * PGSIZE
    assert all(kstack(p) % PGSIZE == 0 and kstack(p) < TRAPFRAME for p in range(64))