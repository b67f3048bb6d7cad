"""Record layouts, flag values and the physical memory map shared by kernel and tools."""

import struct
from dataclasses import astuple, dataclass
from enum import IntEnum, IntFlag
from typing import ClassVar

# Sv39 paging: 4 KiB pages, one bit less than the full 39-bit space so that
# addresses never need sign extension.
PGSIZE = 4096
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)

# ---------------------------------------------------------------- ELF

ELF_MAGIC = 0x464C457F  # "\x7fELF" read as a little-endian word
ELF_PROG_LOAD = 1


class ProgFlag(IntFlag):
    """Permission bits of a program segment."""

    EXEC = 1
    WRITE = 2
    READ = 4


def _unpack(cls, layout, data):
    """Decode a record of type ``cls`` from the start of ``data``."""
    if len(data) < layout.size:
        raise ValueError(f"{cls.__name__} needs {layout.size} bytes, got {len(data)}")
    return cls(*layout.unpack_from(data))


_ELFHDR = struct.Struct("<I12sHHIQQQIHHHHHH")


@dataclass
class ElfHeader:
    """ELF file header."""

    SIZE: ClassVar[int] = _ELFHDR.size

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    @classmethod
    def parse(cls, data):
        """Decode a header from the start of ``data``."""
        return _unpack(cls, _ELFHDR, data)

    def pack(self):
        """Encode the header into its on-disk byte form."""
        return _ELFHDR.pack(*astuple(self))

    @property
    def valid(self):
        """True if the magic number identifies an ELF file."""
        return self.magic == ELF_MAGIC


_PROGHDR = struct.Struct("<IIQQQQQQ")


@dataclass
class ProgramHeader:
    """ELF program segment header."""

    SIZE: ClassVar[int] = _PROGHDR.size

    type: int = 0
    flags: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    @classmethod
    def parse(cls, data):
        """Decode a program header from the start of ``data``."""
        return _unpack(cls, _PROGHDR, data)

    def pack(self):
        """Encode the program header into its on-disk byte form."""
        return _PROGHDR.pack(*astuple(self))


# ---------------------------------------------------------------- stat


class FileType(IntEnum):
    """Kinds of inode."""

    DIR = 1
    FILE = 2
    DEVICE = 3


_STAT = struct.Struct("<iIhh4xQ")


@dataclass
class Stat:
    """File status as returned by fstat."""

    SIZE: ClassVar[int] = _STAT.size

    dev: int = 0
    ino: int = 0
    type: int = 0
    nlink: int = 0
    size: int = 0

    @classmethod
    def parse(cls, data):
        """Decode a stat record from the start of ``data``."""
        return _unpack(cls, _STAT, data)

    def pack(self):
        """Encode the stat record into its byte form."""
        return _STAT.pack(*astuple(self))


# ---------------------------------------------------------------- fcntl


class OpenFlag(IntFlag):
    """Mode bits accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


# ---------------------------------------------------------------- virtio

VIRTIO_MMIO_MAGIC_VALUE = 0x000
VIRTIO_MMIO_VERSION = 0x004
VIRTIO_MMIO_DEVICE_ID = 0x008
VIRTIO_MMIO_VENDOR_ID = 0x00C
VIRTIO_MMIO_DEVICE_FEATURES = 0x010
VIRTIO_MMIO_DRIVER_FEATURES = 0x020
VIRTIO_MMIO_QUEUE_SEL = 0x030
VIRTIO_MMIO_QUEUE_NUM_MAX = 0x034
VIRTIO_MMIO_QUEUE_NUM = 0x038
VIRTIO_MMIO_QUEUE_READY = 0x044
VIRTIO_MMIO_QUEUE_NOTIFY = 0x050
VIRTIO_MMIO_INTERRUPT_STATUS = 0x060
VIRTIO_MMIO_INTERRUPT_ACK = 0x064
VIRTIO_MMIO_STATUS = 0x070
VIRTIO_MMIO_QUEUE_DESC_LOW = 0x080
VIRTIO_MMIO_QUEUE_DESC_HIGH = 0x084
VIRTIO_MMIO_DRIVER_DESC_LOW = 0x090
VIRTIO_MMIO_DRIVER_DESC_HIGH = 0x094
VIRTIO_MMIO_DEVICE_DESC_LOW = 0x0A0
VIRTIO_MMIO_DEVICE_DESC_HIGH = 0x0A4


class VirtioStatus(IntFlag):
    """Bits of the virtio status register."""

    ACKNOWLEDGE = 1
    DRIVER = 2
    DRIVER_OK = 4
    FEATURES_OK = 8


VIRTIO_BLK_F_RO = 5
VIRTIO_BLK_F_SCSI = 7
VIRTIO_BLK_F_CONFIG_WCE = 11
VIRTIO_BLK_F_MQ = 12
VIRTIO_F_ANY_LAYOUT = 27
VIRTIO_RING_F_INDIRECT_DESC = 28
VIRTIO_RING_F_EVENT_IDX = 29

NUM = 8  # descriptors per queue; a power of two

VRING_DESC_F_NEXT = 1
VRING_DESC_F_WRITE = 2

VIRTIO_BLK_T_IN = 0
VIRTIO_BLK_T_OUT = 1

_VIRTQ_DESC = struct.Struct("<QIHH")


@dataclass
class VirtqDesc:
    """A single virtqueue descriptor."""

    SIZE: ClassVar[int] = _VIRTQ_DESC.size

    addr: int = 0
    len: int = 0
    flags: int = 0
    next: int = 0

    @classmethod
    def parse(cls, data):
        """Decode a descriptor from the start of ``data``."""
        return _unpack(cls, _VIRTQ_DESC, data)

    def pack(self):
        """Encode the descriptor into its byte form."""
        return _VIRTQ_DESC.pack(*astuple(self))


_BLK_REQ = struct.Struct("<IIQ")


@dataclass
class VirtioBlkReq:
    """Header of a virtio block-device request."""

    SIZE: ClassVar[int] = _BLK_REQ.size

    type: int = VIRTIO_BLK_T_IN
    reserved: int = 0
    sector: int = 0

    @classmethod
    def parse(cls, data):
        """Decode a request header from the start of ``data``."""
        return _unpack(cls, _BLK_REQ, data)

    def pack(self):
        """Encode the request header into its byte form."""
        return _BLK_REQ.pack(*astuple(self))


# ---------------------------------------------------------------- memory map

UART0 = 0x10000000
UART0_IRQ = 10

VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1

PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000


def plic_senable(hart):
    """Supervisor interrupt-enable register of ``hart``."""
    return PLIC + 0x2080 + hart * 0x100


def plic_spriority(hart):
    """Supervisor priority-threshold register of ``hart``."""
    return PLIC + 0x201000 + hart * 0x2000


def plic_sclaim(hart):
    """Supervisor claim/complete register of ``hart``."""
    return PLIC + 0x201004 + hart * 0x2000


KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

TRAMPOLINE = MAXVA - PGSIZE
TRAPFRAME = TRAMPOLINE - PGSIZE


def kstack(p):
    """Virtual address of the kernel stack for process slot ``p``.

    Each stack is followed by an unmapped guard page.
    """
    return TRAMPOLINE - (p + 1) * 2 * PGSIZE