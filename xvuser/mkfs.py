"""Build a file-system image holding a root directory and a set of files."""

import struct
import sys
from dataclasses import dataclass, field
from typing import List

from .headers import FileType

_SUPERBLOCK = struct.Struct("<8I")
_U32 = struct.Struct("<I")


@dataclass(frozen=True)
class Layout:
    """Geometry of the image.

    Disk layout: [ boot block | super block | log | inode blocks | free bit map | data blocks ]
    """

    block_size: int = 1024
    fs_size: int = 2000
    ninodes: int = 200
    nlog: int = 30
    ndirect: int = 12
    dirsiz: int = 14
    magic: int = 0x10203040
    rootino: int = 1

    def __post_init__(self):
        if self.block_size % self.inode_size:
            raise ValueError("block size must be a multiple of the inode size")
        if self.block_size % self.dirent_size:
            raise ValueError("block size must be a multiple of the directory entry size")

    @property
    def inode_size(self):
        return 4 * 2 + 4 + 4 * (self.ndirect + 1)

    @property
    def dirent_size(self):
        size = 2 + self.dirsiz
        return size + (size % 2)

    @property
    def ipb(self):
        """Inodes per block."""
        return self.block_size // self.inode_size

    @property
    def bpb(self):
        """Bitmap bits per block."""
        return self.block_size * 8

    @property
    def nindirect(self):
        return self.block_size // 4

    @property
    def maxfile(self):
        """Largest file, in blocks."""
        return self.ndirect + self.nindirect

    @property
    def nbitmap(self):
        return self.fs_size // self.bpb + 1

    @property
    def ninodeblocks(self):
        return self.ninodes // self.ipb + 1

    @property
    def nmeta(self):
        """Blocks used by boot, super block, log, inodes and bitmap."""
        return 2 + self.nlog + self.ninodeblocks + self.nbitmap

    @property
    def nblocks(self):
        """Data blocks."""
        return self.fs_size - self.nmeta

    @property
    def logstart(self):
        return 2

    @property
    def inodestart(self):
        return 2 + self.nlog

    @property
    def bmapstart(self):
        return 2 + self.nlog + self.ninodeblocks

    def iblock(self, inum):
        """Block holding inode ``inum``."""
        return inum // self.ipb + self.inodestart

    def superblock(self):
        """Encoded super block."""
        return _SUPERBLOCK.pack(
            self.magic,
            self.fs_size,
            self.nblocks,
            self.ninodes,
            self.nlog,
            self.logstart,
            self.inodestart,
            self.bmapstart,
        )


@dataclass
class DiskInode:
    """On-disk inode."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: List[int] = field(default_factory=list)


class ImageBuilder:
    """Writes an image to the binary file ``fp``, starting with an empty root directory."""

    def __init__(self, fp, layout=None):
        self.fp = fp
        self.layout = layout if layout is not None else Layout()
        lay = self.layout
        self._inode_struct = struct.Struct(f"<hhhhI{lay.ndirect + 1}I")
        self._indirect_struct = struct.Struct(f"<{lay.nindirect}I")
        self.freeinode = 1
        self.freeblock = lay.nmeta

        fp.seek(0)
        fp.write(bytes(lay.block_size * lay.fs_size))
        self._wsect(1, lay.superblock())

        self.root = self.ialloc(FileType.DIR)
        if self.root != lay.rootino:
            raise ValueError(f"root inode is {self.root}, expected {lay.rootino}")
        self._add_dirent(self.root, self.root, b".")
        self._add_dirent(self.root, self.root, b"..")

    def _wsect(self, sec, data):
        bs = self.layout.block_size
        if len(data) > bs:
            raise ValueError("sector data larger than a block")
        self.fp.seek(sec * bs)
        self.fp.write(bytes(data).ljust(bs, b"\0"))

    def _rsect(self, sec):
        bs = self.layout.block_size
        self.fp.seek(sec * bs)
        data = self.fp.read(bs)
        if len(data) != bs:
            raise OSError(f"short read of sector {sec}")
        return data

    def _take_block(self):
        block = self.freeblock
        self.freeblock += 1
        return block

    def rinode(self, inum):
        """Read inode ``inum`` from the image."""
        lay = self.layout
        buf = self._rsect(lay.iblock(inum))
        off = (inum % lay.ipb) * lay.inode_size
        type_, major, minor, nlink, size, *addrs = self._inode_struct.unpack_from(buf, off)
        return DiskInode(type_, major, minor, nlink, size, list(addrs))

    def winode(self, inum, inode):
        """Write ``inode`` as inode ``inum``."""
        lay = self.layout
        bn = lay.iblock(inum)
        buf = bytearray(self._rsect(bn))
        addrs = list(inode.addrs) + [0] * (lay.ndirect + 1 - len(inode.addrs))
        self._inode_struct.pack_into(
            buf,
            (inum % lay.ipb) * lay.inode_size,
            inode.type,
            inode.major,
            inode.minor,
            inode.nlink,
            inode.size,
            *addrs,
        )
        self._wsect(bn, buf)

    def ialloc(self, type):
        """Allocate a fresh inode of kind ``type`` and return its number."""
        inum = self.freeinode
        self.freeinode += 1
        din = DiskInode(
            type=int(type), nlink=1, size=0, addrs=[0] * (self.layout.ndirect + 1)
        )
        self.winode(inum, din)
        return inum

    def iappend(self, inum, data):
        """Append ``data`` to the contents of inode ``inum``."""
        lay = self.layout
        bs, nd = lay.block_size, lay.ndirect
        din = self.rinode(inum)
        off = din.size
        view = memoryview(bytes(data))
        pos = 0
        while pos < len(view):
            fbn = off // bs
            if fbn >= lay.maxfile:
                raise ValueError(f"inode {inum} would exceed the maximum file size")
            if fbn < nd:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._take_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[nd] == 0:
                    din.addrs[nd] = self._take_block()
                indirect = list(self._indirect_struct.unpack(self._rsect(din.addrs[nd])))
                k = fbn - nd
                if indirect[k] == 0:
                    indirect[k] = self._take_block()
                    self._wsect(din.addrs[nd], self._indirect_struct.pack(*indirect))
                x = indirect[k]
            n1 = min(len(view) - pos, (fbn + 1) * bs - off)
            buf = bytearray(self._rsect(x))
            start = off - fbn * bs
            buf[start:start + n1] = view[pos:pos + n1]
            self._wsect(x, buf)
            pos += n1
            off += n1
        din.size = off
        self.winode(inum, din)

    def _add_dirent(self, dir_inum, inum, name):
        lay = self.layout
        entry = struct.pack("<H", inum) + name[:lay.dirsiz].ljust(lay.dirent_size - 2, b"\0")
        self.iappend(dir_inum, entry)

    def balloc(self, used):
        """Mark the first ``used`` blocks as allocated in the free bitmap."""
        lay = self.layout
        if not 0 <= used < lay.bpb:
            raise ValueError(f"{used} used blocks do not fit in one bitmap block")
        buf = bytearray(lay.block_size)
        for i in range(used):
            buf[i // 8] |= 1 << (i % 8)
        self._wsect(lay.bmapstart, buf)

    def add_file(self, path):
        """Copy the host file ``path`` into the root directory; return its inode.

        A leading ``user/`` and then a leading ``_`` are dropped from the name.
        """
        shortname = path[5:] if path.startswith("user/") else path
        if "/" in shortname:
            raise ValueError(f"{path}: name must not contain '/'")
        with open(path, "rb") as f:
            if shortname.startswith("_"):
                shortname = shortname[1:]
            name = shortname.encode("utf-8")
            if len(name) > self.layout.dirsiz:
                raise ValueError(f"{path}: name longer than {self.layout.dirsiz} bytes")
            inum = self.ialloc(FileType.FILE)
            self._add_dirent(self.root, inum, name)
            for chunk in iter(lambda: f.read(self.layout.block_size), b""):
                self.iappend(inum, chunk)
        return inum


def build(image_path, paths, layout=None):
    """Write a complete image to ``image_path``; return the number of blocks in use."""
    with open(image_path, "w+b") as fp:
        builder = ImageBuilder(fp, layout)
        for path in paths:
            builder.add_file(path)
        bs = builder.layout.block_size
        din = builder.rinode(builder.root)
        din.size = (din.size // bs + 1) * bs
        builder.winode(builder.root, din)
        builder.balloc(builder.freeblock)
        return builder.freeblock


def main(argv=None):
    """Build the image named by the first argument from the remaining files."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("Usage: mkfs fs.img files...\n")
        return 1
    lay = Layout()
    print(
        f"nmeta {lay.nmeta} (boot, super, log blocks {lay.nlog} inode blocks "
        f"{lay.ninodeblocks}, bitmap blocks {lay.nbitmap}) blocks {lay.nblocks} "
        f"total {lay.fs_size}"
    )
    try:
        used = build(args[0], args[1:], lay)
    except OSError as exc:
        sys.stderr.write(f"{exc.filename or args[0]}: {exc.strerror or exc}\n")
        return 1
    except ValueError as exc:
        sys.stderr.write(f"mkfs: {exc}\n")
        return 1
    print(f"balloc: first {used} blocks have been allocated")
    print(f"balloc: write bitmap block at sector {lay.bmapstart}")
    return 0


if __name__ == "__main__":
    sys.exit(main())