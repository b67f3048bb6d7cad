# xvuser

Pieces of a small teaching operating system, as plain Python: a set of
classic command-line programs, a file-system image builder, the record
layouts and memory map shared by kernel and tools, a shell command-line
parser, and a model of three-level Sv39 page tables over simulated
physical memory.

No dependencies beyond the standard library. Python 3.10 or newer.

## Installing

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Commands

Each command is installed with an `xv-` prefix so it does not shadow the
programs your system already has. They work on the host's own files.

| Command    | What it does                                                      |
|------------|-------------------------------------------------------------------|
| `xv-cat`   | copy files (or standard input) to standard output                 |
| `xv-echo`  | print its arguments separated by spaces                           |
| `xv-wc`    | print lines, words and bytes, then the name, for each input       |
| `xv-grep`  | print lines matching a pattern using only `^ . * $`               |
| `xv-ls`    | list a file, or `.`, `..` and the entries of a directory          |
| `xv-kill`  | kill each process id given                                        |
| `xv-ln`    | make a hard link: `xv-ln old new`                                 |
| `xv-mkdir` | create directories, stopping at the first failure                 |
| `xv-rm`    | remove files or empty directories, stopping at the first failure  |
| `xv-mkfs`  | build a file-system image: `xv-mkfs fs.img files...`              |

Examples:

    xv-echo hello world
    xv-grep '^int' notes.txt
    xv-wc README.md
    xv-mkfs fs.img README.md user/_cat user/_echo

`xv-grep` only looks at lines that end in a newline. `xv-ls` prints each
name padded to 14 characters, followed by the type (1 directory, 2 file,
3 device), the inode number and the size.

`xv-mkfs` drops a leading `user/` and then a leading `_` from each file's
name before placing it in the image's root directory; names may be at
most 14 bytes and may not contain `/`. The default `Layout` is 2000
blocks of 1024 bytes with 200 inodes and a 30-block log.

## Library use

- `xvuser.headers` – `ElfHeader` and `ProgramHeader`, the `Stat` record,
  `FileType` and `OpenFlag`, virtio `VirtqDesc` and `VirtioBlkReq`, with
  `ProgFlag`, `VirtioStatus` and the register and memory-map constants.
  Every record has `parse(data)` (raising `ValueError` on short input) and
  `pack()`. `plic_senable`, `plic_spriority`, `plic_sclaim` and `kstack`
  compute per-hart and per-process addresses.
- `xvuser.fmt` – `format_string`, `fprintf(stream, ...)` and `printf`,
  understanding `%d`, `%u`, `%x` (with `l` and `ll` forms, all as 32-bit
  values), `%p`, `%s` and `%%`; other sequences are printed as written.
- `xvuser.ulib` – `atoi`, `strcmp`, `memcmp`, `gets(stream, max)`,
  `stat(path)` returning a `Stat`, and the `Sysinfo` record.
- `xvuser.umalloc` – `Allocator(limit=None)`, a first-fit free-list
  allocator whose `malloc(nbytes)` returns an address in a simulated heap
  (or None once growth would pass `limit` bytes) and whose `free(ap)`
  raises `ValueError` for an address it did not hand out.
- `xvuser.cat` – `cat(stream, out)`; `xvuser.echo` – `echo(args)`;
  `xvuser.wc` – `wc(stream)` returning a `WordCount`.
- `xvuser.grep` – `match(re, text)` and `grep(pattern, stream, out)`.
- `xvuser.ls` – `fmtname(path)` and `ls(path, out)`.
- `xvuser.fileutils` – `kill_main`, `ln_main`, `mkdir_main`, `rm_main`.
- `xvuser.grind` – `do_rand(ctx)` and the `Rand` Park–Miller generator,
  with `rand()` and `sequence(n, modulus=None)`.
- `xvuser.sh` – `parse_command(s)` turns a shell line into a tree of
  `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`, raising
  `ShellSyntaxError` on bad input (with any unparsed text in `leftovers`).
- `xvuser.mkfs` – `Layout`, `ImageBuilder` (`ialloc`, `iappend`,
  `rinode`, `winode`, `balloc`, `add_file`) and
  `build(image_path, paths, layout=None)`, which returns the number of
  blocks in use.
- `xvuser.vm` – `PhysicalMemory(npages, base)` with `kalloc`, `kfree`,
  `read` and `write`, and `AddressSpace(mem)` with `walk`, `walkaddr`,
  `mappages`, `unmap`, `load_first`, `grow`, `shrink`, `free`, `copy_to`,
  `clear_user`, `copyout`, `copyin` and `copyinstr`; plus `pgroundup`,
  `pgrounddown` and `px`. Broken invariants raise `VmPanic`; running out
  of frames raises `MemoryError`; bad user addresses raise
  `OSError(EFAULT)`, and an unterminated string `OSError(ENAMETOOLONG)`.

```python
from xvuser.fmt import format_string
from xvuser.grep import match
from xvuser.sh import parse_command

format_string("%d items at %x", 12, 255)   # '12 items at FF'
match("^a.*b$", "axxb")                    # True
tree = parse_command("cat < in | grep x > out")
```

## What this package does not do

- There is no interactive shell: `xvuser.sh` parses command lines but
  does not run them.
- There is no random system-call stress command: `xvuser.grind` holds
  only its random-number generator.
- There is no kernel, process table or system-call layer; the page-table
  model in `xvuser.vm` works on simulated memory only, and the commands
  act on the host's files and processes rather than on a built image.