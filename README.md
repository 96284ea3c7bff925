# xvsim

A pure-Python model of the core pieces of a small x86 teaching kernel and its
user-space tools. It is meant for experimenting with and testing how those
pieces behave. No emulator and no hardware are involved.

## What is inside

- `xvsim.mmu`: address arithmetic for two-level paging (`pdx`, `ptx`,
  `pgaddr`, `pgroundup`, `pgrounddown`, `pte_addr`, `pte_flags`, `v2p`,
  `p2v`). It also has segment and gate descriptors: `seg`, `seg16` and
  `set_gate` build `SegDesc` and `GateDesc` values, whose `pack()` gives the
  8 descriptor bytes. `seg_asm` gives the bytes of a boot-time descriptor.
  The module also holds the layout and parameter constants (`KERNBASE`,
  `PHYSTOP`, `PGSIZE`, `NPROC`, `MAXARG` and others).
- `xvsim.elf`: `ElfHeader` and `ProgHeader` parse and pack 32-bit
  little-endian ELF headers. `read_program_headers` lists every program
  header in an image. A bad magic number or truncated data raises
  `ElfFormatError`.
- `xvsim.kstring`: byte-string helpers with C string semantics. Strings end
  at the first NUL. The helpers are `memset`, `memcmp`, `memmove`, `strncmp`,
  `strcmp`, `strncpy`, `safestrcpy`, `strlen`, `strchr`, `atoi` and `gets`.
  `memset` and `memmove` change a `bytearray` in place. `strncpy` and
  `safestrcpy` return the bytes that would be written. `strchr` returns an
  index or `None`. `gets` reads one line from a binary stream.
- `xvsim.locks`: `SpinLock` is owned by a `Cpu` and `SleepLock` by a process
  id. `Cpu.pushcli` and `Cpu.popcli` track nested interrupt disabling. Misuse
  raises `LockError`: acquiring a lock already held, releasing one not held,
  or an unbalanced `popcli`.
- `xvsim.vm`: `PhysicalMemory` is a pool of page frames with `kalloc`,
  `kfree`, `read` and `write`. `AddressSpace` is a page directory stored in
  that pool. It has `walk`, `map_pages`, `init_user`, `load`, `alloc_user`,
  `dealloc_user`, `copy`, `free`, `clear_user`, `uva2ka` and `copyout`.
  `setup_kvm` builds an address space that holds the kernel mappings.
  Failures raise `VmError`; running out of pages raises `OutOfMemory`.
- `xvsim.shparse`: the shell's command grammar. `parsecmd` turns a line into
  a tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`, and
  raises `ShellSyntaxError` on bad input. `gettoken` scans a single token.
- `xvsim.umalloc`: `Heap` is a first-fit free-list allocator over a
  simulated program break. It has `sbrk`, `malloc` and `free`, and works
  with integer addresses.
- `xvsim.syscalls`: `SysNum` holds the system call numbers. `Stat` is a file
  status record. `SyscallContext` fetches arguments from a process's user
  memory; a bad argument raises `SyscallError`. `SyscallTable` maps numbers
  to handlers you register. `dispatch` stores the result in `ctx.eax`. It
  stores -1 for an unknown call, which it also reports, and for a handler
  that raises `SyscallError`.
- `xvsim.wc` and `xvsim.rm`: the word-count and remove utilities, also
  available as functions (`wc.count`, `wc.wc`, `wc.main`, `rm.main`).

## Installation

```
pip install .
```

## Examples

Parse a shell command line:

```python
from xvsim.shparse import parsecmd, PipeCmd

tree = parsecmd("cat README | grep the > out\n")
assert isinstance(tree, PipeCmd)
```

Map pages and copy data into user memory:

```python
from xvsim.vm import PhysicalMemory, setup_kvm

mem = PhysicalMemory()
space = setup_kvm(mem, kernel_data=0x80108000)
size = space.alloc_user(0, 8192)
space.copyout(100, b"hello")
```

Count lines, words and bytes:

```python
from xvsim.wc import count

counts = count(b"one two\nthree\n")
assert (counts.lines, counts.words, counts.chars) == (2, 3, 14)
```

## Command-line tools

```
xvsim-wc [FILE...]
xvsim-rm FILE...
```

`xvsim-wc` prints the line, word and byte counts for each file. With no file
given, it counts standard input. It stops with status 1 at a file it cannot
open.

`xvsim-rm` removes each path in turn: files, links and empty directories. It
stops with status 1 at the first path it cannot remove. Run with no
arguments, it prints a usage line.

## What it does not do

This package models separate pieces. It does not run a kernel. It has no
process scheduler, no traps or interrupts, no file system, no pipes or
devices, and no console. The system call table comes with no handlers of its
own. The shell module parses command lines but does not run them.

## Running the tests

```
pip install .[test]
pytest
```