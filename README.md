# xvtools

A compact, Unix-style userland in plain Python, together with models of
the data formats, user-space allocator and page tables of a small
teaching kernel. There are no third-party dependencies.

## Installation

```
pip install .
```

Use `pip install .[test]` to also install `pytest` for the test suite.

## Commands

| Command    | What it does                                                           |
|------------|------------------------------------------------------------------------|
| `xv-sh`    | Shell with `|`, `;`, `&`, `<`, `>`, `>>` and `( )`, plus `cd dir`      |
| `xv-grep`  | `xv-grep pattern [file ...]`, supporting only `^ . * $`                |
| `xv-wc`    | Prints `lines words bytes name` for each file, or for standard input   |
| `xv-cat`   | Copies files, or standard input, to standard output                    |
| `xv-echo`  | Prints its arguments separated by spaces                               |
| `xv-kill`  | `xv-kill pid...` sends SIGKILL (SIGTERM where SIGKILL does not exist)  |
| `xv-ln`    | `xv-ln old new` creates a hard link                                    |
| `xv-ls`    | Lists a file, or a directory's entries, as name, type, inode and size  |
| `xv-mkdir` | Creates directories, stopping at the first failure                     |
| `xv-rm`    | Removes files or empty directories, stopping at the first failure      |

Examples:

```
$ xv-echo hello world
hello world
$ xv-grep '^de.*f$' notes.txt
$ xv-wc notes.txt
$ xv-ls .
```

In `xv-ls` output the type is a number: 1 for a directory, 2 for a
regular file, 3 for anything else. Names shorter than 14 characters are
padded with blanks.

## The shell

`xv-sh` prints `$ ` on standard error, reads a line of at most 99
characters and runs it. A line starting with `cd ` changes the shell's
own working directory; every other line is parsed and executed.

Commands are run in-process from a table of built-ins: `echo`, `cat`,
`grep`, `wc`, `ls`, `mkdir` and `rm`. A name not in the table prints
`exec NAME failed`. At most nine arguments are accepted per command.

What the shell does not do:

- It does not start other programs; only the built-ins above exist.
- A pipeline runs its left side to completion, buffers the output in
  memory and then runs the right side.
- `&` runs the command in the foreground; there are no background jobs.

`Shell` can be used with a custom table: each command is a callable
`f(argv, stdin, stdout, stderr)` returning an exit status (`None` counts
as 0).

```python
import io
from xvtools.shell import Shell

out = io.StringIO()
Shell(stdout=out).run_line("echo hi | grep h")
out.getvalue()   # 'hi\n'
```

## Library

Formatted output (`xvtools.fmt`) understands `%d`, `%u`, `%x`, `%p`,
`%s` and `%%`, with `l` and `ll` prefixes. Integers are printed as 32-bit
values and hexadecimal digits in upper case; an unknown conversion is
echoed as written:

```python
from xvtools.fmt import sprintf

sprintf("%d %x %s", -5, 255, "hi")   # '-5 FF hi'
```

The grep matcher:

```python
from xvtools.grep import match

match("^a.*b$", "axxb")   # True
match("^a.*b$", "axxc")   # False
```

Parsing command lines into trees of `ExecCmd`, `RedirCmd`, `PipeCmd`,
`ListCmd` and `BackCmd`; a malformed line raises `ShellSyntaxError`:

```python
from xvtools.shell import parse_command

tree = parse_command("cat < in.txt | grep x > out.txt; echo done &")
```

Other modules:

- `xvtools.wc`: `count(stream)` returns `Counts(lines, words, chars)`.
- `xvtools.coreutils`: `cat`, `ls` and `fmtname`, and the `*_main`
  functions behind the commands.
- `xvtools.ulib`: `atoi`, `strcmp` and the line reader `gets`.
- `xvtools.filetypes`: `FileType`, `OpenFlags`, `Stat.from_path` and
  `open_mode`, which turns `OpenFlags` into flags for `os.open`.
- `xvtools.rand`: the Park–Miller generator `do_rand` and
  `ParkMiller(seed)`; `ParkMiller(1).next()` gives `33613`.
- `xvtools.umalloc`: `Heap(limit)`, a first-fit free-list allocator that
  grows through `sbrk` up to `limit` bytes. `malloc` raises
  `MemoryError` when it cannot grow; `free` and `block_size` raise
  `ValueError` for addresses that are not allocated.
- `xvtools.elf`: `ElfHeader` and `ProgramHeader` parse and pack the
  64-bit little-endian ELF structures, and `program_headers` returns the
  list of program headers a file header describes. Bad input raises
  `ElfFormatError`.
- `xvtools.virtio`: `MmioRegister` offsets, `ConfigStatus` and
  `DescFlag` bits, and packable `Descriptor`, `AvailRing`, `UsedRing`
  and `BlockRequest` structures (`UsedElem` entries in the used ring).
- `xvtools.memlayout`: the physical memory map (`UART0`, `VIRTIO0`,
  `PLIC`, `KERNBASE`, `PHYSTOP`, `TRAMPOLINE`, `TRAPFRAME`, `MAXVA`) and
  `plic_senable`, `plic_spriority`, `plic_sclaim` and `kstack`.
- `xvtools.vm`: a model of three-level Sv39 paging held in a simulated
  `PhysicalMemory`. `AddressSpace` walks, maps, unmaps, grows, shrinks,
  copies and frees pages, and supports `copyin`, `copyout` and
  `copyinstr`. Errors raise `KernelPanic`, `OutOfMemory` or
  `BadAddress`.

These models are standalone: there is no kernel, scheduler, file system
or disk driver behind them.