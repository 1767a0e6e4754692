"""Physical and virtual memory layout of the emulated RISC-V machine.

Boot ROM at 0x1000, CLINT at 0x2000000, PLIC at 0xc000000, the UART at
0x10000000 and the virtio disk at 0x10001000. RAM starts at KERNBASE; the
kernel's text and data come first and pages are handed out up to PHYSTOP.
"""

PGSIZE = 4096
PGSHIFT = 12

# One bit less than the full Sv39 range, so that addresses never need
# sign extension.
MAXVA = 1 << (9 + 9 + 9 + PGSHIFT - 1)

UART0 = 0x10000000
UART0_IRQ = 10

VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1

PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000

KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

# The trampoline page sits at the top of both user and kernel space.
TRAMPOLINE = MAXVA - PGSIZE

# User space: text, data, stack, heap, ..., TRAPFRAME, TRAMPOLINE.
TRAPFRAME = TRAMPOLINE - PGSIZE


def plic_senable(hart):
    """Address of the supervisor-mode interrupt enable bits for ``hart``."""
    return PLIC + 0x2080 + hart * 0x100


def plic_spriority(hart):
    """Address of the supervisor-mode priority threshold for ``hart``."""
    return PLIC + 0x201000 + hart * 0x2000


def plic_sclaim(hart):
    """Address of the supervisor-mode claim/complete register for ``hart``."""
    return PLIC + 0x201004 + hart * 0x2000


def kstack(p):
    """Virtual address of process slot ``p``'s kernel stack.

    Stacks lie beneath the trampoline, each followed by an unmapped guard page.
    """
    return TRAMPOLINE - (p + 1) * 2 * PGSIZE