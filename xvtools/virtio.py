"""Virtio MMIO registers and the split-virtqueue structures of a block device."""

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag

# Number of descriptors in a queue; must be a power of two.
NUM = 8

# Device feature bits.
BLK_F_RO = 5
BLK_F_SCSI = 7
BLK_F_CONFIG_WCE = 11
BLK_F_MQ = 12
F_ANY_LAYOUT = 27
RING_F_INDIRECT_DESC = 28
RING_F_EVENT_IDX = 29

# Block request types.
BLK_T_IN = 0
BLK_T_OUT = 1


class MmioRegister(IntEnum):
    """Offsets of the virtio MMIO control registers."""

    MAGIC_VALUE = 0x000
    VERSION = 0x004
    DEVICE_ID = 0x008
    VENDOR_ID = 0x00C
    DEVICE_FEATURES = 0x010
    DRIVER_FEATURES = 0x020
    QUEUE_SEL = 0x030
    QUEUE_NUM_MAX = 0x034
    QUEUE_NUM = 0x038
    QUEUE_READY = 0x044
    QUEUE_NOTIFY = 0x050
    INTERRUPT_STATUS = 0x060
    INTERRUPT_ACK = 0x064
    STATUS = 0x070
    QUEUE_DESC_LOW = 0x080
    QUEUE_DESC_HIGH = 0x084
    DRIVER_DESC_LOW = 0x090
    DRIVER_DESC_HIGH = 0x094
    DEVICE_DESC_LOW = 0x0A0
    DEVICE_DESC_HIGH = 0x0A4


class ConfigStatus(IntFlag):
    """Bits of the device status register."""

    ACKNOWLEDGE = 1
    DRIVER = 2
    DRIVER_OK = 4
    FEATURES_OK = 8


class DescFlag(IntFlag):
    """Descriptor flags."""

    NEXT = 1
    WRITE = 2


_DESC = struct.Struct("<QIHH")
_AVAIL = struct.Struct(f"<HH{NUM}HH")
_USED_ELEM = struct.Struct("<II")
_USED = struct.Struct("<HH" + "II" * NUM)
_BLK_REQ = struct.Struct("<IIQ")


def _pack(layout, *values):
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(layout, data, what):
    if len(data) < layout.size:
        raise ValueError(f"need {layout.size} bytes for {what}, got {len(data)}")
    return layout.unpack_from(data, 0)


def _check_ring(ring):
    if len(ring) != NUM:
        raise ValueError(f"ring must have {NUM} entries, not {len(ring)}")


@dataclass
class Descriptor:
    """A single buffer descriptor."""

    addr: int = 0
    len: int = 0
    flags: int = 0
    next: int = 0

    SIZE = _DESC.size

    def pack(self):
        return _pack(_DESC, self.addr, self.len, int(self.flags), self.next)

    @classmethod
    def parse(cls, data):
        addr, length, flags, nxt = _unpack(_DESC, data, "a descriptor")
        return cls(addr, length, DescFlag(flags), nxt)


@dataclass
class AvailRing:
    """The driver's ring of available descriptor chain heads."""

    flags: int = 0
    idx: int = 0
    ring: list = field(default_factory=lambda: [0] * NUM)
    unused: int = 0

    SIZE = _AVAIL.size

    def pack(self):
        _check_ring(self.ring)
        return _pack(_AVAIL, self.flags, self.idx, *self.ring, self.unused)

    @classmethod
    def parse(cls, data):
        flags, idx, *rest = _unpack(_AVAIL, data, "an avail ring")
        return cls(flags, idx, list(rest[:NUM]), rest[NUM])


@dataclass
class UsedElem:
    """One completed request reported by the device."""

    id: int = 0
    len: int = 0

    SIZE = _USED_ELEM.size


@dataclass
class UsedRing:
    """The device's ring of completed descriptor chains."""

    flags: int = 0
    idx: int = 0
    ring: list = field(default_factory=lambda: [UsedElem() for _ in range(NUM)])

    SIZE = _USED.size

    def pack(self):
        _check_ring(self.ring)
        values = [v for elem in self.ring for v in (elem.id, elem.len)]
        return _pack(_USED, self.flags, self.idx, *values)

    @classmethod
    def parse(cls, data):
        flags, idx, *rest = _unpack(_USED, data, "a used ring")
        ring = [UsedElem(rest[i], rest[i + 1]) for i in range(0, 2 * NUM, 2)]
        return cls(flags, idx, ring)


@dataclass
class BlockRequest:
    """Header of a block device request, followed by data and status buffers."""

    type: int = BLK_T_IN
    reserved: int = 0
    sector: int = 0

    SIZE = _BLK_REQ.size

    def pack(self):
        return _pack(_BLK_REQ, self.type, self.reserved, self.sector)

    @classmethod
    def parse(cls, data):
        return cls(*_unpack(_BLK_REQ, data, "a block request"))