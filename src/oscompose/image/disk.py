"""Partition table model for installer boot media."""

from __future__ import annotations

import random
from dataclasses import dataclass

MEBIBYTE = 1024 * 1024
GIBIBYTE = 1024 * MEBIBYTE


@dataclass(frozen=True, slots=True)
class Filesystem:
    type: str
    uuid: str
    mountpoint: str
    label: str = ""
    fstab_options: str = "defaults"


@dataclass(frozen=True, slots=True)
class Partition:
    start: int
    size: int
    filesystem: Filesystem
    type: str = ""


@dataclass(frozen=True, slots=True)
class PartitionTable:
    size: int
    partitions: tuple[Partition, ...]
    uuid: str = ""
    type: str = ""

    def find_mountpoint(self, mountpoint: str) -> Filesystem | None:
        for partition in self.partitions:
            if partition.filesystem.mountpoint == mountpoint:
                return partition.filesystem
        return None


def new_vol_id(rng: random.Random) -> str:
    """Return a FAT volume id: eight lowercase hex digits drawn from ``rng``."""
    return f"{rng.getrandbits(32):08x}"


def efi_boot_partition_table(rng: random.Random) -> PartitionTable:
    return PartitionTable(
        size=20 * MEBIBYTE,
        partitions=(
            Partition(
                start=0,
                size=20 * MEBIBYTE,
                filesystem=Filesystem(
                    type="vfat",
                    uuid=new_vol_id(rng),
                    mountpoint="/boot/efi",
                    label="EFI-SYSTEM",
                    fstab_options="umask=0077,shortname=winnt",
                ),
            ),
        ),
    )


__all__ = [
    "GIBIBYTE",
    "MEBIBYTE",
    "Filesystem",
    "Partition",
    "PartitionTable",
    "efi_boot_partition_table",
    "new_vol_id",
]
