"""Image kinds that register pipelines in a manifest and describe their artifact."""

from .base import ImageBase
from .classic import DiskImage
from .disk import Filesystem, Partition, PartitionTable, efi_boot_partition_table, new_vol_id
from .installer import AnacondaOSTreeInstaller, InstallerPipelines, OSTreeSourceSpec
from .kickstart import KickstartOptions, KickstartOSTree
from .platform import Platform

ImageKind = AnacondaOSTreeInstaller | DiskImage

__all__ = [
    "AnacondaOSTreeInstaller",
    "DiskImage",
    "Filesystem",
    "ImageBase",
    "ImageKind",
    "InstallerPipelines",
    "KickstartOSTree",
    "KickstartOptions",
    "OSTreeSourceSpec",
    "Partition",
    "PartitionTable",
    "Platform",
    "efi_boot_partition_table",
    "new_vol_id",
]
