"""Assembler records: the terminal step that turns a tree into an image file."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar
from uuid import UUID

from oscompose.pipeline.stages import StageOptions, require

QEMU_FORMATS = ("qcow2", "raw", "raw.xz", "vdi", "vmdk", "vpc")
TAR_COMPRESSIONS = ("", "bzip2", "gzip", "xz")


@dataclass(frozen=True, slots=True)
class Assembler:
    type: str
    options: StageOptions

    @classmethod
    def from_options(cls, options: StageOptions) -> Assembler:
        return cls(type=options.stage_type, options=options)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "options": self.options.to_dict()}


@dataclass(frozen=True, slots=True)
class QEMUFilesystem:
    type: str
    uuid: str
    mountpoint: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "uuid": self.uuid, "mountpoint": self.mountpoint}


@dataclass(frozen=True, slots=True)
class QEMUPartition:
    start: int
    filesystem: QEMUFilesystem
    bootable: bool = False
    size: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"start": self.start}
        if self.size:
            payload["size"] = self.size
        if self.bootable:
            payload["bootable"] = True
        payload["filesystem"] = self.filesystem.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class QEMUAssemblerOptions:
    stage_type: ClassVar[str] = "org.osbuild.qemu"

    format: str
    filename: str
    size: int
    ptuuid: str = ""
    pttype: str = ""
    partitions: tuple[QEMUPartition, ...] = ()

    def __post_init__(self) -> None:
        require(
            self.format in QEMU_FORMATS,
            f"Unsupported disk image format `{self.format}`.",
            stage_type=self.stage_type,
            hint=f"Use one of: {', '.join(QEMU_FORMATS)}.",
        )
        require(self.size > 0, "Disk image size must be positive.", stage_type=self.stage_type)
        require(bool(self.filename), "Disk image needs a filename.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "format": self.format,
            "filename": self.filename,
            "size": self.size,
        }
        if self.ptuuid:
            payload["ptuuid"] = self.ptuuid
        if self.pttype:
            payload["pttype"] = self.pttype
        if self.partitions:
            payload["partitions"] = [partition.to_dict() for partition in self.partitions]
        return payload


@dataclass(frozen=True, slots=True)
class TarAssemblerOptions:
    stage_type: ClassVar[str] = "org.osbuild.tar"

    filename: str
    compression: str = ""

    def __post_init__(self) -> None:
        require(
            self.compression in TAR_COMPRESSIONS,
            f"Unsupported tar compression `{self.compression}`.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"filename": self.filename}
        if self.compression:
            payload["compression"] = self.compression
        return payload


@dataclass(frozen=True, slots=True)
class RawFSAssemblerOptions:
    stage_type: ClassVar[str] = "org.osbuild.rawfs"

    filename: str
    root_fs_uuid: UUID
    size: int
    fs_type: str = "xfs"

    def __post_init__(self) -> None:
        require(
            self.size > 0,
            "Filesystem image size must be positive.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "root_fs_uuid": str(self.root_fs_uuid),
            "size": self.size,
            "fs_type": self.fs_type,
        }


__all__ = [
    "QEMU_FORMATS",
    "TAR_COMPRESSIONS",
    "Assembler",
    "QEMUAssemblerOptions",
    "QEMUFilesystem",
    "QEMUPartition",
    "RawFSAssemblerOptions",
    "TarAssemblerOptions",
]
