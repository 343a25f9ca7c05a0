"""Option types of the stages used by installer and ISO pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from oscompose.pipeline.stages import require


def pipeline_ref(name: str) -> str:
    return f"name:{name}"


@dataclass(frozen=True, slots=True)
class BuildstampStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.buildstamp"

    arch: str
    product: str
    version: str
    final: bool = True
    variant: str = ""
    bugurl: str = ""

    def __post_init__(self) -> None:
        require(bool(self.product), "Buildstamp needs a product name.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "arch": self.arch,
            "product": self.product,
            "version": self.version,
            "final": self.final,
        }
        if self.variant:
            payload["variant"] = self.variant
        if self.bugurl:
            payload["bugurl"] = self.bugurl
        return payload


@dataclass(frozen=True, slots=True)
class AnacondaStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.anaconda"

    kickstart_modules: tuple[str, ...]

    def __post_init__(self) -> None:
        require(
            bool(self.kickstart_modules),
            "Anaconda stage needs at least one kickstart module.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"kickstart-modules": list(self.kickstart_modules)}


@dataclass(frozen=True, slots=True)
class LoraxScriptStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.lorax-script"

    path: str
    basearch: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "basearch": self.basearch}


@dataclass(frozen=True, slots=True)
class DracutStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.dracut"

    kernel: tuple[str, ...]
    modules: tuple[str, ...] = ()
    add_drivers: tuple[str, ...] = ()
    extra: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        require(bool(self.kernel), "Dracut stage needs a kernel.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kernel": list(self.kernel)}
        if self.modules:
            payload["add_modules"] = list(self.modules)
        if self.add_drivers:
            payload["add_drivers"] = list(self.add_drivers)
        if self.extra:
            payload["extra"] = list(self.extra)
        return payload


@dataclass(frozen=True, slots=True)
class MkdirStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.mkdir"

    paths: tuple[str, ...]

    def __post_init__(self) -> None:
        require(bool(self.paths), "mkdir stage needs a path.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        return {"paths": [{"path": path, "parents": True} for path in self.paths]}


@dataclass(frozen=True, slots=True)
class TruncateStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.truncate"

    filename: str
    size: int

    def __post_init__(self) -> None:
        require(self.size > 0, "Truncate size must be positive.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        return {"filename": self.filename, "size": str(self.size)}


@dataclass(frozen=True, slots=True)
class MkfsExt4StageOptions:
    stage_type: ClassVar[str] = "org.osbuild.mkfs.ext4"

    filename: str
    uuid: str
    label: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"filename": self.filename, "uuid": self.uuid}
        if self.label:
            payload["label"] = self.label
        return payload


@dataclass(frozen=True, slots=True)
class MkfsFatStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.mkfs.fat"

    filename: str
    volid: str
    label: str = ""
    fat_size: int | None = None

    def __post_init__(self) -> None:
        require(
            len(self.volid) == 8,
            "FAT volume id must be eight hex digits.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"filename": self.filename, "volid": self.volid}
        if self.label:
            payload["label"] = self.label
        if self.fat_size is not None:
            payload["fat_size"] = self.fat_size
        return payload


@dataclass(frozen=True, slots=True)
class CopyPath:
    source: str
    destination: str

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.source, "to": self.destination}


@dataclass(frozen=True, slots=True)
class CopyStageOptions:
    """Copy paths out of another pipeline's tree into this tree or into an image file."""

    stage_type: ClassVar[str] = "org.osbuild.copy"

    source_pipeline: str
    paths: tuple[CopyPath, ...]
    target_image: str = ""

    def __post_init__(self) -> None:
        require(
            bool(self.paths),
            "Copy stage needs at least one path.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "source": pipeline_ref(self.source_pipeline),
            "paths": [path.to_dict() for path in self.paths],
        }
        if self.target_image:
            payload["target_image"] = self.target_image
        return payload


@dataclass(frozen=True, slots=True)
class SquashfsStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.squashfs"

    filename: str
    source_pipeline: str
    compression: str = "xz"
    bcj: str = ""

    def to_dict(self) -> dict[str, Any]:
        compression: dict[str, Any] = {"method": self.compression}
        if self.bcj:
            compression["options"] = {"bcj": self.bcj}
        return {
            "filename": self.filename,
            "source": pipeline_ref(self.source_pipeline),
            "compression": compression,
        }


@dataclass(frozen=True, slots=True)
class GRUB2ISOStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.grub2.iso"

    product_name: str
    product_version: str
    isolabel: str
    architectures: tuple[str, ...]
    vendor: str
    kernel_dir: str = "/images/pxeboot"
    kernel_opts: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        require(bool(self.isolabel), "GRUB2 ISO stage needs a label.", stage_type=self.stage_type)
        require(
            bool(self.architectures),
            "GRUB2 ISO stage needs an EFI architecture.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": {"name": self.product_name, "version": self.product_version},
            "kernel": {"dir": self.kernel_dir, "opts": list(self.kernel_opts)},
            "isolabel": self.isolabel,
            "architectures": list(self.architectures),
            "vendor": self.vendor,
        }


@dataclass(frozen=True, slots=True)
class ISOLinuxStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.isolinux"

    product_name: str
    product_version: str
    kernel_dir: str = "/images/pxeboot"
    kernel_opts: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": {"name": self.product_name, "version": self.product_version},
            "kernel": {"dir": self.kernel_dir, "opts": list(self.kernel_opts)},
        }


@dataclass(frozen=True, slots=True)
class OSTreeInitStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.ostree.init"

    path: str
    mode: str = "archive"

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "mode": self.mode}


@dataclass(frozen=True, slots=True)
class OSTreePullStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.ostree.pull"

    repo: str
    url: str
    ref: str
    remote: str = ""

    def __post_init__(self) -> None:
        require(bool(self.ref), "ostree pull needs a ref.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"repo": self.repo, "url": self.url, "ref": self.ref}
        if self.remote:
            payload["remote"] = self.remote
        return payload


@dataclass(frozen=True, slots=True)
class KickstartStageOptions:
    """Structured kickstart content; rendering to text happens in the executor."""

    stage_type: ClassVar[str] = "org.osbuild.kickstart"

    path: str
    payload: dict[str, Any]

    def __post_init__(self) -> None:
        require(
            self.path.startswith("/"),
            "Kickstart path must be absolute.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, **self.payload}


@dataclass(frozen=True, slots=True)
class DiscinfoStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.discinfo"

    basearch: str
    release: str

    def to_dict(self) -> dict[str, Any]:
        return {"basearch": self.basearch, "release": self.release}


@dataclass(frozen=True, slots=True)
class XorrisofsStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.xorrisofs"

    filename: str
    volid: str
    source_pipeline: str
    sysid: str = "LINUX"
    efi: str = "images/efiboot.img"
    isolinux: bool = False
    isolevel: int = 3

    def __post_init__(self) -> None:
        require(bool(self.volid), "ISO volume id must be set.", stage_type=self.stage_type)
        require(
            len(self.volid) <= 32,
            "ISO volume id is limited to 32 characters.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "filename": self.filename,
            "volid": self.volid,
            "sysid": self.sysid,
            "source": pipeline_ref(self.source_pipeline),
            "efi": self.efi,
            "isolevel": self.isolevel,
        }
        if self.isolinux:
            payload["boot"] = {
                "image": "isolinux/isolinux.bin",
                "catalog": "isolinux/boot.cat",
            }
            payload["isohybridmbr"] = "/usr/share/syslinux/isohdpfx.bin"
        return payload


@dataclass(frozen=True, slots=True)
class ImplantISOMD5StageOptions:
    stage_type: ClassVar[str] = "org.osbuild.implantisomd5"

    filename: str

    def to_dict(self) -> dict[str, Any]:
        return {"filename": self.filename}


__all__ = [
    "AnacondaStageOptions",
    "BuildstampStageOptions",
    "CopyPath",
    "CopyStageOptions",
    "DiscinfoStageOptions",
    "DracutStageOptions",
    "GRUB2ISOStageOptions",
    "ISOLinuxStageOptions",
    "ImplantISOMD5StageOptions",
    "KickstartStageOptions",
    "LoraxScriptStageOptions",
    "MkdirStageOptions",
    "MkfsExt4StageOptions",
    "MkfsFatStageOptions",
    "OSTreeInitStageOptions",
    "OSTreePullStageOptions",
    "SquashfsStageOptions",
    "TruncateStageOptions",
    "XorrisofsStageOptions",
    "pipeline_ref",
]
