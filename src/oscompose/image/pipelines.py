"""Pipeline kinds chained by installer images.

Each kind is configured first and serialized into a :class:`Pipeline` last,
so values computed by one pipeline (labels, kernel options, partition
tables) are settled before any stage that embeds them is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from oscompose.artifact import Artifact
from oscompose.crypt import PasswordHasher, Sha512CryptHasher
from oscompose.errors import ValidationError
from oscompose.image.disk import GIBIBYTE, PartitionTable
from oscompose.image.kickstart import KICKSTART_PATH, KickstartOptions
from oscompose.image.platform import Platform
from oscompose.pipeline.iso_stages import (
    AnacondaStageOptions,
    BuildstampStageOptions,
    CopyPath,
    CopyStageOptions,
    DiscinfoStageOptions,
    DracutStageOptions,
    GRUB2ISOStageOptions,
    ImplantISOMD5StageOptions,
    ISOLinuxStageOptions,
    KickstartStageOptions,
    LoraxScriptStageOptions,
    MkdirStageOptions,
    MkfsExt4StageOptions,
    MkfsFatStageOptions,
    OSTreeInitStageOptions,
    OSTreePullStageOptions,
    SquashfsStageOptions,
    TruncateStageOptions,
    XorrisofsStageOptions,
)
from oscompose.pipeline.pipeline import Pipeline
from oscompose.pipeline.stages import (
    DNFRepository,
    DNFStageOptions,
    LocaleStageOptions,
    UsersStageOptions,
    UsersStageUser,
)
from oscompose.rpmmd.model import PackageSet, RepoConfig, merge_repositories

ISO_MIME_TYPE = "application/x-iso9660-image"
PXEBOOT_DIR = "/images/pxeboot"
EFIBOOT_IMAGE = "images/efiboot.img"
INSTALL_IMAGE = "images/install.img"
ROOTFS_IMAGE = "LiveOS/rootfs.img"
ROOTFS_UUID = "2fe99653-f7ff-44fd-bea8-fa70107524fb"
SECURITY_MODULE = "org.fedoraproject.Anaconda.Modules.Security"

BUILD_BASE_PACKAGES = (
    "dnf",
    "policycoreutils",
    "python3",
    "rpm",
    "selinux-policy-targeted",
    "systemd",
)

ANACONDA_PACKAGES = (
    "anaconda-dracut",
    "anaconda-install-env-deps",
    "anaconda-widgets",
    "dracut-config-generic",
    "dracut-network",
    "glibc-all-langpacks",
    "grub2-tools",
    "kexec-tools",
    "lorax-templates-generic",
    "plymouth",
    "rdma-core",
    "rng-tools",
    "squashfs-tools",
    "tmux",
    "xz",
)

ANACONDA_MODULES = (
    "org.fedoraproject.Anaconda.Modules.Network",
    "org.fedoraproject.Anaconda.Modules.Payloads",
    "org.fedoraproject.Anaconda.Modules.Storage",
)

DRACUT_MODULES = (
    "anaconda",
    "dmsquash-live",
    "nfs",
    "prefixdevname",
    "qemu",
    "qemu-net",
    "rdma",
)


def installer_kernel_args(label: str, kickstart_path: str = KICKSTART_PATH) -> list[str]:
    """Kernel arguments pointing the installer at the medium labelled ``label``."""
    return [
        f"inst.stage2=hd:LABEL={label}",
        f"inst.ks=hd:LABEL={label}:{kickstart_path}",
    ]


class ManifestPipeline(Protocol):
    name: str

    def serialize(self) -> Pipeline:
        """Build the concrete pipeline from the current configuration."""


class BuildDependent(Protocol):
    name: str

    def build_packages(self) -> list[str]:
        """Packages the build environment needs to run this pipeline's stages."""


@dataclass(slots=True)
class BuildPipeline:
    """Shared build environment; installs what every dependent pipeline needs."""

    runner: str
    repos: tuple[RepoConfig, ...]
    arch: str
    name: str = "build"
    dependents: list[BuildDependent] = field(default_factory=list, compare=False, repr=False)

    def register(self, dependent: BuildDependent) -> None:
        self.dependents.append(dependent)

    def packages(self) -> tuple[str, ...]:
        include = list(BUILD_BASE_PACKAGES)
        for dependent in self.dependents:
            include.extend(dependent.build_packages())
        resolved, _ = PackageSet(include=tuple(include)).resolve()
        return resolved

    def serialize(self) -> Pipeline:
        pipeline = Pipeline(name=self.name, runner=self.runner)
        pipeline.add_stage(
            DNFStageOptions(
                packages=self.packages(),
                repos=tuple(DNFRepository.from_repo(repo, {}) for repo in self.repos),
                base_architecture=self.arch,
            ),
        )
        return pipeline


@dataclass(slots=True)
class AnacondaInstallerPipeline:
    """The installer environment booted from the ISO."""

    build: BuildPipeline
    platform: Platform
    repos: tuple[RepoConfig, ...]
    product: str
    version: str
    kernel_name: str = "kernel"
    preview: bool = False
    name: str = "anaconda-tree"
    extra_packages: tuple[str, ...] = ()
    exclude_packages: tuple[str, ...] = ()
    extra_repos: tuple[RepoConfig, ...] = ()
    variant: str = ""
    biosdevname: bool = False
    additional_dracut_modules: list[str] = field(default_factory=list)
    additional_anaconda_modules: list[str] = field(default_factory=list)
    additional_drivers: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.build.register(self)

    def build_packages(self) -> list[str]:
        return []

    def package_set(self) -> PackageSet:
        include = list(ANACONDA_PACKAGES)
        include.append(self.kernel_name)
        include.extend(self.platform.installer_boot_packages())
        if self.biosdevname:
            include.append("biosdevname")
        include.extend(self.extra_packages)
        return PackageSet(
            include=tuple(include),
            exclude=self.exclude_packages,
            repositories=merge_repositories(self.repos, self.extra_repos),
        )

    def serialize(self) -> Pipeline:
        package_set = self.package_set()
        packages, excluded = package_set.resolve()
        pipeline = Pipeline(name=self.name)
        pipeline.use_build(self.build.name, self.build.runner)
        pipeline.add_stage(
            DNFStageOptions(
                packages=packages,
                repos=tuple(
                    DNFRepository.from_repo(repo, {}) for repo in package_set.repositories
                ),
                exclude_packages=excluded,
                base_architecture=self.platform.arch,
            ),
        )
        pipeline.add_stage(
            BuildstampStageOptions(
                arch=self.platform.arch,
                product=self.product,
                version=self.version,
                final=not self.preview,
                variant=self.variant,
            ),
        )
        pipeline.add_stage(LocaleStageOptions(language="en_US.UTF-8"))
        pipeline.add_stage(
            UsersStageOptions(
                users={
                    "root": UsersStageUser(password=""),
                    "install": UsersStageUser(
                        uid="0",
                        gid="0",
                        home="/root",
                        shell="/usr/libexec/anaconda/run-anaconda",
                        password="",
                    ),
                },
            ),
        )
        pipeline.add_stage(
            AnacondaStageOptions(
                kickstart_modules=tuple(
                    dict.fromkeys([*ANACONDA_MODULES, *self.additional_anaconda_modules]),
                ),
            ),
        )
        pipeline.add_stage(
            LoraxScriptStageOptions(
                path="99-generic/runtime-postinstall.tmpl",
                basearch=self.platform.arch,
            ),
        )
        pipeline.add_stage(
            DracutStageOptions(
                kernel=(self.kernel_name,),
                modules=tuple(dict.fromkeys([*DRACUT_MODULES, *self.additional_dracut_modules])),
                add_drivers=tuple(self.additional_drivers),
            ),
        )
        return pipeline


@dataclass(slots=True)
class ISORootfsImgPipeline:
    """ext4 image holding the installer tree, squashed into the ISO later."""

    build: BuildPipeline
    installer: AnacondaInstallerPipeline
    size: int = 4 * GIBIBYTE
    name: str = "rootfs-image"

    def __post_init__(self) -> None:
        self.build.register(self)

    def build_packages(self) -> list[str]:
        return ["e2fsprogs"]

    def serialize(self) -> Pipeline:
        pipeline = Pipeline(name=self.name)
        pipeline.use_build(self.build.name, self.build.runner)
        pipeline.add_stage(MkdirStageOptions(paths=("/LiveOS",)))
        pipeline.add_stage(TruncateStageOptions(filename=ROOTFS_IMAGE, size=self.size))
        pipeline.add_stage(
            MkfsExt4StageOptions(filename=ROOTFS_IMAGE, uuid=ROOTFS_UUID, label="Anaconda"),
        )
        pipeline.add_stage(
            CopyStageOptions(
                source_pipeline=self.installer.name,
                paths=(CopyPath(source="tree:///", destination="mount:///"),),
                target_image=ROOTFS_IMAGE,
            ),
        )
        return pipeline


@dataclass(slots=True)
class EFIBootTreePipeline:
    """EFI boot loader tree shared by the ISO filesystem and its El Torito image."""

    build: BuildPipeline
    platform: Platform
    product: str
    version: str
    uefi_vendor: str = ""
    iso_label: str = ""
    kickstart_path: str = KICKSTART_PATH
    # options appended after the installer arguments, such as fips=1
    kernel_opts: list[str] = field(default_factory=list)
    name: str = "efiboot-tree"

    def __post_init__(self) -> None:
        self.build.register(self)

    def build_packages(self) -> list[str]:
        return []

    def boot_kernel_opts(self) -> list[str]:
        return installer_kernel_args(self.iso_label, self.kickstart_path) + self.kernel_opts

    def serialize(self) -> Pipeline:
        if not self.uefi_vendor:
            raise ValidationError(
                "EFI boot tree needs a UEFI vendor.",
                context={"pipeline": self.name, "arch": self.platform.arch},
            )
        pipeline = Pipeline(name=self.name)
        pipeline.use_build(self.build.name, self.build.runner)
        pipeline.add_stage(
            GRUB2ISOStageOptions(
                product_name=self.product,
                product_version=self.version,
                isolabel=self.iso_label,
                architectures=self.platform.efi_architectures(),
                vendor=self.uefi_vendor,
                kernel_dir=PXEBOOT_DIR,
                kernel_opts=tuple(self.boot_kernel_opts()),
            ),
        )
        return pipeline


@dataclass(slots=True)
class AnacondaInstallerISOTreePipeline:
    """Filesystem tree of the ISO: installer image, boot files, kickstart and payload."""

    build: BuildPipeline
    installer: AnacondaInstallerPipeline
    rootfs: ISORootfsImgPipeline
    boot_tree: EFIBootTreePipeline
    partition_table: PartitionTable | None = None
    release: str = ""
    kickstart: KickstartOptions | None = None
    squashfs_compression: str = "xz"
    payload_path: str = "/ostree/repo"
    ostree_url: str = ""
    ostree_ref: str = ""
    isolinux: bool = False
    kernel_opts: list[str] = field(default_factory=list)
    hasher: PasswordHasher = field(default_factory=Sha512CryptHasher)
    name: str = "bootiso-tree"

    def __post_init__(self) -> None:
        self.build.register(self)

    def build_packages(self) -> list[str]:
        packages = ["dosfstools", "mtools", "squashfs-tools"]
        if self.ostree_ref:
            packages.append("ostree")
        if self.isolinux:
            packages.append("syslinux-nonlinux")
        return packages

    @property
    def iso_label(self) -> str:
        return self.boot_tree.iso_label

    def boot_kernel_opts(self) -> list[str]:
        kickstart_path = self.kickstart.path if self.kickstart is not None else KICKSTART_PATH
        return installer_kernel_args(self.iso_label, kickstart_path) + self.kernel_opts

    def serialize(self) -> Pipeline:
        if self.partition_table is None:
            raise ValidationError(
                "ISO tree needs an EFI boot partition table.",
                context={"pipeline": self.name},
            )
        efi = self.partition_table.find_mountpoint("/boot/efi")
        if efi is None:
            raise ValidationError(
                "EFI boot partition table has no /boot/efi filesystem.",
                context={"pipeline": self.name},
            )
        platform = self.boot_tree.platform

        pipeline = Pipeline(name=self.name)
        pipeline.use_build(self.build.name, self.build.runner)
        pipeline.add_stage(MkdirStageOptions(paths=("/images", PXEBOOT_DIR, "/LiveOS")))
        pipeline.add_stage(
            CopyStageOptions(
                source_pipeline=self.installer.name,
                paths=(
                    CopyPath(
                        source="tree:///boot/vmlinuz",
                        destination=f"tree://{PXEBOOT_DIR}/vmlinuz",
                    ),
                    CopyPath(
                        source="tree:///boot/initramfs.img",
                        destination=f"tree://{PXEBOOT_DIR}/initrd.img",
                    ),
                ),
            ),
        )
        pipeline.add_stage(
            SquashfsStageOptions(
                filename=INSTALL_IMAGE,
                source_pipeline=self.rootfs.name,
                compression=self.squashfs_compression,
                bcj=platform.squashfs_bcj(),
            ),
        )
        if self.isolinux:
            pipeline.add_stage(
                ISOLinuxStageOptions(
                    product_name=self.boot_tree.product,
                    product_version=self.boot_tree.version,
                    kernel_dir=PXEBOOT_DIR,
                    kernel_opts=tuple(self.boot_kernel_opts()),
                ),
            )
        pipeline.add_stage(
            GRUB2ISOStageOptions(
                product_name=self.boot_tree.product,
                product_version=self.boot_tree.version,
                isolabel=self.iso_label,
                architectures=platform.efi_architectures(),
                vendor=self.boot_tree.uefi_vendor,
                kernel_dir=PXEBOOT_DIR,
                kernel_opts=tuple(self.boot_kernel_opts()),
            ),
        )
        pipeline.add_stage(DiscinfoStageOptions(basearch=platform.arch, release=self.release))

        if self.ostree_ref:
            pipeline.add_stage(OSTreeInitStageOptions(path=self.payload_path))
            pipeline.add_stage(
                OSTreePullStageOptions(
                    repo=self.payload_path,
                    url=self.ostree_url,
                    ref=self.ostree_ref,
                ),
            )
        if self.kickstart is not None:
            pipeline.add_stage(
                KickstartStageOptions(
                    path=self.kickstart.path,
                    payload=self.kickstart.to_payload(self.hasher),
                ),
            )

        pipeline.add_stage(
            TruncateStageOptions(filename=EFIBOOT_IMAGE, size=self.partition_table.size),
        )
        pipeline.add_stage(
            MkfsFatStageOptions(filename=EFIBOOT_IMAGE, volid=efi.uuid, label="ANACONDA"),
        )
        pipeline.add_stage(
            CopyStageOptions(
                source_pipeline=self.boot_tree.name,
                paths=(CopyPath(source="tree:///", destination="mount:///"),),
                target_image=EFIBOOT_IMAGE,
            ),
        )
        pipeline.add_stage(
            CopyStageOptions(
                source_pipeline=self.boot_tree.name,
                paths=(CopyPath(source="tree:///EFI", destination="tree:///"),),
            ),
        )
        return pipeline


@dataclass(slots=True)
class ISOPipeline:
    """Terminal pipeline writing the bootable ISO image."""

    build: BuildPipeline
    tree: AnacondaInstallerISOTreePipeline
    iso_label: str
    filename: str = "installer.iso"
    isolinux: bool = False
    name: str = "bootiso"

    def __post_init__(self) -> None:
        self.build.register(self)

    def build_packages(self) -> list[str]:
        return ["isomd5sum", "xorriso"]

    def set_filename(self, filename: str) -> None:
        self.filename = filename

    def export(self) -> Artifact:
        return Artifact(export=self.name, filename=self.filename, mime_type=ISO_MIME_TYPE)

    def serialize(self) -> Pipeline:
        pipeline = Pipeline(name=self.name)
        pipeline.use_build(self.build.name, self.build.runner)
        pipeline.add_stage(
            XorrisofsStageOptions(
                filename=self.filename,
                volid=self.iso_label,
                source_pipeline=self.tree.name,
                isolinux=self.isolinux,
            ),
        )
        pipeline.add_stage(ImplantISOMD5StageOptions(filename=self.filename))
        return pipeline


__all__ = [
    "ANACONDA_MODULES",
    "ISO_MIME_TYPE",
    "SECURITY_MODULE",
    "AnacondaInstallerISOTreePipeline",
    "AnacondaInstallerPipeline",
    "BuildPipeline",
    "EFIBootTreePipeline",
    "ISOPipeline",
    "ISORootfsImgPipeline",
    "ManifestPipeline",
    "installer_kernel_args",
]
