"""Installable ISO that deploys an ostree commit."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass, field

from oscompose.artifact import Artifact
from oscompose.blueprint import GroupCustomization, UserCustomization
from oscompose.crypt import PasswordHasher, Sha512CryptHasher
from oscompose.errors import ComposeError, ValidationError
from oscompose.image.base import ImageBase
from oscompose.image.disk import GIBIBYTE, efi_boot_partition_table
from oscompose.image.kickstart import KICKSTART_PATH, KickstartOptions, KickstartOSTree
from oscompose.image.pipelines import (
    SECURITY_MODULE,
    AnacondaInstallerISOTreePipeline,
    AnacondaInstallerPipeline,
    BuildPipeline,
    EFIBootTreePipeline,
    ISOPipeline,
    ISORootfsImgPipeline,
    ManifestPipeline,
)
from oscompose.image.platform import Platform
from oscompose.observability import ComposeLogger, StructuredLogger
from oscompose.pipeline.manifest import Manifest
from oscompose.rpmmd.model import PackageSet, RepoConfig

FIPS_KERNEL_ARG = "fips=1"


@dataclass(frozen=True, slots=True)
class OSTreeSourceSpec:
    url: str
    ref: str

    def __post_init__(self) -> None:
        if not self.ref:
            raise ValidationError(
                "ostree commit source needs a ref.",
                context={"url": self.url},
            )


@dataclass(frozen=True, slots=True)
class InstallerPipelines:
    """The six configured pipelines of an installer, in dependency order."""

    build: BuildPipeline
    installer: AnacondaInstallerPipeline
    rootfs: ISORootfsImgPipeline
    boot_tree: EFIBootTreePipeline
    iso_tree: AnacondaInstallerISOTreePipeline
    iso: ISOPipeline

    def ordered(self) -> tuple[ManifestPipeline, ...]:
        return (
            self.build,
            self.installer,
            self.rootfs,
            self.boot_tree,
            self.iso_tree,
            self.iso,
        )


@dataclass(frozen=True, slots=True)
class AnacondaOSTreeInstaller:
    commit: OSTreeSourceSpec
    platform: Platform
    base: ImageBase = ImageBase("ostree-installer")
    extra_base_packages: PackageSet = field(default_factory=PackageSet)
    users: tuple[UserCustomization, ...] = ()
    groups: tuple[GroupCustomization, ...] = ()
    language: str | None = None
    keyboard: str | None = None
    timezone: str | None = None
    # users and groups that get a NOPASSWD sudoers drop-in
    no_passwd: tuple[str, ...] = ()
    unattended_kickstart: bool = False
    squashfs_compression: str = "xz"
    iso_label: str = ""
    product: str = ""
    variant: str = ""
    os_name: str = ""
    os_version: str = ""
    release: str = ""
    preview: bool = False
    remote: str = ""
    filename: str = "installer.iso"
    additional_dracut_modules: tuple[str, ...] = ()
    additional_anaconda_modules: tuple[str, ...] = ()
    additional_drivers: tuple[str, ...] = ()
    fips: bool = False
    hasher: PasswordHasher | None = None

    def plan(
        self,
        repos: Sequence[RepoConfig],
        runner: str,
        rng: random.Random,
    ) -> InstallerPipelines:
        """Configure the chained pipelines without registering them anywhere."""
        if not self.iso_label:
            raise ValidationError(
                "Installer images need an ISO label.",
                context={"image": self.base.name},
            )
        arch = self.platform.arch
        repo_tuple = tuple(repos)

        build = BuildPipeline(runner=runner, repos=repo_tuple, arch=arch)

        installer = AnacondaInstallerPipeline(
            build=build,
            platform=self.platform,
            repos=repo_tuple,
            product=self.product,
            version=self.os_version,
            preview=self.preview,
            extra_packages=self.extra_base_packages.include,
            exclude_packages=self.extra_base_packages.exclude,
            extra_repos=self.extra_base_packages.repositories,
            variant=self.variant,
            biosdevname=self.platform.legacy_boot,
        )
        installer.additional_dracut_modules.extend(self.additional_dracut_modules)
        installer.additional_anaconda_modules.extend(self.additional_anaconda_modules)
        if self.fips:
            installer.additional_anaconda_modules.append(SECURITY_MODULE)
        installer.additional_drivers.extend(self.additional_drivers)

        rootfs = ISORootfsImgPipeline(build=build, installer=installer, size=4 * GIBIBYTE)

        boot_tree = EFIBootTreePipeline(
            build=build,
            platform=self.platform,
            product=self.product,
            version=self.os_version,
            uefi_vendor=self.platform.uefi_vendor,
            iso_label=self.iso_label,
            kickstart_path=KICKSTART_PATH,
        )
        if self.fips:
            boot_tree.kernel_opts.append(FIPS_KERNEL_ARG)

        iso_tree = AnacondaInstallerISOTreePipeline(
            build=build,
            installer=installer,
            rootfs=rootfs,
            boot_tree=boot_tree,
            partition_table=efi_boot_partition_table(rng),
            release=self.release,
            kickstart=KickstartOptions(
                path=KICKSTART_PATH,
                ostree=KickstartOSTree(
                    osname=self.os_name,
                    remote=self.remote,
                    ref=self.commit.ref,
                ),
                users=self.users,
                groups=self.groups,
                sudo_nopasswd=self.no_passwd,
                language=self.language,
                keyboard=self.keyboard,
                timezone=self.timezone,
                unattended=self.unattended_kickstart,
            ),
            squashfs_compression=self.squashfs_compression,
            payload_path="/ostree/repo",
            ostree_url=self.commit.url,
            ostree_ref=self.commit.ref,
            isolinux=self.platform.legacy_boot,
            hasher=self.hasher or Sha512CryptHasher(),
        )
        if self.fips:
            iso_tree.kernel_opts.append(FIPS_KERNEL_ARG)

        iso = ISOPipeline(build=build, tree=iso_tree, iso_label=self.iso_label)
        iso.set_filename(self.filename)
        iso.isolinux = self.platform.legacy_boot

        return InstallerPipelines(
            build=build,
            installer=installer,
            rootfs=rootfs,
            boot_tree=boot_tree,
            iso_tree=iso_tree,
            iso=iso,
        )

    def instantiate_manifest(
        self,
        manifest: Manifest,
        repos: Sequence[RepoConfig],
        runner: str,
        rng: random.Random,
        *,
        logger: StructuredLogger | None = None,
    ) -> Artifact:
        scope: ComposeLogger | None = None
        if logger is not None:
            scope = logger.bind(
                distro=self.os_name or None,
                arch=self.platform.arch,
                image_type=self.base.name,
            )
        pipelines = self.plan(repos, runner, rng)
        # the manifest is only touched once every pipeline has serialized
        try:
            serialized = [kind.serialize() for kind in pipelines.ordered()]
        except ComposeError as exc:
            if scope is not None:
                scope.failure("installer.failed", exc)
            raise
        manifest.add_pipelines(serialized)
        artifact = pipelines.iso.export()
        if scope is not None:
            for pipeline in serialized:
                scope.log(
                    "installer.pipeline",
                    "Pipeline added to manifest.",
                    pipeline=pipeline.name,
                    extra={"stages": [stage.type for stage in pipeline.stages]},
                )
            scope.log(
                "installer.complete",
                "Installer manifest instantiated.",
                pipeline=artifact.export,
                extra=artifact.to_dict(),
            )
        return artifact


__all__ = [
    "FIPS_KERNEL_ARG",
    "AnacondaOSTreeInstaller",
    "InstallerPipelines",
    "OSTreeSourceSpec",
]
