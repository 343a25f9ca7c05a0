"""RHEL 8.2 catalog."""

from __future__ import annotations

from uuid import UUID

from oscompose.distro.catalog import (
    Architecture,
    AssemblerFactory,
    DistroCatalog,
    OutputDefinition,
)
from oscompose.pipeline.assemblers import (
    QEMUAssemblerOptions,
    QEMUFilesystem,
    QEMUPartition,
    RawFSAssemblerOptions,
    TarAssemblerOptions,
)
from oscompose.rpmmd.model import RepoConfig

NAME = "rhel-8.2"
RUNNER = "org.osbuild.rhel82"
ROOT_FS_UUID = "0bd700f8-090f-4556-b797-b340297ea1bd"
PARTITION_TABLE_UUID = "0x14fc63d2"

GIGABYTE = 1024 * 1024 * 1024

COMPOSE_URL = (
    "http://download-ipv4.eng.brq.redhat.com/rhel-8/nightly/RHEL-8/"
    "RHEL-8.2.0-20191213.n.1/compose"
)

BUILD_PACKAGES = (
    "dnf",
    "dracut-config-generic",
    "e2fsprogs",
    "glibc",
    "policycoreutils",
    "python36",
    "qemu-img",
    "systemd",
    "tar",
    "xfsprogs",
)

# setfiles fails on usr/sbin/timedatex, so most formats exclude it.
_DEFAULT_EXCLUDES = ("dracut-config-rescue", "timedatex")


def new() -> DistroCatalog:
    return DistroCatalog.create(
        name=NAME,
        runner=RUNNER,
        release_version="8",
        module_platform_id="platform:el8",
        root_fs_uuid=ROOT_FS_UUID,
        build_packages=BUILD_PACKAGES,
        architectures=(
            Architecture(
                name="x86_64",
                bootloader_packages=("grub2-pc",),
                build_packages=("grub2-pc",),
                legacy_boot=True,
            ),
        ),
        outputs=_outputs(),
        repository_templates=(
            RepoConfig(
                id="baseos",
                name="BaseOS",
                baseurls=(f"{COMPOSE_URL}/BaseOS/{{arch}}/os",),
            ),
            RepoConfig(
                id="appstream",
                name="AppStream",
                baseurls=(f"{COMPOSE_URL}/AppStream/{{arch}}/os",),
            ),
        ),
    )


def _outputs() -> tuple[OutputDefinition, ...]:
    return (
        OutputDefinition(
            name="ami",
            filename="image.raw.xz",
            mime_type="application/octet-stream",
            packages=(
                "checkpolicy",
                "chrony",
                "cloud-init",
                "cloud-utils-growpart",
                "@core",
                "dhcp-client",
                "dracut-config-generic",
                "gdisk",
                "insights-client",
                "kernel",
                "langpacks-en",
                "net-tools",
                "NetworkManager",
                "redhat-release",
                "redhat-release-eula",
                "rng-tools",
                "rsync",
                "selinux-policy-targeted",
                "tar",
                "yum-utils",
            ),
            excluded_packages=(
                "aic94xx-firmware",
                "alsa-firmware",
                "alsa-lib",
                "alsa-tools-firmware",
                "biosdevname",
                "dracut-config-rescue",
                "firewalld",
                "iprutils",
                "ivtv-firmware",
                "iwl1000-firmware",
                "iwl100-firmware",
                "iwl105-firmware",
                "iwl135-firmware",
                "iwl2000-firmware",
                "iwl2030-firmware",
                "iwl3160-firmware",
                "iwl3945-firmware",
                "iwl4965-firmware",
                "iwl5000-firmware",
                "iwl5150-firmware",
                "iwl6000-firmware",
                "iwl6000g2a-firmware",
                "iwl6000g2b-firmware",
                "iwl6050-firmware",
                "iwl7260-firmware",
                "libertas-sd8686-firmware",
                "libertas-sd8787-firmware",
                "libertas-usb8388-firmware",
                "plymouth",
                "timedatex",
            ),
            default_target="multi-user.target",
            bootable=True,
            kernel_options=(
                "ro console=ttyS0,115200n8 console=tty0 net.ifnames=0 rd.blacklist=nouveau "
                "nvme_core.io_timeout=4294967295 crashkernel=auto"
            ),
            assembler=_qemu("raw.xz", "image.raw.xz", 6 * GIGABYTE),
        ),
        OutputDefinition(
            name="ext4-filesystem",
            filename="filesystem.img",
            mime_type="application/octet-stream",
            packages=(
                "policycoreutils",
                "selinux-policy-targeted",
                "kernel",
                "firewalld",
                "chrony",
                "dracut-config-generic",
                "langpacks-en",
            ),
            excluded_packages=_DEFAULT_EXCLUDES,
            kernel_options="ro net.ifnames=0",
            assembler=_rawfs("filesystem.img"),
        ),
        OutputDefinition(
            name="partitioned-disk",
            filename="disk.img",
            mime_type="application/octet-stream",
            packages=(
                "@core",
                "chrony",
                "dracut-config-generic",
                "firewalld",
                "kernel",
                "langpacks-en",
                "selinux-policy-targeted",
            ),
            excluded_packages=_DEFAULT_EXCLUDES,
            bootable=True,
            kernel_options="ro net.ifnames=0",
            assembler=_qemu("raw", "disk.img", 3 * GIGABYTE),
        ),
        OutputDefinition(
            name="qcow2",
            filename="disk.qcow2",
            mime_type="application/x-qemu-disk",
            packages=(
                "kernel-core",
                "chrony",
                "dracut-config-generic",
                "polkit",
                "systemd-udev",
                "selinux-policy-targeted",
                "langpacks-en",
            ),
            excluded_packages=(
                "dracut-config-rescue",
                "etables",
                "firewalld",
                "gobject-introspection",
                "plymouth",
                "timedatex",
            ),
            bootable=True,
            kernel_options="ro net.ifnames=0",
            assembler=_qemu("qcow2", "disk.qcow2", 3 * GIGABYTE),
        ),
        OutputDefinition(
            name="openstack",
            filename="image.qcow2",
            mime_type="application/x-qemu-disk",
            packages=(
                "@Core",
                "langpacks-en",
                # generic initrd pulls in the hv_* modules
                "dracut-config-generic",
                "kernel",
                "selinux-policy-targeted",
                "cloud-init",
                "qemu-guest-agent",
                "spice-vdagent",
            ),
            excluded_packages=("dracut-config-rescue",),
            bootable=True,
            kernel_options="ro net.ifnames=0",
            assembler=_qemu("qcow2", "image.qcow2", 3 * GIGABYTE),
        ),
        OutputDefinition(
            name="tar",
            filename="root.tar.xz",
            mime_type="application/x-tar",
            packages=(
                "policycoreutils",
                "selinux-policy-targeted",
                "kernel",
                "firewalld",
                "chrony",
                "dracut-config-generic",
                "langpacks-en",
            ),
            excluded_packages=_DEFAULT_EXCLUDES,
            kernel_options="ro net.ifnames=0",
            assembler=_tar("root.tar.xz", "xz"),
        ),
        OutputDefinition(
            name="vhd",
            filename="image.vhd",
            mime_type="application/x-vhd",
            packages=(
                "@Core",
                "langpacks-en",
                "dracut-config-generic",
                "kernel",
                "selinux-policy-targeted",
                "chrony",
                "WALinuxAgent",
                "python3",
                "net-tools",
                "cloud-init",
                "cloud-utils-growpart",
                "gdisk",
            ),
            excluded_packages=_DEFAULT_EXCLUDES,
            enabled_services=("sshd", "waagent"),
            default_target="multi-user.target",
            bootable=True,
            kernel_options=(
                "ro biosdevname=0 rootdelay=300 console=ttyS0 earlyprintk=ttyS0 net.ifnames=0"
            ),
            assembler=_qemu("vpc", "image.vhd", 3 * GIGABYTE),
        ),
        OutputDefinition(
            name="vmdk",
            filename="disk.vmdk",
            mime_type="application/x-vmdk",
            packages=(
                "@core",
                "chrony",
                "dracut-config-generic",
                "firewalld",
                "kernel",
                "langpacks-en",
                "open-vm-tools",
                "selinux-policy-targeted",
            ),
            excluded_packages=_DEFAULT_EXCLUDES,
            bootable=True,
            kernel_options="ro net.ifnames=0",
            assembler=_qemu("vmdk", "disk.vmdk", 3 * GIGABYTE),
        ),
    )


def _qemu(image_format: str, filename: str, size: int) -> AssemblerFactory:
    def factory(root_fs_uuid: UUID) -> QEMUAssemblerOptions:
        return QEMUAssemblerOptions(
            format=image_format,
            filename=filename,
            size=size,
            ptuuid=PARTITION_TABLE_UUID,
            pttype="mbr",
            partitions=(
                QEMUPartition(
                    start=2048,
                    bootable=True,
                    filesystem=QEMUFilesystem(
                        type="xfs",
                        uuid=str(root_fs_uuid),
                        mountpoint="/",
                    ),
                ),
            ),
        )

    return factory


def _tar(filename: str, compression: str) -> AssemblerFactory:
    def factory(root_fs_uuid: UUID) -> TarAssemblerOptions:
        return TarAssemblerOptions(filename=filename, compression=compression)

    return factory


def _rawfs(filename: str) -> AssemblerFactory:
    def factory(root_fs_uuid: UUID) -> RawFSAssemblerOptions:
        return RawFSAssemblerOptions(
            filename=filename,
            root_fs_uuid=root_fs_uuid,
            size=3 * GIGABYTE,
            fs_type="xfs",
        )

    return factory


__all__ = ["BUILD_PACKAGES", "NAME", "ROOT_FS_UUID", "RUNNER", "new"]
