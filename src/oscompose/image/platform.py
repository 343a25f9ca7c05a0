"""Target platform identity used by installer images."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

X86_64 = "x86_64"
AARCH64 = "aarch64"

_EFI_ARCHITECTURES = MappingProxyType({X86_64: ("X64",), AARCH64: ("AA64",)})
_SQUASHFS_BCJ = MappingProxyType({X86_64: "x86", AARCH64: "arm"})
_INSTALLER_BOOT_PACKAGES = MappingProxyType(
    {
        X86_64: (
            "grub2-efi-x64",
            "grub2-efi-x64-cdboot",
            "shim-x64",
            "syslinux",
            "syslinux-nonlinux",
        ),
        AARCH64: ("grub2-efi-aa64-cdboot", "shim-aa64"),
    },
)


@dataclass(frozen=True, slots=True)
class Platform:
    arch: str
    uefi_vendor: str = ""

    @property
    def legacy_boot(self) -> bool:
        """ISOLINUX boot support exists for x86_64 only."""
        return self.arch == X86_64

    def efi_architectures(self) -> tuple[str, ...]:
        return _EFI_ARCHITECTURES.get(self.arch, ())

    def squashfs_bcj(self) -> str:
        return _SQUASHFS_BCJ.get(self.arch, "")

    def installer_boot_packages(self) -> tuple[str, ...]:
        return _INSTALLER_BOOT_PACKAGES.get(self.arch, ())


__all__ = ["AARCH64", "X86_64", "Platform"]
