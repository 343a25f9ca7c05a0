"""Distro catalog: architectures, output formats and package sources of one distro release."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from uuid import UUID

from oscompose.errors import (
    InvalidArchitectureError,
    InvalidOutputFormatError,
    ValidationError,
)
from oscompose.pipeline.stages import StageOptions
from oscompose.rpmmd.model import RepoConfig

AssemblerFactory = Callable[[UUID], StageOptions]


@dataclass(frozen=True, slots=True)
class Architecture:
    name: str
    bootloader_packages: tuple[str, ...] = ()
    build_packages: tuple[str, ...] = ()
    legacy_boot: bool = False


@dataclass(frozen=True, slots=True)
class OutputDefinition:
    """How one output format is produced.

    ``assembler`` is called with the root filesystem UUID so the assembler
    options and the fstab/bootloader stages agree on the same identifier.
    """

    name: str
    filename: str
    mime_type: str
    assembler: AssemblerFactory
    packages: tuple[str, ...] = ()
    excluded_packages: tuple[str, ...] = ()
    enabled_services: tuple[str, ...] = ()
    disabled_services: tuple[str, ...] = ()
    bootable: bool = False
    default_target: str = ""
    kernel_options: str = ""

    @property
    def declares_services(self) -> bool:
        return bool(self.enabled_services or self.disabled_services)


@dataclass(frozen=True, slots=True)
class DistroCatalog:
    """Read-only tables for one distro release.

    Build instances with :meth:`create`; the mappings are exposed as read-only
    proxies and the root filesystem UUID is parsed once, up front.
    """

    name: str
    runner: str
    release_version: str
    module_platform_id: str
    root_fs_uuid: UUID
    build_packages: tuple[str, ...]
    architectures: Mapping[str, Architecture]
    outputs: Mapping[str, OutputDefinition]
    repository_templates: tuple[RepoConfig, ...] = ()
    root_fs_type: str = "xfs"
    selinux_file_contexts: str = "etc/selinux/targeted/contexts/files/file_contexts"

    @classmethod
    def create(
        cls,
        *,
        name: str,
        runner: str,
        release_version: str,
        module_platform_id: str,
        root_fs_uuid: str,
        build_packages: Iterable[str],
        architectures: Iterable[Architecture],
        outputs: Iterable[OutputDefinition],
        repository_templates: Iterable[RepoConfig] = (),
    ) -> DistroCatalog:
        try:
            parsed_uuid = UUID(root_fs_uuid)
        except ValueError as exc:
            raise ValidationError(
                "Root filesystem UUID is malformed.",
                hint="Use a canonical 8-4-4-4-12 hexadecimal UUID.",
                context={"distro": name, "uuid": root_fs_uuid},
            ) from exc
        return cls(
            name=name,
            runner=runner,
            release_version=release_version,
            module_platform_id=module_platform_id,
            root_fs_uuid=parsed_uuid,
            build_packages=tuple(build_packages),
            architectures=MappingProxyType({arch.name: arch for arch in architectures}),
            outputs=MappingProxyType({output.name: output for output in outputs}),
            repository_templates=tuple(repository_templates),
        )

    def architecture_names(self) -> tuple[str, ...]:
        return tuple(sorted(self.architectures))

    def output_formats(self) -> tuple[str, ...]:
        return tuple(sorted(self.outputs))

    def get_architecture(self, name: str) -> Architecture:
        try:
            return self.architectures[name]
        except KeyError as exc:
            raise InvalidArchitectureError(
                f"Invalid architecture: {name}",
                hint=f"Supported architectures: {', '.join(self.architecture_names())}.",
                context={"distro": self.name, "arch": name},
            ) from exc

    def get_output(self, name: str) -> OutputDefinition:
        try:
            return self.outputs[name]
        except KeyError as exc:
            raise InvalidOutputFormatError(
                f"Invalid output format: {name}",
                hint=f"Supported output formats: {', '.join(self.output_formats())}.",
                context={"distro": self.name, "image_type": name},
            ) from exc

    def filename_from_type(self, name: str) -> tuple[str, str]:
        output = self.get_output(name)
        return output.filename, output.mime_type

    def repositories(self, arch: str) -> tuple[RepoConfig, ...]:
        """Return the distro's own repositories with ``{arch}`` filled in."""
        self.get_architecture(arch)
        return tuple(
            replace(
                template,
                baseurls=tuple(url.format(arch=arch) for url in template.baseurls),
                metalink=template.metalink.format(arch=arch),
                mirrorlist=template.mirrorlist.format(arch=arch),
            )
            for template in self.repository_templates
        )


__all__ = [
    "Architecture",
    "AssemblerFactory",
    "DistroCatalog",
    "OutputDefinition",
]
