"""Stage records and the option types of OS customization stages.

A stage is a named, immutable unit of configuration. Each option type carries
the stable wire identifier that the build executor dispatches on, validates
itself at construction and renders its own wire payload.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol, runtime_checkable
from uuid import UUID

from oscompose.errors import ValidationError
from oscompose.rpmmd.model import RepoConfig


@runtime_checkable
class StageOptions(Protocol):
    stage_type: ClassVar[str]

    def to_dict(self) -> dict[str, Any]:
        """Return the wire payload for these options."""


@dataclass(frozen=True, slots=True)
class Stage:
    type: str
    options: StageOptions

    @classmethod
    def from_options(cls, options: StageOptions) -> Stage:
        return cls(type=options.stage_type, options=options)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "options": self.options.to_dict()}


def require(condition: bool, message: str, *, stage_type: str, hint: str | None = None) -> None:
    if not condition:
        raise ValidationError(message, hint=hint, context={"stage": stage_type})


@dataclass(frozen=True, slots=True)
class DNFRepository:
    baseurl: str = ""
    metalink: str = ""
    mirrorlist: str = ""
    gpgkey: str = ""
    checksum: str = ""

    @classmethod
    def from_repo(cls, repo: RepoConfig, checksums: Mapping[str, str]) -> DNFRepository:
        return cls(
            baseurl=",".join(repo.baseurls),
            metalink=repo.metalink,
            mirrorlist=repo.mirrorlist,
            gpgkey="\n".join(repo.gpgkeys),
            checksum=checksums.get(repo.id, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key in ("baseurl", "metalink", "mirrorlist", "gpgkey", "checksum"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        return payload


@dataclass(frozen=True, slots=True)
class DNFStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.dnf"

    packages: tuple[str, ...]
    repos: tuple[DNFRepository, ...] = ()
    exclude_packages: tuple[str, ...] = ()
    release_version: str = ""
    base_architecture: str = ""
    module_platform_id: str = ""

    def __post_init__(self) -> None:
        require(
            bool(self.packages),
            "Package install stage needs packages.",
            stage_type=self.stage_type,
        )
        require(
            not set(self.packages) & set(self.exclude_packages),
            "A package cannot be both installed and excluded.",
            stage_type=self.stage_type,
            hint="Subtract exclusions from the include list before building the stage.",
        )
        for repo in self.repos:
            require(
                bool(repo.baseurl or repo.metalink or repo.mirrorlist),
                "Repository needs a baseurl, metalink or mirrorlist.",
                stage_type=self.stage_type,
            )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "repos": [repo.to_dict() for repo in self.repos],
            "packages": list(self.packages),
        }
        if self.exclude_packages:
            payload["exclude_packages"] = list(self.exclude_packages)
        if self.release_version:
            payload["releasever"] = self.release_version
        if self.base_architecture:
            payload["basearch"] = self.base_architecture
        if self.module_platform_id:
            payload["module_platform_id"] = self.module_platform_id
        return payload


@dataclass(frozen=True, slots=True)
class FixBLSStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.fix-bls"

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class FSTabFilesystem:
    uuid: str
    vfs_type: str
    path: str
    options: str = "defaults"
    freq: int = 0
    passno: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "uuid": self.uuid,
            "vfs_type": self.vfs_type,
            "path": self.path,
            "options": self.options,
        }
        if self.freq:
            payload["freq"] = self.freq
        if self.passno:
            payload["passno"] = self.passno
        return payload


@dataclass(frozen=True, slots=True)
class FSTabStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.fstab"

    filesystems: tuple[FSTabFilesystem, ...]

    def __post_init__(self) -> None:
        require(
            bool(self.filesystems),
            "fstab stage needs a filesystem.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"filesystems": [fs.to_dict() for fs in self.filesystems]}


@dataclass(frozen=True, slots=True)
class GRUB2StageOptions:
    stage_type: ClassVar[str] = "org.osbuild.grub2"

    root_fs_uuid: UUID
    kernel_opts: str = ""
    legacy: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"root_fs_uuid": str(self.root_fs_uuid)}
        if self.kernel_opts:
            payload["kernel_opts"] = self.kernel_opts
        if self.legacy:
            payload["legacy"] = True
        return payload


@dataclass(frozen=True, slots=True)
class LocaleStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.locale"

    language: str

    def __post_init__(self) -> None:
        require(bool(self.language), "Locale stage needs a language.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        return {"language": self.language}


@dataclass(frozen=True, slots=True)
class KeymapStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.keymap"

    keymap: str

    def __post_init__(self) -> None:
        require(bool(self.keymap), "Keymap stage needs a keymap.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        return {"keymap": self.keymap}


@dataclass(frozen=True, slots=True)
class HostnameStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.hostname"

    hostname: str

    def __post_init__(self) -> None:
        require(
            bool(self.hostname),
            "Hostname stage needs a hostname.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"hostname": self.hostname}


@dataclass(frozen=True, slots=True)
class TimezoneStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.timezone"

    zone: str

    def __post_init__(self) -> None:
        require(bool(self.zone), "Timezone stage needs a zone.", stage_type=self.stage_type)

    def to_dict(self) -> dict[str, Any]:
        return {"zone": self.zone}


@dataclass(frozen=True, slots=True)
class ChronyStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.chrony"

    timeservers: tuple[str, ...]

    def __post_init__(self) -> None:
        require(
            bool(self.timeservers),
            "Time sync stage needs at least one server.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"timeservers": list(self.timeservers)}


@dataclass(frozen=True, slots=True)
class UsersStageUser:
    uid: str | None = None
    gid: str | None = None
    groups: tuple[str, ...] = ()
    description: str | None = None
    home: str | None = None
    shell: str | None = None
    password: str | None = None
    key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key in ("uid", "gid", "description", "home", "shell", "password", "key"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.groups:
            payload["groups"] = list(self.groups)
        return payload


@dataclass(frozen=True, slots=True)
class UsersStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.users"

    users: Mapping[str, UsersStageUser] = field(default_factory=dict)

    def __post_init__(self) -> None:
        require(
            bool(self.users),
            "Users stage needs at least one user.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"users": {name: user.to_dict() for name, user in self.users.items()}}


@dataclass(frozen=True, slots=True)
class GroupsStageGroup:
    name: str
    gid: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.gid is not None:
            payload["gid"] = self.gid
        return payload


@dataclass(frozen=True, slots=True)
class GroupsStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.groups"

    groups: Mapping[str, GroupsStageGroup] = field(default_factory=dict)

    def __post_init__(self) -> None:
        require(
            bool(self.groups),
            "Groups stage needs at least one group.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"groups": {name: group.to_dict() for name, group in self.groups.items()}}


@dataclass(frozen=True, slots=True)
class SystemdStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.systemd"

    enabled_services: tuple[str, ...] = ()
    disabled_services: tuple[str, ...] = ()
    default_target: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.enabled_services:
            payload["enabled_services"] = list(self.enabled_services)
        if self.disabled_services:
            payload["disabled_services"] = list(self.disabled_services)
        if self.default_target:
            payload["default_target"] = self.default_target
        return payload


@dataclass(frozen=True, slots=True)
class FirewallStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.firewall"

    ports: tuple[str, ...] = ()
    enabled_services: tuple[str, ...] = ()
    disabled_services: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.ports:
            payload["ports"] = list(self.ports)
        if self.enabled_services:
            payload["enabled_services"] = list(self.enabled_services)
        if self.disabled_services:
            payload["disabled_services"] = list(self.disabled_services)
        return payload


@dataclass(frozen=True, slots=True)
class SELinuxStageOptions:
    stage_type: ClassVar[str] = "org.osbuild.selinux"

    file_contexts: str

    def __post_init__(self) -> None:
        require(
            bool(self.file_contexts),
            "SELinux stage needs a file contexts path.",
            stage_type=self.stage_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"file_contexts": self.file_contexts}


__all__ = [
    "ChronyStageOptions",
    "DNFRepository",
    "DNFStageOptions",
    "FSTabFilesystem",
    "FSTabStageOptions",
    "FirewallStageOptions",
    "FixBLSStageOptions",
    "GRUB2StageOptions",
    "GroupsStageGroup",
    "GroupsStageOptions",
    "HostnameStageOptions",
    "KeymapStageOptions",
    "LocaleStageOptions",
    "SELinuxStageOptions",
    "Stage",
    "StageOptions",
    "SystemdStageOptions",
    "TimezoneStageOptions",
    "UsersStageOptions",
    "UsersStageUser",
    "require",
]
