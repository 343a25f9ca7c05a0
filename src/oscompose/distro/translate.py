"""Translate a blueprint into a pipeline for one architecture and output format."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from oscompose.blueprint import (
    Blueprint,
    FirewallCustomization,
    GroupCustomization,
    ServicesCustomization,
    UserCustomization,
)
from oscompose.crypt import PasswordHasher, Sha512CryptHasher, crypt_password
from oscompose.distro.catalog import Architecture, DistroCatalog, OutputDefinition
from oscompose.observability import ComposeLogger, StructuredLogger
from oscompose.pipeline.manifest import Manifest
from oscompose.pipeline.pipeline import Pipeline
from oscompose.pipeline.stages import (
    ChronyStageOptions,
    DNFRepository,
    DNFStageOptions,
    FirewallStageOptions,
    FixBLSStageOptions,
    FSTabFilesystem,
    FSTabStageOptions,
    GRUB2StageOptions,
    GroupsStageGroup,
    GroupsStageOptions,
    HostnameStageOptions,
    KeymapStageOptions,
    LocaleStageOptions,
    SELinuxStageOptions,
    SystemdStageOptions,
    TimezoneStageOptions,
    UsersStageOptions,
    UsersStageUser,
)
from oscompose.rpmmd.model import PackageSet, RepoConfig, merge_repositories

OS_PIPELINE = "os"
BUILD_PIPELINE = "build"
DEFAULT_LANGUAGE = "en_US"


def build_pipeline(
    catalog: DistroCatalog,
    blueprint: Blueprint,
    additional_repos: Sequence[RepoConfig],
    checksums: Mapping[str, str],
    arch: str,
    fmt: str,
    *,
    hasher: PasswordHasher | None = None,
    logger: StructuredLogger | None = None,
) -> Pipeline:
    """Build the OS pipeline, with its build environment attached.

    Raises ``InvalidOutputFormatError`` or ``InvalidArchitectureError`` for
    unknown catalog keys and ``CredentialHashingError`` when a user password
    cannot be hashed. Nothing is returned on failure.
    """
    output = catalog.get_output(fmt)
    architecture = catalog.get_architecture(arch)
    scope: ComposeLogger | None = None
    if logger is not None:
        scope = logger.bind(distro=catalog.name, arch=arch, image_type=fmt)
        scope.log("translate.start", "Translating blueprint.")

    repos = merge_repositories(catalog.repositories(arch), tuple(additional_repos))
    root_fs_uuid = catalog.root_fs_uuid

    pipeline = Pipeline(name=OS_PIPELINE)
    pipeline.set_build(_build_environment(catalog, architecture, checksums), catalog.runner)

    base = PackageSet(
        include=output.packages + (architecture.bootloader_packages if output.bootable else ()),
        exclude=output.excluded_packages,
    )
    packages, excluded = base.union(PackageSet(include=tuple(blueprint.get_packages()))).resolve()
    pipeline.add_stage(
        _dnf_options(catalog, architecture, repos, checksums, packages, excluded),
    )
    pipeline.add_stage(FixBLSStageOptions())

    if output.bootable:
        pipeline.add_stage(
            FSTabStageOptions(
                filesystems=(
                    FSTabFilesystem(
                        uuid=str(root_fs_uuid),
                        vfs_type=catalog.root_fs_type,
                        path="/",
                    ),
                ),
            ),
        )

    pipeline.add_stage(
        GRUB2StageOptions(
            root_fs_uuid=root_fs_uuid,
            kernel_opts=_kernel_options(output, blueprint),
            legacy=architecture.legacy_boot,
        ),
    )

    language, keyboard = blueprint.get_primary_locale()
    pipeline.add_stage(LocaleStageOptions(language=language or DEFAULT_LANGUAGE))
    if keyboard is not None:
        pipeline.add_stage(KeymapStageOptions(keymap=keyboard))

    hostname = blueprint.get_hostname()
    if hostname is not None:
        pipeline.add_stage(HostnameStageOptions(hostname=hostname))

    timezone, ntp_servers = blueprint.get_timezone_settings()
    if timezone is not None:
        pipeline.add_stage(TimezoneStageOptions(zone=timezone))
    if ntp_servers:
        pipeline.add_stage(ChronyStageOptions(timeservers=ntp_servers))

    users = blueprint.get_users()
    if users:
        pipeline.add_stage(_users_options(users, hasher or Sha512CryptHasher()))

    groups = blueprint.get_groups()
    if groups:
        pipeline.add_stage(_groups_options(groups))

    services = blueprint.get_services()
    if services is not None or output.declares_services:
        pipeline.add_stage(_systemd_options(output, services))

    firewall = blueprint.get_firewall()
    if firewall is not None:
        pipeline.add_stage(_firewall_options(firewall))

    pipeline.add_stage(SELinuxStageOptions(file_contexts=catalog.selinux_file_contexts))
    pipeline.set_assembler(output.assembler(root_fs_uuid))

    if scope is not None:
        scope.log(
            "translate.complete",
            "Pipeline built.",
            pipeline=OS_PIPELINE,
            extra={
                "stages": [stage.type for stage in pipeline.stages],
                "assembler": pipeline.assembler.type if pipeline.assembler else None,
                "packages": len(packages),
            },
        )
    return pipeline


def manifest_for(
    catalog: DistroCatalog,
    blueprint: Blueprint,
    additional_repos: Sequence[RepoConfig],
    checksums: Mapping[str, str],
    arch: str,
    fmt: str,
    *,
    hasher: PasswordHasher | None = None,
    logger: StructuredLogger | None = None,
) -> Manifest:
    """Wrap :func:`build_pipeline` in a manifest carrying the checksums it uses."""
    pipeline = build_pipeline(
        catalog,
        blueprint,
        additional_repos,
        checksums,
        arch,
        fmt,
        hasher=hasher,
        logger=logger,
    )
    manifest = Manifest()
    manifest.add_pipeline(pipeline)
    add_repository_sources(manifest, catalog, arch, additional_repos, checksums)
    return manifest


def add_repository_sources(
    manifest: Manifest,
    catalog: DistroCatalog,
    arch: str,
    additional_repos: Sequence[RepoConfig],
    checksums: Mapping[str, str],
) -> None:
    """Record the checksum of every repository the translated pipelines install from."""
    repos = merge_repositories(catalog.repositories(arch), tuple(additional_repos))
    manifest.add_sources({repo.id: checksums.get(repo.id, "") for repo in repos})


def _build_environment(
    catalog: DistroCatalog,
    architecture: Architecture,
    checksums: Mapping[str, str],
) -> Pipeline:
    build = Pipeline(name=BUILD_PIPELINE, runner=catalog.runner)
    packages = PackageSet(include=catalog.build_packages + architecture.build_packages)
    include, _ = packages.resolve()
    build.add_stage(
        _dnf_options(
            catalog,
            architecture,
            catalog.repositories(architecture.name),
            checksums,
            include,
            (),
        ),
    )
    return build


def _dnf_options(
    catalog: DistroCatalog,
    architecture: Architecture,
    repos: Iterable[RepoConfig],
    checksums: Mapping[str, str],
    packages: tuple[str, ...],
    excluded: tuple[str, ...],
) -> DNFStageOptions:
    return DNFStageOptions(
        packages=packages,
        repos=tuple(DNFRepository.from_repo(repo, checksums) for repo in repos),
        exclude_packages=excluded,
        release_version=catalog.release_version,
        base_architecture=architecture.name,
        module_platform_id=catalog.module_platform_id,
    )


def _kernel_options(output: OutputDefinition, blueprint: Blueprint) -> str:
    options = output.kernel_options
    kernel = blueprint.get_kernel()
    if kernel is not None and kernel.append:
        options = f"{options} {kernel.append}" if options else kernel.append
    return options


def _users_options(
    users: Iterable[UserCustomization],
    hasher: PasswordHasher,
) -> UsersStageOptions:
    entries: dict[str, UsersStageUser] = {}
    for user in users:
        password = user.password
        if password is not None:
            password = crypt_password(password, hasher)
        entries[user.name] = UsersStageUser(
            uid=None if user.uid is None else str(user.uid),
            gid=None if user.gid is None else str(user.gid),
            groups=user.groups,
            description=user.description,
            home=user.home,
            shell=user.shell,
            password=password,
            key=user.key,
        )
    return UsersStageOptions(users=entries)


def _groups_options(groups: Iterable[GroupCustomization]) -> GroupsStageOptions:
    return GroupsStageOptions(
        groups={
            group.name: GroupsStageGroup(
                name=group.name,
                gid=None if group.gid is None else str(group.gid),
            )
            for group in groups
        },
    )


def _systemd_options(
    output: OutputDefinition,
    services: ServicesCustomization | None,
) -> SystemdStageOptions:
    enabled = list(output.enabled_services)
    disabled = list(output.disabled_services)
    if services is not None:
        enabled.extend(services.enabled)
        disabled.extend(services.disabled)
    return SystemdStageOptions(
        enabled_services=tuple(dict.fromkeys(enabled)),
        disabled_services=tuple(dict.fromkeys(disabled)),
        default_target=output.default_target,
    )


def _firewall_options(firewall: FirewallCustomization) -> FirewallStageOptions:
    if firewall.services is None:
        return FirewallStageOptions(ports=firewall.ports)
    return FirewallStageOptions(
        ports=firewall.ports,
        enabled_services=firewall.services.enabled,
        disabled_services=firewall.services.disabled,
    )


__all__ = [
    "BUILD_PIPELINE",
    "DEFAULT_LANGUAGE",
    "OS_PIPELINE",
    "add_repository_sources",
    "build_pipeline",
    "manifest_for",
]
