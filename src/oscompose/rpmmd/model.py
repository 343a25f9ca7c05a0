"""Repository and package-set typed model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RepoConfig:
    """One package source; identity is ``id``."""

    id: str = ""
    name: str = ""
    baseurls: tuple[str, ...] = ()
    metalink: str = ""
    mirrorlist: str = ""
    gpgkeys: tuple[str, ...] = ()
    check_gpg: bool | None = None
    check_repo_gpg: bool | None = None
    ignore_ssl: bool | None = None
    priority: int | None = None
    metadata_expire: str = ""
    rhsm: bool = False
    enabled: bool | None = None
    image_type_tags: tuple[str, ...] = ()
    package_sets: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PackageSet:
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    repositories: tuple[RepoConfig, ...] = ()

    def union(self, other: PackageSet) -> PackageSet:
        return PackageSet(
            include=self.include + other.include,
            exclude=self.exclude + other.exclude,
            repositories=merge_repositories(self.repositories, other.repositories),
        )

    def resolve(self) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Return sorted include/exclude lists with exclusions subtracted from include."""
        excluded = set(self.exclude)
        include = tuple(sorted({name for name in self.include if name not in excluded}))
        return include, tuple(sorted(excluded))


def merge_repositories(*groups: tuple[RepoConfig, ...]) -> tuple[RepoConfig, ...]:
    """Concatenate repository groups, keeping the first repo seen for each id."""
    seen: set[str] = set()
    merged: list[RepoConfig] = []
    for group in groups:
        for repo in group:
            if repo.id and repo.id in seen:
                continue
            seen.add(repo.id)
            merged.append(repo)
    return tuple(merged)


__all__ = ["PackageSet", "RepoConfig", "merge_repositories"]
