"""Repository configuration parser, serializer and file loader."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from oscompose.errors import RepositoryConfigError
from oscompose.rpmmd.model import RepoConfig, merge_repositories

REPOSITORIES_DIR = "repositories"


def repo_to_dict(repo: RepoConfig) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if repo.id:
        payload["id"] = repo.id
    if repo.name:
        payload["name"] = repo.name
    if repo.baseurls:
        payload["baseurls"] = list(repo.baseurls)
    if repo.metalink:
        payload["metalink"] = repo.metalink
    if repo.mirrorlist:
        payload["mirrorlist"] = repo.mirrorlist
    if repo.gpgkeys:
        payload["gpgkeys"] = list(repo.gpgkeys)
    if repo.check_gpg is not None:
        payload["check_gpg"] = repo.check_gpg
    if repo.check_repo_gpg is not None:
        payload["check_repo_gpg"] = repo.check_repo_gpg
    if repo.priority is not None:
        payload["priority"] = repo.priority
    if repo.ignore_ssl is not None:
        payload["ignore_ssl"] = repo.ignore_ssl
    if repo.metadata_expire:
        payload["metadata_expire"] = repo.metadata_expire
    if repo.rhsm:
        payload["rhsm"] = repo.rhsm
    if repo.enabled is not None:
        payload["enabled"] = repo.enabled
    if repo.image_type_tags:
        payload["image_type_tags"] = list(repo.image_type_tags)
    if repo.package_sets:
        payload["package_sets"] = list(repo.package_sets)
    # Older workers only understand the single comma-joined field.
    if repo.baseurls:
        payload["baseurl"] = ",".join(repo.baseurls)
    return payload


def repo_from_dict(payload: Any) -> RepoConfig:
    if not isinstance(payload, dict):
        raise RepositoryConfigError("Invalid repository entry type.")
    baseurls = _optional_str_list(payload, "baseurls")
    if not baseurls:
        legacy = _optional_str(payload, "baseurl")
        if legacy:
            baseurls = tuple(url for url in legacy.split(",") if url)
    return RepoConfig(
        id=_optional_str(payload, "id"),
        name=_optional_str(payload, "name"),
        baseurls=baseurls,
        metalink=_optional_str(payload, "metalink"),
        mirrorlist=_optional_str(payload, "mirrorlist"),
        gpgkeys=_optional_str_list(payload, "gpgkeys"),
        check_gpg=_optional_bool(payload, "check_gpg"),
        check_repo_gpg=_optional_bool(payload, "check_repo_gpg"),
        ignore_ssl=_optional_bool(payload, "ignore_ssl"),
        priority=_optional_int(payload, "priority"),
        metadata_expire=_optional_str(payload, "metadata_expire"),
        rhsm=bool(_optional_bool(payload, "rhsm")),
        enabled=_optional_bool(payload, "enabled"),
        image_type_tags=_optional_str_list(payload, "image_type_tags"),
        package_sets=_optional_str_list(payload, "package_sets"),
    )


def serialize_repo(repo: RepoConfig) -> str:
    return json.dumps(repo_to_dict(repo), separators=(",", ":"))


def parse_repo(raw: str) -> RepoConfig:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RepositoryConfigError("Invalid repository JSON.", hint=str(exc)) from exc
    return repo_from_dict(payload)


def parse_repositories_file(raw: str, *, source: str = "") -> dict[str, list[RepoConfig]]:
    """Parse an ``arch -> [repo]`` mapping, keeping the first repo of each id per arch."""
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RepositoryConfigError(
            "Invalid repository definition JSON.",
            hint=str(exc),
            context={"path": source},
        ) from exc
    if not isinstance(payload, dict):
        raise RepositoryConfigError(
            "Repository definition must map architectures to repository lists.",
            context={"path": source},
        )
    parsed: dict[str, list[RepoConfig]] = {}
    for arch, entries in payload.items():
        if not isinstance(entries, list):
            raise RepositoryConfigError(
                "Invalid repository list for architecture.",
                context={"path": source, "arch": str(arch)},
            )
        repos = tuple(repo_from_dict(entry) for entry in entries)
        parsed[str(arch)] = list(merge_repositories(repos))
    return parsed


def load_repositories(
    conf_paths: Iterable[str | Path],
    distro: str,
) -> dict[str, list[RepoConfig]]:
    """Load repositories for one distro; the first configuration path defining it wins."""
    searched: list[str] = []
    for conf_path in conf_paths:
        candidate = Path(conf_path) / REPOSITORIES_DIR / f"{distro}.json"
        searched.append(str(candidate))
        if candidate.is_file():
            return parse_repositories_file(
                candidate.read_text(encoding="utf-8"), source=str(candidate)
            )
    raise RepositoryConfigError(
        "No repository definition found for distro.",
        hint="Add <conf-path>/repositories/<distro>.json to one of the configuration paths.",
        context={"distro": distro, "searched": ", ".join(searched)},
    )


def load_all_repositories(
    conf_paths: Iterable[str | Path],
) -> dict[str, dict[str, list[RepoConfig]]]:
    distros: dict[str, dict[str, list[RepoConfig]]] = {}
    for conf_path in conf_paths:
        repo_dir = Path(conf_path) / REPOSITORIES_DIR
        if not repo_dir.is_dir():
            continue
        for candidate in sorted(repo_dir.glob("*.json")):
            distro = candidate.stem
            if distro in distros:
                continue
            distros[distro] = parse_repositories_file(
                candidate.read_text(encoding="utf-8"), source=str(candidate)
            )
    return distros


def _optional_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise RepositoryConfigError(f"Invalid repository `{key}` value.")
    return value


def _optional_bool(payload: dict[str, Any], key: str) -> bool | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise RepositoryConfigError(f"Invalid repository `{key}` value.")
    return value


def _optional_int(payload: dict[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RepositoryConfigError(f"Invalid repository `{key}` value.")
    return value


def _optional_str_list(payload: dict[str, Any], key: str) -> tuple[str, ...]:
    value = payload.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise RepositoryConfigError(f"Invalid repository `{key}` value.")
    return tuple(value)
