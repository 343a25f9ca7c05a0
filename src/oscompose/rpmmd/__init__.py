"""Repository metadata model and codecs."""

from .io import (
    load_all_repositories,
    load_repositories,
    parse_repo,
    parse_repositories_file,
    repo_from_dict,
    repo_to_dict,
    serialize_repo,
)
from .model import PackageSet, RepoConfig, merge_repositories

__all__ = [
    "PackageSet",
    "RepoConfig",
    "load_all_repositories",
    "load_repositories",
    "merge_repositories",
    "parse_repo",
    "parse_repositories_file",
    "repo_from_dict",
    "repo_to_dict",
    "serialize_repo",
]
