"""Compile OS image blueprints into build manifests."""

from .artifact import Artifact
from .blueprint import Blueprint, load_blueprint
from .crypt import PasswordHasher, Sha512CryptHasher
from .distro import (
    DistroCatalog,
    build_pipeline,
    distro_names,
    get_distro,
    manifest_for,
)
from .errors import (
    BlueprintError,
    ComposeError,
    CredentialHashingError,
    ErrorCode,
    InvalidArchitectureError,
    InvalidDistroError,
    InvalidOutputFormatError,
    RepositoryConfigError,
    ValidationError,
)
from .image import AnacondaOSTreeInstaller, DiskImage, OSTreeSourceSpec, Platform
from .observability import ComposeLogger, StructuredLogger
from .pipeline import EncodeConfig, Manifest, Pipeline
from .rpmmd import PackageSet, RepoConfig, load_repositories

__all__ = [
    "AnacondaOSTreeInstaller",
    "Artifact",
    "Blueprint",
    "BlueprintError",
    "ComposeError",
    "ComposeLogger",
    "CredentialHashingError",
    "DiskImage",
    "DistroCatalog",
    "EncodeConfig",
    "ErrorCode",
    "InvalidArchitectureError",
    "InvalidDistroError",
    "InvalidOutputFormatError",
    "Manifest",
    "OSTreeSourceSpec",
    "PackageSet",
    "PasswordHasher",
    "Pipeline",
    "Platform",
    "RepoConfig",
    "RepositoryConfigError",
    "Sha512CryptHasher",
    "StructuredLogger",
    "ValidationError",
    "build_pipeline",
    "distro_names",
    "get_distro",
    "load_blueprint",
    "load_repositories",
    "manifest_for",
]
