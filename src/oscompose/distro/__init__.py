"""Distro catalogs and the blueprint translator."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType

from oscompose.errors import InvalidDistroError

from . import rhel82
from .catalog import Architecture, AssemblerFactory, DistroCatalog, OutputDefinition
from .translate import build_pipeline, manifest_for

_FACTORIES: Mapping[str, Callable[[], DistroCatalog]] = MappingProxyType(
    {rhel82.NAME: rhel82.new},
)


def distro_names() -> tuple[str, ...]:
    return tuple(sorted(_FACTORIES))


def get_distro(name: str) -> DistroCatalog:
    """Return a freshly built catalog for ``name``."""
    try:
        factory = _FACTORIES[name]
    except KeyError as exc:
        raise InvalidDistroError(
            f"Unknown distro: {name}",
            hint=f"Supported distros: {', '.join(distro_names())}.",
            context={"distro": name},
        ) from exc
    return factory()


__all__ = [
    "Architecture",
    "AssemblerFactory",
    "DistroCatalog",
    "OutputDefinition",
    "build_pipeline",
    "distro_names",
    "get_distro",
    "manifest_for",
]
