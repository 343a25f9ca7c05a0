"""Single-pipeline disk and archive images produced by the distro translator."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from oscompose.artifact import Artifact
from oscompose.blueprint import Blueprint
from oscompose.crypt import PasswordHasher
from oscompose.distro.catalog import DistroCatalog
from oscompose.distro.translate import add_repository_sources, build_pipeline
from oscompose.image.base import ImageBase
from oscompose.observability import StructuredLogger
from oscompose.pipeline.manifest import Manifest
from oscompose.rpmmd.model import RepoConfig


@dataclass(frozen=True, slots=True)
class DiskImage:
    catalog: DistroCatalog
    arch: str
    image_type: str
    blueprint: Blueprint = field(default_factory=Blueprint)
    checksums: Mapping[str, str] = field(default_factory=dict)
    base: ImageBase = ImageBase("disk")
    hasher: PasswordHasher | None = None

    def instantiate_manifest(
        self,
        manifest: Manifest,
        repos: Sequence[RepoConfig],
        *,
        logger: StructuredLogger | None = None,
    ) -> Artifact:
        """Add the translated pipeline, and its build environment, to ``manifest``.

        ``repos`` are used in addition to the catalog's own repositories.
        """
        pipeline = build_pipeline(
            self.catalog,
            self.blueprint,
            repos,
            self.checksums,
            self.arch,
            self.image_type,
            hasher=self.hasher,
            logger=logger,
        )
        manifest.add_pipeline(pipeline)
        add_repository_sources(manifest, self.catalog, self.arch, repos, self.checksums)
        filename, mime_type = self.catalog.filename_from_type(self.image_type)
        return Artifact(export=pipeline.name, filename=filename, mime_type=mime_type)


__all__ = ["DiskImage"]
