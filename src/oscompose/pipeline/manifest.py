"""Manifest: the ordered set of named pipelines handed to the build executor."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cbor2

from oscompose.errors import ValidationError
from oscompose.pipeline.pipeline import Pipeline


@dataclass(frozen=True, slots=True)
class EncodeConfig:
    indent: int | None = 2
    sort_keys: bool = True


@dataclass(slots=True)
class Manifest:
    """Pipelines in dependency order plus the repository checksums they consume.

    Every pipeline appears after the build environment it depends on, and
    pipeline names are unique within a manifest.
    """

    pipelines: list[Pipeline] = field(default_factory=list)
    sources: dict[str, str] = field(default_factory=dict)

    def add_pipeline(self, pipeline: Pipeline) -> Pipeline:
        """Register ``pipeline`` after any owned build pipelines not yet present."""
        self.add_pipelines((pipeline,))
        return pipeline

    def add_pipelines(self, pipelines: Sequence[Pipeline]) -> None:
        """Register ``pipelines`` in order; nothing is registered unless all are accepted."""
        pending: list[Pipeline] = []
        for pipeline in pipelines:
            for dependency in pipeline.build_chain():
                if self.get(dependency.name) is dependency:
                    continue
                if any(queued is dependency for queued in pending):
                    continue
                pending.append(dependency)
            pending.append(pipeline)
        known = set(self.names())
        for candidate in pending:
            self._check(candidate, known)
            known.add(candidate.name)
        self.pipelines.extend(pending)

    def add_sources(self, checksums: Mapping[str, str]) -> None:
        for repo_id, checksum in checksums.items():
            if checksum:
                self.sources[repo_id] = checksum

    def get(self, name: str) -> Pipeline | None:
        for pipeline in self.pipelines:
            if pipeline.name == name:
                return pipeline
        return None

    def names(self) -> tuple[str, ...]:
        return tuple(pipeline.name for pipeline in self.pipelines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pipelines": [pipeline.to_dict() for pipeline in self.pipelines],
            "sources": dict(sorted(self.sources.items())),
        }

    def to_json(
        self,
        path: str | Path | None = None,
        *,
        config: EncodeConfig | None = None,
    ) -> str:
        settings = config or EncodeConfig()
        encoded = (
            json.dumps(self.to_dict(), indent=settings.indent, sort_keys=settings.sort_keys) + "\n"
        )
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self.to_dict(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def digest(self) -> str:
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def _check(self, pipeline: Pipeline, known: set[str]) -> None:
        if pipeline.name in known:
            raise ValidationError(
                f"Pipeline `{pipeline.name}` is already part of the manifest.",
                hint="Pipeline names must be unique within a manifest.",
                context={"pipeline": pipeline.name},
            )
        if pipeline.build_name is not None and pipeline.build_name not in known:
            raise ValidationError(
                f"Build pipeline `{pipeline.build_name}` is not part of the manifest.",
                hint="Add the build pipeline before the pipelines that depend on it.",
                context={"pipeline": pipeline.name, "build": pipeline.build_name},
            )


__all__ = ["EncodeConfig", "Manifest"]
