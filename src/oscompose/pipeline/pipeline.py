"""Pipeline: ordered stages, an optional build environment and a terminal assembler."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from oscompose.errors import ValidationError
from oscompose.pipeline.assemblers import Assembler
from oscompose.pipeline.iso_stages import pipeline_ref
from oscompose.pipeline.stages import Stage, StageOptions


@dataclass(slots=True)
class Pipeline:
    """A named sequence of stages.

    The build environment is either owned (``build``) or referenced by the
    name of a pipeline already registered in the same manifest
    (``build_name`` without ``build``). Stages are only ever appended.
    """

    name: str
    runner: str = ""
    stages: list[Stage] = field(default_factory=list)
    assembler: Assembler | None = None
    build: Pipeline | None = None
    build_name: str | None = None
    attached: bool = field(default=False, init=False, compare=False, repr=False)

    def add_stage(self, options: StageOptions) -> Stage:
        stage = Stage.from_options(options)
        self.stages.append(stage)
        return stage

    def set_assembler(self, options: StageOptions) -> Assembler:
        if self.attached:
            raise ValidationError(
                "Build pipelines must not have an assembler.",
                hint="Build environments only provide tools; they produce no image.",
                context={"pipeline": self.name},
            )
        if self.assembler is not None:
            raise ValidationError(
                "Pipeline already has an assembler.",
                context={"pipeline": self.name, "assembler": self.assembler.type},
            )
        self.assembler = Assembler.from_options(options)
        return self.assembler

    def set_build(self, pipeline: Pipeline, runner: str) -> None:
        """Take ownership of ``pipeline`` as this pipeline's build environment."""
        if pipeline is self:
            raise ValidationError(
                "Pipeline cannot be its own build environment.",
                context={"pipeline": self.name},
            )
        if pipeline.assembler is not None:
            raise ValidationError(
                "Build pipelines must not have an assembler.",
                hint="Build environments only provide tools; they produce no image.",
                context={"pipeline": self.name, "build": pipeline.name},
            )
        if pipeline.attached:
            raise ValidationError(
                "Build pipeline is already attached to another pipeline.",
                context={"pipeline": self.name, "build": pipeline.name},
            )
        if self.build is not None:
            self.build.attached = False
        pipeline.attached = True
        if not pipeline.runner:
            pipeline.runner = runner
        self.build = pipeline
        self.build_name = pipeline.name
        self.runner = runner

    def use_build(self, name: str, runner: str) -> None:
        """Reference a build environment registered elsewhere in the manifest."""
        if name == self.name:
            raise ValidationError(
                "Pipeline cannot be its own build environment.",
                context={"pipeline": self.name},
            )
        if self.build is not None:
            self.build.attached = False
            self.build = None
        self.build_name = name
        self.runner = runner

    def build_chain(self) -> Iterator[Pipeline]:
        """Yield owned build pipelines, innermost dependency first."""
        if self.build is None:
            return
        yield from self.build.build_chain()
        yield self.build

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.build_name is not None:
            payload["build"] = pipeline_ref(self.build_name)
        if self.runner:
            payload["runner"] = self.runner
        payload["stages"] = [stage.to_dict() for stage in self.stages]
        if self.assembler is not None:
            payload["assembler"] = self.assembler.to_dict()
        return payload


__all__ = ["Pipeline"]
