"""Structured logging for compose requests.

Every record names the compose request it belongs to (distro, architecture
and image type) and, where one is involved, the pipeline. Translators and
image kinds log through a :class:`ComposeLogger` bound to their request so
the request fields are set once.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from oscompose.errors import ComposeError, ValidationError

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass(slots=True)
class StructuredLogger:
    """Collects structured records in memory; callers decide where they go."""

    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        distro: str | None,
        arch: str | None,
        image_type: str | None,
        pipeline: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        if level not in LOG_LEVELS:
            raise ValidationError(
                f"Unknown log level: {level}",
                hint=f"Use one of: {', '.join(LOG_LEVELS)}.",
                context={"operation": operation},
            )
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "distro": distro,
            "arch": arch,
            "image_type": image_type,
            "pipeline": pipeline,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def bind(
        self,
        *,
        distro: str | None,
        arch: str | None,
        image_type: str | None,
    ) -> ComposeLogger:
        return ComposeLogger(sink=self, distro=distro, arch=arch, image_type=image_type)

    def records_for_pipeline(self, pipeline: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("pipeline") == pipeline]

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def records_for_request(
        self,
        distro: str | None,
        arch: str | None,
        image_type: str | None,
    ) -> list[dict[str, Any]]:
        return [
            record
            for record in self.records
            if (record["distro"], record["arch"], record["image_type"])
            == (distro, arch, image_type)
        ]

    def failures(self) -> list[dict[str, Any]]:
        return [record for record in self.records if record["level"] == "error"]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


@dataclass(frozen=True, slots=True)
class ComposeLogger:
    """A :class:`StructuredLogger` bound to one compose request."""

    sink: StructuredLogger
    distro: str | None
    arch: str | None
    image_type: str | None

    def log(
        self,
        operation: str,
        message: str,
        *,
        pipeline: str | None = None,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.sink.log(
            operation=operation,
            distro=self.distro,
            arch=self.arch,
            image_type=self.image_type,
            pipeline=pipeline,
            message=message,
            level=level,
            extra=extra,
        )

    def failure(self, operation: str, error: ComposeError) -> None:
        """Record ``error`` and stamp the request onto its context."""
        error.with_context(distro=self.distro, arch=self.arch, image_type=self.image_type)
        self.log(
            operation,
            error.message,
            pipeline=error.context.get("pipeline"),
            level="error",
            extra=error.to_dict(),
        )


__all__ = ["LOG_LEVELS", "ComposeLogger", "StructuredLogger"]
