"""Artifact descriptor returned by image kinds."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Artifact:
    """Names the pipeline whose output the executor exports and the file it yields."""

    export: str
    filename: str
    mime_type: str

    def to_dict(self) -> dict[str, str]:
        return {"export": self.export, "filename": self.filename, "mime_type": self.mime_type}


__all__ = ["Artifact"]
