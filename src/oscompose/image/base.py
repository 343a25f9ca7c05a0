"""Fields shared by every image kind."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ImageBase:
    name: str


__all__ = ["ImageBase"]
