"""Pipeline, stage and manifest model."""

from .assemblers import (
    Assembler,
    QEMUAssemblerOptions,
    QEMUFilesystem,
    QEMUPartition,
    RawFSAssemblerOptions,
    TarAssemblerOptions,
)
from .manifest import EncodeConfig, Manifest
from .pipeline import Pipeline
from .stages import Stage, StageOptions

__all__ = [
    "Assembler",
    "EncodeConfig",
    "Manifest",
    "Pipeline",
    "QEMUAssemblerOptions",
    "QEMUFilesystem",
    "QEMUPartition",
    "RawFSAssemblerOptions",
    "Stage",
    "StageOptions",
    "TarAssemblerOptions",
]
