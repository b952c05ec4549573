"""Data models for STEP assembly diff."""

from .step import Part, Relation, StepFileHeader, StepFileData
from .assembly import (
    Signature,
    ROOT_PARENT_ID,
    format_signature,
    AssemblyNode,
    AssemblyTree,
    AnomalyKind,
    BuildAnomaly,
)

__all__ = [
    "Part",
    "Relation",
    "StepFileHeader",
    "StepFileData",
    "Signature",
    "ROOT_PARENT_ID",
    "format_signature",
    "AssemblyNode",
    "AssemblyTree",
    "AnomalyKind",
    "BuildAnomaly",
]
