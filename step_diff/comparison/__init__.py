"""Comparison module for aligning two STEP assembly trees."""

from .matcher import (
    DiffKind,
    Both,
    FirstOnly,
    SecondOnly,
    SecondRelocated,
    Classification,
    DiffNode,
    TreeComparator,
)
from .diff_result import StepDiffResult, compare_trees

__all__ = [
    "DiffKind",
    "Both",
    "FirstOnly",
    "SecondOnly",
    "SecondRelocated",
    "Classification",
    "DiffNode",
    "TreeComparator",
    "StepDiffResult",
    "compare_trees",
]
