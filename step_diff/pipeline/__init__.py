"""Comparison pipeline."""

from .orchestrator import StepDiffOrchestrator, run_diff

__all__ = [
    "StepDiffOrchestrator",
    "run_diff",
]
