"""Utility modules (record loading)."""

from .io import (
    load_json_robust,
    parse_step_data,
    load_step_data,
)

__all__ = [
    "load_json_robust",
    "parse_step_data",
    "load_step_data",
]
