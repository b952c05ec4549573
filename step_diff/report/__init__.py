"""Report generation module for STEP assembly diffs."""

from .diff_report import (
    DiffReportGenerator,
    DiffReport,
    generate_report,
    generate_report_without_llm,
    render_tree,
)

__all__ = [
    "DiffReportGenerator",
    "DiffReport",
    "generate_report",
    "generate_report_without_llm",
    "render_tree",
]
