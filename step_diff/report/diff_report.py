"""Change report generation for STEP assembly diffs.

Turns a StepDiffResult into a human-readable report an engineer can read
before importing the second file. The template report needs nothing but
the diff; the LLM report adds a short narrative written by an OpenAI
model on top of the same data.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import json
import os

from ..config import Config, default_config
from ..comparison.diff_result import StepDiffResult
from ..comparison.matcher import DiffKind, DiffNode
from ..models.step import StepFileHeader


STATUS_IDENTICAL = "IDENTICAL"
STATUS_CHANGED = "CHANGED"
STATUS_EMPTY = "EMPTY"

# Tree listing markers
KIND_MARKERS = {
    DiffKind.BOTH: "=",
    DiffKind.FIRST_ONLY: "-",
    DiffKind.SECOND_ONLY: "+",
    DiffKind.SECOND_RELOCATED: "~",
}


REPORT_PROMPT_TEMPLATE = '''You are a CAD configuration engineer reviewing the differences between two
versions of a STEP AP242 assembly before they are imported into a shared engineering model.

## Files
- First file: {first_file}
- Second file: {second_file}

## Counts
- Shared nodes: {shared}
- Removed (first file only): {removed}
- Added (second file only): {added}
- Relocated (moved in the second file): {relocated}
- Record anomalies: {anomalies}

## Changes
{changes}

---

Write a concise change report with these sections:
1. **Summary** (2-3 sentences: what changed overall)
2. **Structural Changes** (added, removed and relocated sub-assemblies, grouped by parent)
3. **Data Quality** (record anomalies, if any)
4. **Import Notes** (what to check before importing the second file)

Use ONLY the data above. Do not invent part names. Use bullet points.
'''


@dataclass
class DiffReport:
    """
    Generated change report.

    Attributes:
        status: IDENTICAL, CHANGED or EMPTY
        summary: One-line summary
        first_file: Name of the first file
        second_file: Name of the second file
        counts: Node count per classification
        added: Instance paths added in the second file
        removed: Instance paths only in the first file
        relocated: "old -> new" instance paths
        anomalies: Record anomaly messages
        generated_at: ISO timestamp
        report_text: Report body (markdown)
        model_used: LLM that wrote the narrative, or the template marker
    """
    status: str = STATUS_EMPTY
    summary: str = ""
    first_file: str = ""
    second_file: str = ""
    counts: Dict[str, int] = field(default_factory=dict)
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    relocated: List[str] = field(default_factory=list)
    anomalies: List[str] = field(default_factory=list)
    generated_at: str = ""
    report_text: str = ""
    model_used: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "summary": self.summary,
            "firstFile": self.first_file,
            "secondFile": self.second_file,
            "counts": self.counts,
            "added": self.added,
            "removed": self.removed,
            "relocated": self.relocated,
            "anomalies": self.anomalies,
            "generatedAt": self.generated_at,
            "reportText": self.report_text,
            "modelUsed": self.model_used,
        }

    def to_markdown(self) -> str:
        """Generate full markdown report."""
        header = f"""# STEP Assembly Diff Report

**First File:** {self.first_file or "n/a"}
**Second File:** {self.second_file or "n/a"}
**Status:** {self.status}
**Summary:** {self.summary}
**Generated:** {self.generated_at}
**Model:** {self.model_used}

---

"""
        return header + self.report_text

    def save(self, output_dir: str, config: Config = None) -> str:
        """Write the markdown report into output_dir, returns the file path."""
        config = config or default_config
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, config.report_output_file)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_markdown())
        return path


def _file_label(header: Optional[StepFileHeader]) -> str:
    if header is None:
        return ""
    return header.name or os.path.basename(header.file_path) or header.file_path


def _status_of(diff: StepDiffResult) -> str:
    if diff.is_empty:
        return STATUS_EMPTY
    if diff.identical:
        return STATUS_IDENTICAL
    return STATUS_CHANGED


def _summary_of(diff: StepDiffResult) -> str:
    if diff.is_empty:
        return "Nothing to compare"
    if diff.identical:
        return f"Both files look the same ({diff.shared_count} nodes)"
    summary = (f"{diff.added_count} added, {diff.removed_count} removed, "
               f"{diff.relocated_count} relocated, {diff.shared_count} shared")
    if diff.no_common_root:
        summary += "; the files have no common root"
    return summary


def _relocation_line(node: DiffNode) -> str:
    return f"{node.original.instance_path} -> {node.node.instance_path}"


def _base_report(diff: StepDiffResult, model_used: str) -> DiffReport:
    """Fill in everything that comes straight from the diff data."""
    return DiffReport(
        status=_status_of(diff),
        summary=_summary_of(diff),
        first_file=_file_label(diff.first_header),
        second_file=_file_label(diff.second_header),
        counts=diff.summary,
        added=[n.node.instance_path for n in diff.nodes_of(DiffKind.SECOND_ONLY)],
        removed=[n.node.instance_path for n in diff.nodes_of(DiffKind.FIRST_ONLY)],
        relocated=[_relocation_line(n) for n in diff.nodes_of(DiffKind.SECOND_RELOCATED)],
        anomalies=[a.message for a in diff.anomalies],
        generated_at=datetime.now().isoformat() + "Z",
        model_used=model_used,
    )


def render_tree(diff: StepDiffResult, max_nodes: int = None) -> List[str]:
    """
    Indented tree listing with one marker per classification.

        = shared   - first file only   + second file only   ~ relocated
    """
    lines = []
    nodes = diff.nodes if max_nodes is None else diff.nodes[:max_nodes]
    for node in nodes:
        line = f"{'  ' * node.depth}{KIND_MARKERS[node.kind]} {node.node.instance_name}"
        if node.original is not None:
            line += f" (from {node.original.instance_path})"
        lines.append(line)
    if max_nodes is not None and len(diff.nodes) > max_nodes:
        lines.append(f"... {len(diff.nodes) - max_nodes} more nodes")
    return lines


def generate_report_without_llm(
    diff: StepDiffResult,
    config: Config = None,
) -> DiffReport:
    """
    Generate a change report from a template (no LLM).

    Args:
        diff: Comparison result
        config: Configuration (uses default if None)

    Returns:
        DiffReport with template-based content
    """
    config = config or default_config
    report = _base_report(diff, "template (no LLM)")

    lines = ["## Summary", ""]
    if report.status == STATUS_EMPTY:
        lines.append("Nothing to compare: both files are empty or missing.")
    elif report.status == STATUS_IDENTICAL:
        lines.append(f"**Both step files look the same** - {diff.shared_count} nodes shared.")
    else:
        lines.append(f"**Step files differ** - {report.summary}.")

    lines.extend(["", "## Counts", ""])
    lines.append(f"- Shared: {diff.shared_count}")
    lines.append(f"- Removed: {diff.removed_count}")
    lines.append(f"- Added: {diff.added_count}")
    lines.append(f"- Relocated: {diff.relocated_count}")

    if report.removed:
        lines.extend(["", "## Removed (first file only)", ""])
        lines.extend(f"- {path}" for path in report.removed)

    if report.added:
        lines.extend(["", "## Added (second file only)", ""])
        lines.extend(f"- {path}" for path in report.added)

    if report.relocated:
        lines.extend(["", "## Relocated", ""])
        lines.extend(f"- {line}" for line in report.relocated)

    if report.anomalies:
        lines.extend(["", "## Record Anomalies", ""])
        lines.extend(f"- {message}" for message in report.anomalies)

    if diff.nodes:
        lines.extend(["", "## Merged Tree", "", "```"])
        lines.extend(render_tree(diff, config.report_max_listed_nodes))
        lines.append("```")

    report.report_text = "\n".join(lines)
    return report


class DiffReportGenerator:
    """
    Generate change reports using an OpenAI model.

    The status, counts and change lists always come from the diff; the
    model only writes the narrative.

    Usage:
        generator = DiffReportGenerator(api_key="sk-...")
        report = generator.generate(diff_result)
        print(report.to_markdown())
    """

    def __init__(
        self,
        api_key: str = None,
        model_id: str = None,
        max_tokens: int = None,
        temperature: float = None,
        config: Config = None,
    ):
        """
        Initialize report generator.

        Args:
            api_key: OpenAI API key (or set OPENAI_API_KEY env var)
            model_id: Model to use (default from config)
            max_tokens: Max response tokens (default from config)
            temperature: Sampling temperature (default from config)
            config: Configuration (uses default if None)
        """
        self.config = config or default_config
        self.api_key = api_key
        self.model_id = model_id or self.config.report_model_id
        self.max_tokens = max_tokens or self.config.report_max_tokens
        self.temperature = temperature if temperature is not None else self.config.report_temperature
        self._client = None

    def _get_client(self):
        """Lazy-load OpenAI client."""
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def generate(self, diff: StepDiffResult) -> DiffReport:
        """
        Generate a change report from comparison results.

        Args:
            diff: Comparison result

        Returns:
            DiffReport with generated content
        """
        report = _base_report(diff, self.model_id)
        prompt = self._build_prompt(diff, report)

        try:
            client = self._get_client()
            response = client.chat.completions.create(
                model=self.model_id,
                messages=[
                    {"role": "system", "content": "You are a CAD configuration engineer writing change reports."},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            report.report_text = response.choices[0].message.content or ""
        except Exception as e:
            report.report_text = (
                f"Error generating report: {str(e)}\n\n"
                f"Raw data:\n{json.dumps(diff.to_dict(), indent=2, ensure_ascii=False)}"
            )

        return report

    def _build_prompt(self, diff: StepDiffResult, report: DiffReport) -> str:
        """Build the prompt for the report model."""
        change_lines = []
        change_lines.extend(f"- [+ ADDED] {path}" for path in report.added)
        change_lines.extend(f"- [- REMOVED] {path}" for path in report.removed)
        change_lines.extend(f"- [~ RELOCATED] {line}" for line in report.relocated)
        change_lines.extend(f"- [! ANOMALY] {message}" for message in report.anomalies)

        return REPORT_PROMPT_TEMPLATE.format(
            first_file=report.first_file or "n/a",
            second_file=report.second_file or "n/a",
            shared=diff.shared_count,
            removed=diff.removed_count,
            added=diff.added_count,
            relocated=diff.relocated_count,
            anomalies=len(report.anomalies),
            changes="\n".join(change_lines) if change_lines else "No changes",
        )


def generate_report(
    diff: StepDiffResult,
    api_key: str = None,
    config: Config = None,
) -> DiffReport:
    """
    Convenience function to generate an LLM-written change report.

    Example:
        diff = run_diff(first_data, second_data)
        report = generate_report(diff)
        print(report.to_markdown())
    """
    generator = DiffReportGenerator(api_key=api_key, config=config)
    return generator.generate(diff)
