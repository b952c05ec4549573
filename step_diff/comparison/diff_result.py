"""Diff result structure for STEP file vs STEP file comparison.

The StepDiffResult is the core output of a comparison, showing:
- What is shared (same signature in both files)
- What was removed (first file only)
- What was added (second file only)
- What moved (relocated in the second file)
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..config import Config, default_config
from ..models.assembly import AssemblyNode, BuildAnomaly
from ..models.step import StepFileHeader
from .matcher import DiffKind, DiffNode, TreeComparator


@dataclass
class StepDiffResult:
    """
    Complete comparison result between two STEP files.

    Attributes:
        nodes: Merged DiffNodes in pre-order
        first_header: HEADER of the first file (None when nothing was compared)
        second_header: HEADER of the second file
        first_anomalies: Tree builder diagnostics for the first file
        second_anomalies: Tree builder diagnostics for the second file
        compared_at: ISO timestamp
        signature_separator: Joins signature segments in to_dict()
    """
    nodes: List[DiffNode] = field(default_factory=list)
    first_header: Optional[StepFileHeader] = None
    second_header: Optional[StepFileHeader] = None
    first_anomalies: List[BuildAnomaly] = field(default_factory=list)
    second_anomalies: List[BuildAnomaly] = field(default_factory=list)
    compared_at: str = ""
    signature_separator: str = "/"

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def summary(self) -> Dict[str, int]:
        """Node count per classification."""
        counts = {kind.value: 0 for kind in DiffKind}
        for node in self.nodes:
            counts[node.kind.value] += 1
        return counts

    def nodes_of(self, kind: DiffKind) -> List[DiffNode]:
        return [n for n in self.nodes if n.kind == kind]

    @property
    def shared_count(self) -> int:
        return self.summary[DiffKind.BOTH.value]

    @property
    def removed_count(self) -> int:
        return self.summary[DiffKind.FIRST_ONLY.value]

    @property
    def added_count(self) -> int:
        return self.summary[DiffKind.SECOND_ONLY.value]

    @property
    def relocated_count(self) -> int:
        return self.summary[DiffKind.SECOND_RELOCATED.value]

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def identical(self) -> bool:
        """Both files produced the same tree."""
        return bool(self.nodes) and all(n.kind == DiffKind.BOTH for n in self.nodes)

    @property
    def no_common_root(self) -> bool:
        """No root assembly is shared, the files look completely different."""
        roots = [n for n in self.nodes if n.parent_local_id == 0]
        return bool(roots) and not any(n.kind == DiffKind.BOTH for n in roots)

    @property
    def anomalies(self) -> List[BuildAnomaly]:
        return self.first_anomalies + self.second_anomalies

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "comparedAt": self.compared_at,
            "firstHeader": self.first_header.to_dict() if self.first_header else None,
            "secondHeader": self.second_header.to_dict() if self.second_header else None,
            "summary": self.summary,
            "identical": self.identical,
            "noCommonRoot": self.no_common_root,
            "nodes": [n.to_dict(self.signature_separator) for n in self.nodes],
            "firstAnomalies": [a.to_dict() for a in self.first_anomalies],
            "secondAnomalies": [a.to_dict() for a in self.second_anomalies],
        }

    def save(self, output_dir: str, config: Config = None) -> str:
        """Write the result as JSON into output_dir, returns the file path."""
        config = config or default_config
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, config.diff_output_file)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return path


def compare_trees(
    first: Sequence[AssemblyNode],
    second: Sequence[AssemblyNode],
    first_header: Optional[StepFileHeader] = None,
    second_header: Optional[StepFileHeader] = None,
    config: Config = None,
) -> StepDiffResult:
    """
    Compare two built assembly trees.

    Anomalies are picked up from the trees when they are AssemblyTree
    instances.

    Args:
        first: First-file tree (pre-order)
        second: Second-file tree (pre-order)
        first_header: Optional HEADER of the first file
        second_header: Optional HEADER of the second file
        config: Configuration (uses default if None)

    Returns:
        StepDiffResult with the merged, classified nodes

    Example:
        first = build_tree(a.parts, a.relations)
        second = build_tree(b.parts, b.relations)

        diff = compare_trees(first, second)
        print(f"Added: {diff.added_count}, removed: {diff.removed_count}")
    """
    comparator = TreeComparator(config)
    return StepDiffResult(
        nodes=comparator.compare(first, second),
        first_header=first_header,
        second_header=second_header,
        first_anomalies=list(getattr(first, "anomalies", [])),
        second_anomalies=list(getattr(second, "anomalies", [])),
        compared_at=datetime.now().isoformat() + "Z",
        signature_separator=comparator.config.signature_separator,
    )
