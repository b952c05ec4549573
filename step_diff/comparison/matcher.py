"""Align two assembly trees by signature.

Matching strategy:
1. Index every first-tree node by signature (pending table, pre-order)
2. Walk the second tree in pre-order:
   - same signature -> BOTH, the first-tree node keeps its identity
   - same own key but the first-tree occurrence has no counterpart at its
     own place in the second tree -> SECOND_RELOCATED
   - otherwise -> SECOND_ONLY
3. Whatever is still pending is FIRST_ONLY
4. Rebuild a merged tree (first-tree children before second-tree children
   under each parent) and renumber it in pre-order

Raw Part.id / Relation.raw_id values are never used as keys or output ids,
so two files reusing the same numbers cannot collide or falsely merge.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Deque, Dict, List, Optional, Sequence, Union

from ..config import Config, default_config
from ..models.assembly import ROOT_PARENT_ID, AssemblyNode, Signature, format_signature

logger = logging.getLogger(__name__)


class DiffKind(Enum):
    """Which file(s) a merged node comes from."""
    BOTH = "both"                          # Same signature in both files
    FIRST_ONLY = "first_only"              # Removed in the second file
    SECOND_ONLY = "second_only"            # Added in the second file
    SECOND_RELOCATED = "second_relocated"  # Moved to another place in the second file


@dataclass(frozen=True)
class Both:
    kind: ClassVar[DiffKind] = DiffKind.BOTH


@dataclass(frozen=True)
class FirstOnly:
    kind: ClassVar[DiffKind] = DiffKind.FIRST_ONLY


@dataclass(frozen=True)
class SecondOnly:
    kind: ClassVar[DiffKind] = DiffKind.SECOND_ONLY


@dataclass(frozen=True, eq=False)
class SecondRelocated:
    """
    Second-file occurrence of a node that sits elsewhere in the first file.

    Attributes:
        original: The matching first-tree node
    """
    original: AssemblyNode
    kind: ClassVar[DiffKind] = DiffKind.SECOND_RELOCATED

    def __post_init__(self):
        if self.original is None:
            raise ValueError("SecondRelocated requires the original first-tree node")


Classification = Union[Both, FirstOnly, SecondOnly, SecondRelocated]


@dataclass
class DiffNode:
    """
    One node of the merged tree.

    Attributes:
        local_id: Sequential id in the merged sequence
        parent_local_id: local_id of the merged parent, 0 for a root
        node: Source node (first-tree node for BOTH/FIRST_ONLY,
            second-tree node for SECOND_ONLY/SECOND_RELOCATED)
        classification: Both, FirstOnly, SecondOnly or SecondRelocated
        depth: Depth in the merged tree
        mapping_resolved: Set by the mapping collaborator on the merged
            node only; the source trees are never touched
    """
    local_id: int
    parent_local_id: int
    node: AssemblyNode
    classification: Classification
    depth: int = 0
    mapping_resolved: bool = False

    @property
    def kind(self) -> DiffKind:
        return self.classification.kind

    @property
    def original(self) -> Optional[AssemblyNode]:
        """First-tree node a relocated node was matched to."""
        if isinstance(self.classification, SecondRelocated):
            return self.classification.original
        return None

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def signature(self) -> Signature:
        return self.node.signature

    def to_dict(self, separator: str = "/") -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Args:
            separator: Joins signature segments (Config.signature_separator)
        """
        d = {
            "localId": self.local_id,
            "parentLocalId": self.parent_local_id,
            "status": self.kind.value,
            "depth": self.depth,
            "name": self.node.name,
            "signature": format_signature(self.node.signature, separator),
            "instancePath": self.node.instance_path,
            "description": self.node.description,
            "relationLabel": self.node.relation_label,
            "mappingResolved": self.mapping_resolved,
        }
        if self.original is not None:
            d["originalSignature"] = format_signature(self.original.signature, separator)
            d["originalInstancePath"] = self.original.instance_path
        return d


@dataclass(eq=False)
class _MergedEntry:
    """Working node of the merged tree before renumbering."""
    node: AssemblyNode
    classification: Classification
    children: List["_MergedEntry"] = field(default_factory=list)
    absorbed: bool = False  # First-tree node represented by a relocated entry


class TreeComparator:
    """
    Compare two pre-order assembly trees.

    Usage:
        comparator = TreeComparator()
        merged = comparator.compare(first_tree, second_tree)

        added = [n for n in merged if n.kind == DiffKind.SECOND_ONLY]
        removed = [n for n in merged if n.kind == DiffKind.FIRST_ONLY]
    """

    def __init__(
        self,
        config: Config = None,
        detect_relocations: Optional[bool] = None,
    ):
        """
        Args:
            config: Configuration (uses default if None)
            detect_relocations: Overrides config.detect_relocations
        """
        self.config = config or default_config
        if detect_relocations is None:
            detect_relocations = self.config.detect_relocations
        self.detect_relocations = detect_relocations

    def compare(
        self,
        first: Sequence[AssemblyNode],
        second: Sequence[AssemblyNode],
    ) -> List[DiffNode]:
        """
        Merge and classify two trees.

        Args:
            first: First-file nodes in pre-order (AssemblyTree or list)
            second: Second-file nodes in pre-order

        Returns:
            Merged DiffNodes in pre-order with fresh local ids
        """
        first_nodes = list(first or [])
        second_nodes = list(second or [])

        first_entries = [_MergedEntry(node, FirstOnly()) for node in first_nodes]

        # Pending table: signature -> index into first_nodes
        pending: Dict[Signature, int] = {}
        for i, node in enumerate(first_nodes):
            pending.setdefault(node.signature, i)

        relocation_candidates = self._relocation_candidates(first_nodes, second_nodes)

        # local_id -> merged entry standing for that node
        first_map: Dict[int, _MergedEntry] = {n.local_id: e for n, e in zip(first_nodes, first_entries)}
        second_map: Dict[int, _MergedEntry] = {}
        second_entries: List[_MergedEntry] = []

        for node in second_nodes:
            index = pending.pop(node.signature, None)
            if index is not None and first_nodes[index].parent_signature == node.parent_signature:
                entry = first_entries[index]
                entry.classification = Both()
                second_map[node.local_id] = entry
                continue

            if index is None:
                index = self._take_relocation_candidate(node, relocation_candidates)
                if index is not None:
                    pending.pop(first_nodes[index].signature, None)

            if index is not None:
                original = first_nodes[index]
                logger.debug("Step Diff: %s relocated from %s",
                             format_signature(node.signature, self.config.signature_separator),
                             format_signature(original.signature, self.config.signature_separator))
                entry = _MergedEntry(node, SecondRelocated(original))
                first_entries[index].absorbed = True
                first_map[original.local_id] = entry
            else:
                entry = _MergedEntry(node, SecondOnly())

            second_map[node.local_id] = entry
            second_entries.append(entry)

        roots: List[_MergedEntry] = []

        # First-tree content keeps its relative order ahead of second-tree additions
        for node, entry in zip(first_nodes, first_entries):
            if entry.absorbed:
                continue
            parent = first_map.get(node.parent_local_id)
            (parent.children if parent is not None else roots).append(entry)

        for entry in second_entries:
            parent = second_map.get(entry.node.parent_local_id)
            (parent.children if parent is not None else roots).append(entry)

        merged = self._flatten(roots)
        logger.debug("Step Diff: merged %d + %d nodes into %d",
                     len(first_nodes), len(second_nodes), len(merged))
        return merged

    def _relocation_candidates(
        self,
        first_nodes: List[AssemblyNode],
        second_nodes: List[AssemblyNode],
    ) -> Dict[str, Deque[int]]:
        """
        Group first-tree nodes that have no in-place counterpart by own key.

        A node whose signature also exists in the second tree will match in
        place, so it is never offered for relocation.
        """
        if not self.detect_relocations:
            return {}

        second_signatures = {n.signature for n in second_nodes}
        candidates: Dict[str, Deque[int]] = {}
        for i, node in enumerate(first_nodes):
            if node.signature not in second_signatures:
                candidates.setdefault(self._own_key(node), deque()).append(i)
        return candidates

    def _take_relocation_candidate(
        self,
        node: AssemblyNode,
        candidates: Dict[str, Deque[int]],
    ) -> Optional[int]:
        """Pop the earliest unclaimed first-tree node with the same own key."""
        queue = candidates.get(self._own_key(node))
        if queue:
            return queue.popleft()
        return None

    @staticmethod
    def _own_key(node: AssemblyNode) -> str:
        return node.own_key or node.segment

    @staticmethod
    def _flatten(roots: List[_MergedEntry]) -> List[DiffNode]:
        """
        Renumber the merged tree in pre-order.

        Every entry hangs from a root. A relocated entry only absorbs a node
        whose whole subtree is missing from the second tree, so parent links
        never loop.
        """
        merged: List[DiffNode] = []
        stack = [(root, ROOT_PARENT_ID, 0) for root in reversed(roots)]
        while stack:
            entry, parent_id, depth = stack.pop()
            diff_node = DiffNode(
                local_id=len(merged) + 1,
                parent_local_id=parent_id,
                node=entry.node,
                classification=entry.classification,
                depth=depth,
                mapping_resolved=entry.node.mapping_resolved,
            )
            merged.append(diff_node)
            stack.extend(
                (child, diff_node.local_id, depth + 1) for child in reversed(entry.children)
            )
        return merged
