"""High-level representation (HLR) models.

An AssemblyTree is a flattened forest: nodes in pre-order, each pointing
to its parent through (local_id, parent_local_id). This is the layout the
tree grid expects and it keeps renumbering during a merge trivial.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .step import Part, Relation


# Structural identity key: one segment per level from the tree root
Signature = Tuple[str, ...]

ROOT_PARENT_ID = 0


def format_signature(signature: Signature, separator: str = "/") -> str:
    """Render a signature for display, e.g. "Car:SR/Wheel:SR[2]"."""
    return separator.join(signature)


@dataclass(frozen=True)
class AssemblyNode:
    """
    One occurrence of a part in the assembly tree (immutable).

    A part used by several relations (reused sub-assembly) produces one
    node per occurrence, each with its own signature.

    Attributes:
        local_id: Sequential id, unique within one built tree (1..N)
        parent_local_id: local_id of the parent, 0 for a root
        part: The part definition
        relation: The relation attaching this occurrence to its parent
            (None for a root)
        signature: Structural identity key, independent of file ids
        own_key: This node's key without the sibling occurrence counter
        depth: 0 for roots
        instance_name: Part name, plus the relation label when there is one
        instance_path: Dot-joined instance names from the root
        mapping_resolved: Mapping state when the tree was built, never set
            by the diff (merged nodes track their own flag)
    """
    local_id: int
    parent_local_id: int
    part: Part
    relation: Optional[Relation]
    signature: Signature
    own_key: str = ""
    depth: int = 0
    instance_name: str = ""
    instance_path: str = ""
    mapping_resolved: bool = False

    @property
    def name(self) -> str:
        return self.part.name

    @property
    def kind(self) -> str:
        return self.part.kind

    @property
    def representation_kind(self) -> str:
        return self.part.representation_kind

    @property
    def step_id(self) -> int:
        """File-local Part.id. Payload only, never a key."""
        return self.part.id

    @property
    def relation_label(self) -> str:
        return self.relation.label if self.relation else ""

    @property
    def relation_id(self) -> str:
        return str(self.relation.raw_id) if self.relation else ""

    @property
    def description(self) -> str:
        return self.part.description

    @property
    def is_root(self) -> bool:
        return self.parent_local_id == ROOT_PARENT_ID

    @property
    def segment(self) -> str:
        """Last signature segment: own key plus occurrence counter."""
        return self.signature[-1]

    @property
    def parent_signature(self) -> Signature:
        return self.signature[:-1]

    def signature_text(self, separator: str = "/") -> str:
        return format_signature(self.signature, separator)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "localId": self.local_id,
            "parentLocalId": self.parent_local_id,
            "signature": list(self.signature),
            "ownKey": self.own_key,
            "depth": self.depth,
            "instanceName": self.instance_name,
            "instancePath": self.instance_path,
            "mappingResolved": self.mapping_resolved,
            "part": self.part.to_dict(),
            "relation": self.relation.to_dict() if self.relation else None,
        }


class AnomalyKind(Enum):
    """Non-fatal problems found while building a tree."""
    DANGLING_PARENT = "dangling_parent"  # Relation parent id is not a known part
    DANGLING_CHILD = "dangling_child"    # Relation child id is not a known part
    DUPLICATE_PART = "duplicate_part"    # Two parts share one id, first kept
    CYCLE = "cycle"                      # Descent truncated at a repeated ancestor
    UNREACHABLE = "unreachable"          # Part only reachable through a cycle, promoted to root


@dataclass(frozen=True)
class BuildAnomaly:
    """A diagnostic recorded by the tree builder."""
    kind: AnomalyKind
    message: str
    part_id: Optional[int] = None
    relation_raw_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.part_id is not None:
            d["partId"] = self.part_id
        if self.relation_raw_id is not None:
            d["relationRawId"] = self.relation_raw_id
        return d


@dataclass
class AssemblyTree:
    """
    Output of the tree builder.

    Attributes:
        nodes: AssemblyNodes in pre-order (parents before descendants)
        anomalies: Diagnostics recorded during the build
    """
    nodes: List[AssemblyNode] = field(default_factory=list)
    anomalies: List[BuildAnomaly] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[AssemblyNode]:
        return iter(self.nodes)

    def __getitem__(self, index: int) -> AssemblyNode:
        return self.nodes[index]

    def roots(self) -> List[AssemblyNode]:
        return [n for n in self.nodes if n.is_root]

    def children_of(self, local_id: int) -> List[AssemblyNode]:
        return [n for n in self.nodes if n.parent_local_id == local_id]

    def find_by_signature(self, signature: Signature) -> Optional[AssemblyNode]:
        signature = tuple(signature)
        for node in self.nodes:
            if node.signature == signature:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "anomalies": [a.to_dict() for a in self.anomalies],
        }
