"""High-level representation (HLR) builder.

Turns the flat Part/Relation records of one STEP file into an ordered,
parent-indexed forest:

1. Index parts by id and group relations by parent id (file order kept)
2. Parts that are never the child of a valid relation are roots
3. Walk depth-first from each root, assigning local ids in pre-order and
   deriving each signature from the parent's signature

Each part can appear many times: once per relation using it, and again
every time the assembly that uses it is itself reused.

Bad records never raise. Relations pointing at unknown parts are dropped,
descents that would loop are cut at the repeated part, and everything is
recorded as a BuildAnomaly for the caller to surface.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import Config, default_config
from ..models.assembly import (
    ROOT_PARENT_ID,
    AnomalyKind,
    AssemblyNode,
    AssemblyTree,
    BuildAnomaly,
)
from ..models.step import Part, Relation, StepFileData
from .signature import OwnKeyFunction, SiblingCounter, SignatureFactory

logger = logging.getLogger(__name__)


def instance_name_for(part: Part, relation: Optional[Relation]) -> str:
    """Part name, qualified by the relation label when there is one."""
    label = relation.label if relation else ""
    if not label or not label.strip():
        return part.name
    return f"{part.name} ({label})"


def instance_path_for(parent_path: str, instance_name: str) -> str:
    if not parent_path or not parent_path.strip():
        return instance_name
    return f"{parent_path}.{instance_name}"


class HighLevelRepresentationBuilder:
    """
    Build an AssemblyTree from flat STEP records.

    Every call builds from scratch. Anomalies of the last build are also
    kept as `last_anomalies` for callers that only keep the node list.

    Usage:
        builder = HighLevelRepresentationBuilder()
        tree = builder.build(parts, relations)

        for node in tree:
            print(node.local_id, node.parent_local_id, node.instance_path)
    """

    def __init__(
        self,
        config: Config = None,
        key_fn: Optional[OwnKeyFunction] = None,
    ):
        """
        Args:
            config: Configuration (uses default if None)
            key_fn: Custom own-key function for signatures
        """
        self.config = config or default_config
        self.signatures = SignatureFactory(self.config, key_fn)
        self.last_anomalies: List[BuildAnomaly] = []

    def build(
        self,
        parts: Sequence[Part],
        relations: Sequence[Relation],
    ) -> AssemblyTree:
        """
        Build the pre-order forest for one file.

        Args:
            parts: Parts in file order
            relations: Relations in file order

        Returns:
            AssemblyTree with local ids 1..N and recorded anomalies
        """
        anomalies: List[BuildAnomaly] = []
        part_by_id = self._index_parts(parts or [], anomalies)
        children = self._index_children(relations or [], part_by_id, anomalies)

        # Parts used as a child of at least one valid relation
        related = {
            relation.child_part_id
            for group in children.values()
            for _, relation in group
        }

        nodes: List[AssemblyNode] = []
        placed = set()
        root_counter = SiblingCounter()

        for part in part_by_id.values():
            if part.id not in related:
                self._add_subtree(part, children, nodes, placed, root_counter, anomalies)

        # Parts only reachable through a cycle have no root; promote them
        for part in part_by_id.values():
            if part.id not in placed:
                anomalies.append(BuildAnomaly(
                    kind=AnomalyKind.UNREACHABLE,
                    message=f"{part.description} is only reachable through a cycle, promoted to root",
                    part_id=part.id,
                ))
                logger.warning("HLR: %s is only reachable through a cycle, promoted to root",
                               part.description)
                self._add_subtree(part, children, nodes, placed, root_counter, anomalies)

        self.last_anomalies = anomalies
        logger.debug("HLR: built %d nodes from %d parts and %d relations (%d anomalies)",
                     len(nodes), len(part_by_id), len(relations or []), len(anomalies))
        return AssemblyTree(nodes=nodes, anomalies=anomalies)

    def build_from_data(self, data: Optional[StepFileData]) -> AssemblyTree:
        """Build from a StepFileData record set (None builds an empty tree)."""
        if data is None:
            return self.build([], [])
        return self.build(data.parts, data.relations)

    def _index_parts(
        self,
        parts: Sequence[Part],
        anomalies: List[BuildAnomaly],
    ) -> Dict[int, Part]:
        part_by_id: Dict[int, Part] = {}
        for part in parts:
            if part.id in part_by_id:
                anomalies.append(BuildAnomaly(
                    kind=AnomalyKind.DUPLICATE_PART,
                    message=f"Part id {part.id} defined twice, keeping {part_by_id[part.id].description}",
                    part_id=part.id,
                ))
                logger.warning("HLR: duplicate part id %d, keeping the first definition", part.id)
                continue
            part_by_id[part.id] = part
        return part_by_id

    def _index_children(
        self,
        relations: Sequence[Relation],
        part_by_id: Dict[int, Part],
        anomalies: List[BuildAnomaly],
    ) -> Dict[int, List[Tuple[Part, Relation]]]:
        children: Dict[int, List[Tuple[Part, Relation]]] = {}
        for relation in relations:
            if relation.parent_part_id not in part_by_id:
                anomalies.append(BuildAnomaly(
                    kind=AnomalyKind.DANGLING_PARENT,
                    message=(f"Relation '{relation.label}' references unknown parent part "
                             f"{relation.parent_part_id}"),
                    part_id=relation.parent_part_id,
                    relation_raw_id=relation.raw_id,
                ))
                logger.warning("HLR: relation %s dropped, unknown parent part %d",
                               relation.raw_id, relation.parent_part_id)
                continue
            if relation.child_part_id not in part_by_id:
                anomalies.append(BuildAnomaly(
                    kind=AnomalyKind.DANGLING_CHILD,
                    message=(f"Relation '{relation.label}' references unknown child part "
                             f"{relation.child_part_id}"),
                    part_id=relation.child_part_id,
                    relation_raw_id=relation.raw_id,
                ))
                logger.warning("HLR: relation %s dropped, unknown child part %d",
                               relation.raw_id, relation.child_part_id)
                continue
            children.setdefault(relation.parent_part_id, []).append(
                (part_by_id[relation.child_part_id], relation)
            )
        return children

    def _add_subtree(
        self,
        root: Part,
        children: Dict[int, List[Tuple[Part, Relation]]],
        nodes: List[AssemblyNode],
        placed: set,
        root_counter: SiblingCounter,
        anomalies: List[BuildAnomaly],
    ) -> None:
        """Append `root` and its descendants to `nodes` in pre-order."""
        key = self.signatures.own_key(root, None)
        root_signature = (root_counter.claim(key, self.signatures.segment),)

        # (part, relation, parent local id, own key, signature, parent instance path, ancestor part ids)
        stack = [(root, None, ROOT_PARENT_ID, key, root_signature, self.config.root_assembly_name, ())]

        while stack:
            part, relation, parent_id, key, signature, parent_path, ancestors = stack.pop()

            instance_name = instance_name_for(part, relation)
            node = AssemblyNode(
                local_id=len(nodes) + 1,
                parent_local_id=parent_id,
                part=part,
                relation=relation,
                signature=signature,
                own_key=key,
                depth=len(ancestors),
                instance_name=instance_name,
                instance_path=instance_path_for(parent_path, instance_name),
            )
            nodes.append(node)
            placed.add(part.id)

            path = ancestors + (part.id,)
            counter = SiblingCounter()
            pending = []
            for child, child_relation in children.get(part.id, []):
                if child.id in path:
                    anomalies.append(BuildAnomaly(
                        kind=AnomalyKind.CYCLE,
                        message=(f"Relation '{child_relation.label}' would revisit "
                                 f"{child.description} below {node.instance_path}, descent truncated"),
                        part_id=child.id,
                        relation_raw_id=child_relation.raw_id,
                    ))
                    logger.warning("HLR: cycle through %s at %s, descent truncated",
                                   child.description, node.instance_path)
                    continue
                child_key = self.signatures.own_key(child, child_relation)
                child_signature = signature + (
                    counter.claim(child_key, self.signatures.segment),
                )
                pending.append((child, child_relation, node.local_id, child_key, child_signature,
                                node.instance_path, path))

            # Reversed so the first child is popped first
            stack.extend(reversed(pending))


def build_tree(
    parts: Sequence[Part],
    relations: Sequence[Relation],
    config: Config = None,
    key_fn: Optional[OwnKeyFunction] = None,
) -> AssemblyTree:
    """
    Convenience function to build one HLR tree.

    Example:
        tree = build_tree(data.parts, data.relations)
        print(f"{len(tree)} nodes, {len(tree.anomalies)} anomalies")
    """
    return HighLevelRepresentationBuilder(config, key_fn).build(parts, relations)
