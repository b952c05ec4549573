"""Structural signatures for assembly tree nodes.

A signature identifies a node occurrence by its position in the tree:

    ("Car:Shape_Representation", "Wheel:Shape_Representation[2]")

Each segment is the node's own key (name and representation kind by
default) and the tuple is the path from the tree root. Part.id and
Relation.raw_id never take part in it: they are only valid inside one
file, and two files exported separately routinely reuse the same numbers
for unrelated parts.

Siblings that share an own key get an occurrence counter from the second
one onwards ("Bolt:SR", "Bolt:SR[2]", "Bolt:SR[3]") so they stay distinct.
A counted segment is never reused within a group, even when a sibling is
literally named like one.
"""

from collections import Counter
from typing import Callable, Optional, Sequence

from ..config import Config, default_config
from ..models.assembly import Signature
from ..models.step import Part, Relation


# (part, relation attaching it, or None for a root) -> own key
OwnKeyFunction = Callable[[Part, Optional[Relation]], str]


def make_key_function(
    fields: Sequence[str],
    separator: str = ":",
) -> OwnKeyFunction:
    """
    Build an own-key function folding the given fields.

    Args:
        fields: Any of "name", "kind", "representation_kind", "relation_kind"
        separator: Joins the field values

    Returns:
        Function mapping (part, relation) to the own key string
    """
    fields = tuple(fields)

    def own_key(part: Part, relation: Optional[Relation]) -> str:
        values = []
        for f in fields:
            if f == "name":
                values.append(part.name)
            elif f == "kind":
                values.append(part.kind)
            elif f == "representation_kind":
                values.append(part.representation_kind)
            elif f == "relation_kind":
                values.append(relation.relation_kind if relation else "")
            else:
                raise ValueError(f"Unknown signature field: {f!r}")
        return separator.join(values)

    return own_key


class SiblingCounter:
    """Counts own keys within one sibling group and remembers the segments handed out."""

    def __init__(self):
        self._seen = Counter()
        self._used = set()

    def next_occurrence(self, key: str) -> int:
        """Return 1 for the first sibling with this key, 2 for the next..."""
        self._seen[key] += 1
        return self._seen[key]

    def claim(self, key: str, format_segment: Callable[[str, int], str]) -> str:
        """
        Segment for the next sibling with this key.

        A name may already look like a counted segment ("Bolt[2]"), so the
        counter is bumped until the segment is unused in this group.
        """
        while True:
            segment = format_segment(key, self.next_occurrence(key))
            if segment not in self._used:
                self._used.add(segment)
                return segment


class SignatureFactory:
    """
    Compute node signatures with a pluggable own-key function.

    Usage:
        factory = SignatureFactory()
        root_sig = factory.signature((), car_part, None)
        wheel_sig = factory.signature(root_sig, wheel_part, wheel_relation)
    """

    def __init__(
        self,
        config: Config = None,
        key_fn: Optional[OwnKeyFunction] = None,
    ):
        """
        Args:
            config: Configuration (uses default if None)
            key_fn: Custom own-key function, overrides config.signature_fields
        """
        self.config = config or default_config
        self.key_fn = key_fn or make_key_function(
            self.config.signature_fields,
            self.config.signature_field_separator,
        )

    def own_key(self, part: Part, relation: Optional[Relation] = None) -> str:
        return self.key_fn(part, relation)

    def segment(self, key: str, occurrence: int = 1) -> str:
        """Own key with the occurrence counter applied."""
        if occurrence <= 1:
            return key
        return self.config.occurrence_format.format(key=key, count=occurrence)

    def signature(
        self,
        ancestor_signature: Signature,
        part: Part,
        relation: Optional[Relation] = None,
        occurrence: int = 1,
    ) -> Signature:
        """Extend the ancestor signature with this node's segment."""
        segment = self.segment(self.own_key(part, relation), occurrence)
        return tuple(ancestor_signature) + (segment,)


def compute_signature(
    ancestor_signature: Signature,
    part: Part,
    relation: Optional[Relation] = None,
    occurrence: int = 1,
    config: Config = None,
) -> Signature:
    """
    Convenience function computing one signature with the configured key.

    Example:
        sig = compute_signature((), Part(1, "PD", "Spider", "Shape_Representation"))
        # ('Spider:Shape_Representation',)
    """
    return SignatureFactory(config).signature(ancestor_signature, part, relation, occurrence)
