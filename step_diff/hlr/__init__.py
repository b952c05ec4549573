"""High-level representation (HLR): signatures and tree building."""

from .signature import (
    OwnKeyFunction,
    SiblingCounter,
    SignatureFactory,
    make_key_function,
    compute_signature,
)
from .builder import HighLevelRepresentationBuilder, build_tree

__all__ = [
    "OwnKeyFunction",
    "SiblingCounter",
    "SignatureFactory",
    "make_key_function",
    "compute_signature",
    "HighLevelRepresentationBuilder",
    "build_tree",
]
