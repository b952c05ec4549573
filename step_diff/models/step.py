"""STEP AP242 record models.

Flat, immutable records as delivered by the native STEP reader. Ids are
file-local: two files may reuse the same numbers for unrelated entities.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _get(data: Dict[str, Any], *keys, default=None):
    """Return the first present key (snake_case or camelCase spelling)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Part:
    """
    A product definition (PD) found in a STEP file.

    Attributes:
        id: PD entity id in the STEP file (file-local)
        kind: STEP entity type, e.g. "PD"
        name: PD.PDF.P.name display label
        representation_kind: Geometric representation entity type,
            e.g. "Shape_Representation"
    """
    id: int
    kind: str = ""
    name: str = ""
    representation_kind: str = ""

    @property
    def description(self) -> str:
        """Reduced description, e.g. "PD#12 'Spider'"."""
        return f"{self.kind}#{self.id} '{self.name}'"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "kind": self.kind,
            "name": self.name,
            "representationKind": self.representation_kind,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Part":
        return cls(
            id=int(_get(data, "id", "stepId", "step_id")),
            kind=str(_get(data, "kind", "type", default="")),
            name=str(_get(data, "name", default="")),
            representation_kind=str(_get(
                data, "representation_kind", "representationKind",
                "representation_type", "representationType", default="",
            )),
        )


@dataclass(frozen=True)
class Relation:
    """
    An assembly usage relation (NAUO) between two parts.

    Attributes:
        label: NAUO.id, e.g. "Spider1:1"
        parent_part_id: Part.id of the relating (parent) part
        child_part_id: Part.id of the related (child) part
        raw_id: NAUO entity id in the STEP file (file-local)
        relation_kind: STEP entity type, e.g. "NAUO"
        name: NAUO.name (often empty)
    """
    label: str
    parent_part_id: int
    child_part_id: int
    raw_id: int = 0
    relation_kind: str = ""
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "label": self.label,
            "parentPartId": self.parent_part_id,
            "childPartId": self.child_part_id,
            "rawId": self.raw_id,
            "relationKind": self.relation_kind,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Relation":
        return cls(
            label=str(_get(data, "label", "id", default="")),
            parent_part_id=int(_get(
                data, "parent_part_id", "parentPartId", "relating_id", "relatingId",
            )),
            child_part_id=int(_get(
                data, "child_part_id", "childPartId", "related_id", "relatedId",
            )),
            raw_id=int(_get(data, "raw_id", "rawId", "stepId", "step_id", default=0)),
            relation_kind=str(_get(data, "relation_kind", "relationKind", "type", default="")),
            name=str(_get(data, "name", default="")),
        )


@dataclass(frozen=True)
class StepFileHeader:
    """
    STEP file HEADER section.

    Mirrors FILE_DESCRIPTION, FILE_NAME and FILE_SCHEMA. STEP spells the
    last FILE_NAME field "authorisation"; both spellings are read.
    """
    file_path: str = ""
    name: str = ""
    description: str = ""
    implementation_level: str = ""
    time_stamp: str = ""
    author: str = ""
    organization: str = ""
    preprocessor_version: str = ""
    originating_system: str = ""
    authorization: str = ""
    file_schema: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "filePath": self.file_path,
            "name": self.name,
            "description": self.description,
            "implementationLevel": self.implementation_level,
            "timeStamp": self.time_stamp,
            "author": self.author,
            "organization": self.organization,
            "preprocessorVersion": self.preprocessor_version,
            "originatingSystem": self.originating_system,
            "authorization": self.authorization,
            "fileSchema": self.file_schema,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepFileHeader":
        return cls(
            file_path=str(_get(data, "file_path", "filePath", default="")),
            name=str(_get(data, "name", default="")),
            description=str(_get(data, "description", default="")),
            implementation_level=str(_get(
                data, "implementation_level", "implementationLevel", default="",
            )),
            time_stamp=str(_get(data, "time_stamp", "timeStamp", default="")),
            author=str(_get(data, "author", default="")),
            organization=str(_get(data, "organization", default="")),
            preprocessor_version=str(_get(
                data, "preprocessor_version", "preprocessorVersion", default="",
            )),
            originating_system=str(_get(
                data, "originating_system", "originatingSystem", default="",
            )),
            authorization=str(_get(data, "authorization", "authorisation", default="")),
            file_schema=str(_get(data, "file_schema", "fileSchema", default="")),
        )


@dataclass
class StepFileData:
    """
    The records extracted from one STEP file.

    Attributes:
        parts: Parts in file order
        relations: Relations in file order
        header: HEADER section, if the reader provided one
    """
    parts: List[Part] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    header: Optional[StepFileHeader] = None

    @property
    def is_empty(self) -> bool:
        return not self.parts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "header": self.header.to_dict() if self.header else None,
            "parts": [p.to_dict() for p in self.parts],
            "relations": [r.to_dict() for r in self.relations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepFileData":
        header = data.get("header")
        return cls(
            parts=[Part.from_dict(p) for p in data.get("parts", [])],
            relations=[Relation.from_dict(r) for r in data.get("relations", [])],
            header=StepFileHeader.from_dict(header) if header else None,
        )
