"""
Configuration for the STEP assembly diff.

All settings centralized here. Override by creating a Config instance
with custom values.

Usage:
    from step_diff.config import Config, default_config

    # Use defaults
    print(default_config.signature_fields)  # ('name', 'representation_kind')

    # Override for a run
    my_config = Config(detect_relocations=False, root_assembly_name="step_assembly")
"""

from dataclasses import dataclass
from typing import Tuple


# Fields a node's own signature key may be built from
SIGNATURE_FIELDS = ("name", "kind", "representation_kind", "relation_kind")


@dataclass
class Config:
    """
    Central configuration for tree building, comparison and reporting.

    Create a new instance to override any setting.
    """

    # === Signature ===
    signature_fields: Tuple[str, ...] = ("name", "representation_kind")
    signature_field_separator: str = ":"
    occurrence_format: str = "{key}[{count}]"  # 2nd, 3rd... sibling with the same key
    signature_separator: str = "/"  # Display only, signatures are tuples

    # === Tree Builder ===
    root_assembly_name: str = ""  # Prefix of every instance path when set

    # === Comparison ===
    detect_relocations: bool = True

    # === Report ===
    report_model_id: str = "gpt-4o-mini"
    report_max_tokens: int = 1500
    report_temperature: float = 0.2
    report_max_listed_nodes: int = 200  # Tree listing in the template report

    # === Output Files ===
    diff_output_file: str = "StepDiffResult.json"
    report_output_file: str = "StepDiffReport.md"

    def __post_init__(self):
        self.signature_fields = tuple(self.signature_fields)
        if not self.signature_fields:
            raise ValueError("signature_fields must name at least one field")
        unknown = [f for f in self.signature_fields if f not in SIGNATURE_FIELDS]
        if unknown:
            raise ValueError(
                f"Unknown signature field(s) {unknown}; expected any of {SIGNATURE_FIELDS}"
            )


# Default configuration instance
default_config = Config()
