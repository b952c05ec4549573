"""File I/O utilities.

Loads JSON dumps of records already extracted from a STEP file. Reading
the STEP file itself is the native reader's job.
"""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ..models.step import StepFileData, StepFileHeader


def load_json_robust(filepath: Union[str, Path]) -> Tuple[Optional[Dict], Optional[str]]:
    """
    Read one record dump.

    STEP exporters on Windows prefix their dumps with a UTF-8 BOM, and older
    CAD tools write part names in latin-1. Both load; anything else that is
    not JSON comes back as an error string.

    Returns:
        (data, None) on success, (None, error) otherwise
    """
    path = Path(filepath)
    if not path.is_file():
        return None, f"File not found: {path}"

    try:
        raw = path.read_bytes()
    except OSError as e:
        return None, f"Cannot read {path}: {e.strerror or e}"

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = raw.decode("latin-1")

    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        return None, f"JSON error in {path.name}: {e.msg} (line {e.lineno})"


def parse_step_data(data: Dict[str, Any]) -> Tuple[Optional[StepFileData], Optional[str]]:
    """
    Parse a record dump into StepFileData.

    Expected layout:
        {"header": {...}, "parts": [...], "relations": [...]}

    Returns:
        Tuple of (step_data, error), same convention as load_json_robust
    """
    if not isinstance(data, dict):
        return None, "Record dump must be a JSON object"
    try:
        return StepFileData.from_dict(data), None
    except (KeyError, TypeError, ValueError) as e:
        return None, f"Invalid record: {str(e)[:100]}"


def load_step_data(filepath: Union[str, Path]) -> Tuple[Optional[StepFileData], Optional[str]]:
    """
    Load the records of one STEP file from a JSON dump.

    The header's file path defaults to the dump's path when missing.

    Example:
        data, err = load_step_data("assembly_v1.json")
        if err:
            print(f"Failed to load: {err}")
        else:
            print(f"{len(data.parts)} parts, {len(data.relations)} relations")
    """
    raw, err = load_json_robust(filepath)
    if err:
        return None, err

    step_data, err = parse_step_data(raw)
    if err:
        return None, f"{filepath}: {err}"

    if step_data.header is None:
        step_data.header = StepFileHeader(file_path=str(filepath))
    elif not step_data.header.file_path:
        step_data.header = replace(step_data.header, file_path=str(filepath))

    return step_data, None
