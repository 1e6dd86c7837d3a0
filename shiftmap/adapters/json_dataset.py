"""
adapters/json_dataset.py
──────────────────────────────────────────────────────────────────────────────
Reads batch inputs and writes batch outputs as JSON files.

Input:  a JSON array of raw activity strings, e.g. ["mopping aisle 4", ...]
Output: a JSON array of verdict records, one per input, in input order.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from shiftmap.domain.exceptions import DatasetError

logger = logging.getLogger(__name__)


def parse_inputs(raw: str, source: str = "<input>") -> list[str]:
    """Parse a JSON array of strings.

    Raises:
        DatasetError: If the text is not JSON or not an array of strings.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DatasetError(f"{source} is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise DatasetError(
            f"{source} must contain a JSON array, got {type(data).__name__}"
        )
    bad = [i for i, item in enumerate(data) if not isinstance(item, str)]
    if bad:
        raise DatasetError(
            f"{source} must contain only strings; non-string items at index {bad[:10]}"
        )
    return data


def parse_input_bytes(data: bytes, source: str = "<input>") -> list[str]:
    """Decode UTF-8 bytes (a leading BOM is tolerated) and parse them."""
    try:
        raw = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DatasetError(f"{source} is not UTF-8 text: {exc}") from exc
    return parse_inputs(raw, source=source)


def load_inputs(path: Path) -> list[str]:
    """Load the input dataset from ``path``.

    Raises:
        DatasetError: If the file is missing, unreadable or malformed.
    """
    if not path.exists():
        raise DatasetError(f"File not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DatasetError(f"Cannot read {path}: {exc}") from exc
    inputs = parse_input_bytes(data, source=str(path))
    logger.info("Loaded %d inputs from %s", len(inputs), path)
    return inputs


def dump_records(records: list[dict]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False)


def write_records(path: Path, records: list[dict]) -> None:
    """Write verdict records to ``path``, creating parent directories.

    Raises:
        DatasetError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_records(records) + "\n", encoding="utf-8")
    except OSError as exc:
        raise DatasetError(f"Cannot write {path}: {exc}") from exc
    logger.info("Wrote %d records to %s", len(records), path)

