from __future__ import annotations

import json
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from permitpoints.models import (
    ApplicantRecord,
    record_field_names,
    record_from_dict,
    snake_to_camel,
)


class RecordFormatError(ValueError):
    """Raised when an imported record is not a JSON object."""


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _best_effort_lockdown_file_permissions(path: Path) -> None:
    """
    Records hold passport numbers: on Unix, set 600. On Windows, no-op.
    """
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


def record_to_dict(record: ApplicantRecord) -> Dict[str, Any]:
    """External document shape: camelCase keys, enums as their string values."""
    out: Dict[str, Any] = {}
    for name in record_field_names():
        value = getattr(record, name)
        out[snake_to_camel(name)] = value.value if isinstance(value, Enum) else value
    return out


def dumps_record(record: ApplicantRecord) -> str:
    return json.dumps(record_to_dict(record), indent=2, ensure_ascii=False)


def loads_record(text: str) -> ApplicantRecord:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RecordFormatError(f"Record is not valid JSON: {exc.msg} (line {exc.lineno})") from None
    if not isinstance(data, dict):
        raise RecordFormatError(f"Record must be a JSON object, got {type(data).__name__}.")
    return record_from_dict(data)


_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\s]+')


def record_filename(record: ApplicantRecord) -> str:
    stem = _UNSAFE_FILENAME_CHARS.sub("_", record.chinese_name.strip()) or "applicant"
    return f"{stem}_assessment.json"


class JsonRecordStore:
    """
    Saved assessments as one JSON file per applicant.

    Layout:
      <base_dir>/
        <chinese_name>_assessment.json
        applicant_assessment.json   (when no name was filled in)
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def save(self, record: ApplicantRecord) -> Path:
        _ensure_dir(self.base_dir)
        path = self.base_dir / record_filename(record)
        path.write_text(dumps_record(record) + "\n", encoding="utf-8")
        _best_effort_lockdown_file_permissions(path)
        return path

    def load(self, path: Path) -> ApplicantRecord:
        p = Path(path)
        if not p.is_absolute() and not p.exists():
            p = self.base_dir / p
        return loads_record(p.read_text(encoding="utf-8"))


def default_store_dir() -> Path:
    return Path(".permitpoints")
