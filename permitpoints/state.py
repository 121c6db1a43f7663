"""
permitpoints/state.py

The live assessment form as explicit, immutable state.

Every edit is an action; reduce(state, action) returns a new FormState and
never touches the old one. The score is not stored: FormState.score() is a
pure projection recomputed from the current record on every call.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Mapping, Optional, Tuple, Union

from permitpoints.dates import default_employment_range
from permitpoints.models import (
    CATEGORY_FIELDS,
    JOB_PRESETS,
    ApplicantRecord,
    DocumentFile,
    JobType,
    initial_record,
    resolve_field_name,
)
from permitpoints.scoring.engine import score
from permitpoints.scoring.salary import SalaryRules
from permitpoints.scoring.types import ScoreResult


class UnknownFieldError(KeyError):
    """Raised when an action names a field the applicant record does not have."""


@dataclass(frozen=True)
class FormState:
    record: ApplicantRecord = field(default_factory=initial_record)
    documents: Tuple[DocumentFile, ...] = ()

    def score(self, rules: Optional[SalaryRules] = None) -> ScoreResult:
        return score(self.record, rules)

    def source_document(self, category: str) -> Optional[DocumentFile]:
        """Document a category's evidence was taken from (None when unset or out of range)."""
        if category not in CATEGORY_FIELDS:
            raise UnknownFieldError(category)
        index = getattr(self.record, CATEGORY_FIELDS[category][2])
        if 0 <= index < len(self.documents):
            return self.documents[index]
        return None


# ------------------------------------------------------------------
# Actions
# ------------------------------------------------------------------

@dataclass(frozen=True)
class SetField:
    name: str
    value: Any


@dataclass(frozen=True)
class MergeExtraction:
    """Overlay a best-effort extraction result (any subset of record fields)."""
    fields: Mapping[str, Any]
    today: Optional[date] = None


@dataclass(frozen=True)
class ReplaceRecord:
    record: ApplicantRecord


@dataclass(frozen=True)
class Reset:
    today: Optional[date] = None


@dataclass(frozen=True)
class ToggleJobType:
    pass


@dataclass(frozen=True)
class AddDocuments:
    documents: Tuple[DocumentFile, ...]


@dataclass(frozen=True)
class RemoveDocument:
    name: str


Action = Union[SetField, MergeExtraction, ReplaceRecord, Reset, ToggleJobType, AddDocuments, RemoveDocument]


def _with_default_dates(record: ApplicantRecord, today: Optional[date]) -> ApplicantRecord:
    period = default_employment_range(today)
    return replace(record, employment_start=period.start, employment_end=period.end)


def _merge_extraction(record: ApplicantRecord, action: MergeExtraction) -> ApplicantRecord:
    changes = {}
    for key, value in action.fields.items():
        name = resolve_field_name(str(key))
        if name is None or value is None:
            continue
        changes[name] = value

    # The extractor may miss the salary; keep whatever the user already had
    if not str(changes.get("salary_amount", "") or "").strip():
        changes.pop("salary_amount", None)

    merged = record.with_changes(**changes)
    return _with_default_dates(merged, action.today)


def _toggle_job_type(record: ApplicantRecord) -> ApplicantRecord:
    target = JobType.CADRE if record.job_type == JobType.CHEF else JobType.CHEF
    preset = JOB_PRESETS[target]
    return replace(
        record,
        job_type=target,
        job_code=preset.job_code,
        job_title=preset.job_title,
        job_content=preset.job_content,
    )


def reduce(state: FormState, action: Action) -> FormState:
    if isinstance(action, SetField):
        name = resolve_field_name(action.name)
        if name is None:
            raise UnknownFieldError(action.name)
        return replace(state, record=state.record.with_changes(**{name: action.value}))

    if isinstance(action, MergeExtraction):
        return replace(state, record=_merge_extraction(state.record, action))

    if isinstance(action, ReplaceRecord):
        return replace(state, record=action.record)

    if isinstance(action, Reset):
        return FormState(record=_with_default_dates(initial_record(), action.today), documents=())

    if isinstance(action, ToggleJobType):
        return replace(state, record=_toggle_job_type(state.record))

    if isinstance(action, AddDocuments):
        return replace(state, documents=state.documents + tuple(action.documents))

    if isinstance(action, RemoveDocument):
        kept = tuple(d for d in state.documents if d.name != action.name)
        return replace(state, documents=kept)

    raise TypeError(f"Unsupported action: {type(action).__name__}")


def new_form(today: Optional[date] = None) -> FormState:
    """Blank form with the default employment period filled in."""
    return reduce(FormState(), Reset(today=today))
