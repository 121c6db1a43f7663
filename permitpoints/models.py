from __future__ import annotations

import base64
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

E = TypeVar("E", bound="LooseEnum")


class LooseEnum(str, Enum):
    """
    String enum with an UNKNOWN fallback arm.
    Values coming from forms, JSON files or the LLM are loosely typed;
    anything unrecognized parses to UNKNOWN instead of raising.
    """

    @classmethod
    def parse(cls: Type[E], value: Any) -> E:
        if isinstance(value, cls):
            return value
        raw = str(value).strip() if value is not None else ""
        for member in cls:
            if member.value == raw:
                return member
        # Be lenient about case ("bachelor", "GOV")
        lowered = raw.lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return cls["UNKNOWN"]


class EducationLevel(LooseEnum):
    DOCTORAL = "Doctoral"
    MASTER = "Master"
    BACHELOR = "Bachelor"
    ASSOCIATE = "Associate"
    HIGH_SCHOOL = "HighSchool"
    UNKNOWN = "Unknown"


class ChineseLevel(LooseEnum):
    FLUENT = "Fluent"              # TOCFL 5
    HIGH = "High"                  # TOCFL 4
    INTERMEDIATE = "Intermediate"  # TOCFL 3
    BASIC = "Basic"
    NONE = "None"
    UNKNOWN = "Unknown"


class Scholarship(LooseEnum):
    GOV = "Gov"
    SCHOOL = "School"
    NONE = "None"
    UNKNOWN = "Unknown"


class JobType(str, Enum):
    CHEF = "Chef"
    CADRE = "Cadre"


@dataclass(frozen=True)
class JobPreset:
    job_code: str
    job_title: str
    job_content: str


JOB_PRESETS: Dict[JobType, JobPreset] = {
    JobType.CHEF: JobPreset(job_code="512", job_title="廚藝人員", job_content="餐飲烹調"),
    JobType.CADRE: JobPreset(job_code="-", job_title="儲備幹部", job_content="餐飲服務國際化諮詢"),
}

NO_SOURCE_FILE = -1


@dataclass(frozen=True)
class ApplicantRecord:
    """
    The complete assessment form.
    Only the eight category inputs feed the score; identity, job and
    evidence fields are carried for the summary table and JSON export.
    """
    # Identity
    chinese_name: str = ""
    english_surname: str = ""
    english_given_name: str = ""
    gender: str = ""  # "M" | "F" | free text
    nationality: str = ""
    passport_number: str = ""
    date_of_birth: str = ""  # YYYY-MM-DD

    # Job
    job_type: JobType = JobType.CHEF
    job_code: str = JOB_PRESETS[JobType.CHEF].job_code
    job_title: str = JOB_PRESETS[JobType.CHEF].job_title
    job_content: str = JOB_PRESETS[JobType.CHEF].job_content
    employment_start: str = ""  # yyyy/MM/dd
    employment_end: str = ""

    # Scoring categories (+ evidence text and source file index each)
    education_level: EducationLevel = EducationLevel.BACHELOR
    education_evidence: str = ""
    education_file_index: int = NO_SOURCE_FILE

    salary_amount: str = "0"
    salary_reason: str = ""
    salary_file_index: int = NO_SOURCE_FILE

    experience_years: float = 0
    experience_evidence: str = ""
    experience_file_index: int = NO_SOURCE_FILE

    qualification_score: bool = False
    qualification_evidence: str = ""
    qualification_file_index: int = NO_SOURCE_FILE

    chinese_level: ChineseLevel = ChineseLevel.NONE
    chinese_evidence: str = ""
    chinese_file_index: int = NO_SOURCE_FILE

    foreign_language_count: int = 0
    foreign_language_evidence: str = ""
    foreign_language_file_index: int = NO_SOURCE_FILE

    policy_compliance: bool = False
    policy_evidence: str = ""
    policy_file_index: int = NO_SOURCE_FILE

    scholarship: Scholarship = Scholarship.NONE
    scholarship_evidence: str = ""
    scholarship_file_index: int = NO_SOURCE_FILE

    def with_changes(self, **changes: Any) -> "ApplicantRecord":
        """Return a copy with the given fields replaced (values coerced)."""
        coerced = {name: coerce_field(name, value) for name, value in changes.items()}
        return replace(self, **coerced)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.value if isinstance(value, Enum) else value
        return out


# Category name -> (value field, evidence field, file index field)
CATEGORY_FIELDS: Dict[str, tuple[str, str, str]] = {
    "education": ("education_level", "education_evidence", "education_file_index"),
    "salary": ("salary_amount", "salary_reason", "salary_file_index"),
    "experience": ("experience_years", "experience_evidence", "experience_file_index"),
    "qualification": ("qualification_score", "qualification_evidence", "qualification_file_index"),
    "chinese": ("chinese_level", "chinese_evidence", "chinese_file_index"),
    "languages": ("foreign_language_count", "foreign_language_evidence", "foreign_language_file_index"),
    "policy": ("policy_compliance", "policy_evidence", "policy_file_index"),
    "scholarship": ("scholarship", "scholarship_evidence", "scholarship_file_index"),
}


def initial_record() -> ApplicantRecord:
    return ApplicantRecord()


def record_field_names() -> tuple[str, ...]:
    return tuple(f.name for f in fields(ApplicantRecord))


# ------------------------------------------------------------------
# Field coercion
# ------------------------------------------------------------------

def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def _to_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        # nan, inf and 1e999 included
        return default


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        num = float(str(value).strip())
    except (TypeError, ValueError):
        return 0
    return int(num) if num.is_integer() else num


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_job_type(value: Any) -> JobType:
    if isinstance(value, JobType):
        return value
    try:
        return JobType(str(value).strip())
    except ValueError:
        return JobType.CHEF


_COERCERS = {
    "job_type": _to_job_type,
    "education_level": EducationLevel.parse,
    "chinese_level": ChineseLevel.parse,
    "scholarship": Scholarship.parse,
    "experience_years": _to_number,
    "foreign_language_count": _to_int,
    "qualification_score": _to_bool,
    "policy_compliance": _to_bool,
}


def coerce_field(name: str, value: Any) -> Any:
    """
    Coerce a loosely typed value to the type of ApplicantRecord.<name>.
    Raises KeyError for names the record does not have.
    """
    if name not in _FIELD_NAMES:
        raise KeyError(name)
    if name in _COERCERS:
        return _COERCERS[name](value)
    if name.endswith("_file_index"):
        return _to_int(value, default=NO_SOURCE_FILE)
    return _to_text(value)


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


def camel_to_snake(name: str) -> str:
    out = []
    for ch in name:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


_FIELD_NAMES = frozenset(f.name for f in fields(ApplicantRecord))
CAMEL_FIELD_NAMES: Dict[str, str] = {snake_to_camel(n): n for n in _FIELD_NAMES}


def resolve_field_name(key: str) -> Optional[str]:
    """Map a camelCase or snake_case key to a record field name (None if unknown)."""
    if key in _FIELD_NAMES:
        return key
    if key in CAMEL_FIELD_NAMES:
        return CAMEL_FIELD_NAMES[key]
    snake = camel_to_snake(key)
    return snake if snake in _FIELD_NAMES else None


def record_from_dict(data: Mapping[str, Any]) -> ApplicantRecord:
    """
    Build a record from a camelCase or snake_case mapping.
    Missing keys keep their initial-record defaults; unknown keys are ignored;
    values are coerced (unrecognized enum strings become UNKNOWN).
    """
    changes: Dict[str, Any] = {}
    for key, value in data.items():
        name = resolve_field_name(str(key))
        if name is None:
            continue
        changes[name] = value
    return initial_record().with_changes(**changes)


# ------------------------------------------------------------------
# Uploaded documents
# ------------------------------------------------------------------

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class DocumentFile:
    """One uploaded supporting document (passport scan, diploma, payslip, ...)."""
    name: str
    mime_type: str
    data: bytes

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data()}"
