from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from permitpoints.models import CATEGORY_FIELDS, ApplicantRecord, DocumentFile, EducationLevel
from permitpoints.scoring.salary import SalaryRules, effective_salary
from permitpoints.scoring.tables import PASS_THRESHOLD
from permitpoints.scoring.types import ScoreResult

EDUCATION_NOT_ELIGIBLE = "學歷不符"

# Education as entered on the permit application form (ISCED-style level codes)
_EDUCATION_GRADE_LABELS: Dict[EducationLevel, str] = {
    EducationLevel.DOCTORAL: "8",
    EducationLevel.MASTER: "7",
    EducationLevel.BACHELOR: "6",
    EducationLevel.ASSOCIATE: "5",
    EducationLevel.HIGH_SCHOOL: EDUCATION_NOT_ELIGIBLE,
}

CATEGORY_TITLES: Dict[str, str] = {
    "education": "Education",
    "salary": "Salary",
    "experience": "Work experience",
    "qualification": "Job qualification",
    "chinese": "Chinese proficiency",
    "languages": "Other languages",
    "policy": "Government policy programme",
    "scholarship": "Scholarship",
}


def education_grade_label(level: EducationLevel) -> str:
    return _EDUCATION_GRADE_LABELS.get(EducationLevel.parse(level), "")


def verdict(result: ScoreResult, threshold: int = PASS_THRESHOLD) -> str:
    return "Pass" if result.total >= threshold else "Fail"


def summary_row(record: ApplicantRecord, rules: Optional[SalaryRules] = None) -> Dict[str, str]:
    """
    The applicant summary table, one column per entry, in form order.
    The salary column shows the monthly base salary the salary points were
    scored on (net of the attendance bonus where the revision removes it),
    not the raw token.
    """
    base_salary = effective_salary(record.salary_amount, rules)
    return {
        "Chinese name": record.chinese_name,
        "Gender": record.gender,
        "Surname": record.english_surname,
        "Given name": record.english_given_name,
        "Nationality": record.nationality,
        "Passport": record.passport_number,
        "Date of birth": record.date_of_birth,
        "Education": education_grade_label(record.education_level),
        "Employment start": record.employment_start,
        "Employment end": record.employment_end,
        "Job code": record.job_code,
        "Job title": record.job_title,
        "Monthly base salary": f"{base_salary:,}",
        "Job content": record.job_content,
    }


def _category_value(record: ApplicantRecord, category: str) -> str:
    value = getattr(record, CATEGORY_FIELDS[category][0])
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(getattr(value, "value", value))


def render_summary(
        record: ApplicantRecord,
        result: ScoreResult,
        rules: Optional[SalaryRules] = None,
        documents: Sequence[DocumentFile] = (),
) -> str:
    lines: List[str] = ["=== Applicant Summary ==="]
    row = summary_row(record, rules)
    width = max(len(k) for k in row)
    for label, value in row.items():
        lines.append(f"{label.ljust(width)} : {value or '-'}")

    lines.append("")
    lines.append("=== Points ===")
    points = result.breakdown.to_dict()
    for category, title in CATEGORY_TITLES.items():
        _, evidence_field, index_field = CATEGORY_FIELDS[category]
        lines.append(f"{title}: {points[category]}  ({_category_value(record, category)})")
        evidence = getattr(record, evidence_field)
        if evidence:
            lines.append(f"   evidence: {evidence}")
        index = getattr(record, index_field)
        if 0 <= index < len(documents):
            lines.append(f"   source: [{index}] {documents[index].name}")

    lines.append("")
    lines.append(f"Total: {result.total} / threshold {PASS_THRESHOLD} -> {verdict(result)}")
    return "\n".join(lines)
