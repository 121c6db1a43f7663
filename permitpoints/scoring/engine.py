from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from permitpoints.models import ApplicantRecord, ChineseLevel, EducationLevel, Scholarship, record_from_dict

from .salary import SalaryRules, effective_salary
from .tables import (
    CHINESE_POINTS,
    EDUCATION_POINTS,
    EXPERIENCE_TIERS,
    LANGUAGES_MANY_POINTS,
    LANGUAGES_ONE_POINTS,
    PASS_THRESHOLD,
    POLICY_POINTS,
    QUALIFICATION_POINTS,
    SALARY_TIERS,
    SCHOLARSHIP_POINTS,
    tier_points,
)
from .types import ScoreBreakdown, ScoreResult


def education_score(level: Any) -> int:
    return EDUCATION_POINTS.get(EducationLevel.parse(level), 0)


def salary_score(token: Optional[str], rules: Optional[SalaryRules] = None) -> int:
    return tier_points(effective_salary(token, rules), SALARY_TIERS)


def experience_score(years: Optional[float]) -> int:
    return tier_points(years or 0, EXPERIENCE_TIERS)


def qualification_score(meets: bool) -> int:
    return QUALIFICATION_POINTS if meets else 0


def chinese_score(level: Any) -> int:
    return CHINESE_POINTS.get(ChineseLevel.parse(level), 0)


def languages_score(count: Optional[int]) -> int:
    count = count or 0
    if count >= 2:
        return LANGUAGES_MANY_POINTS
    if count == 1:
        return LANGUAGES_ONE_POINTS
    return 0


def policy_score(compliant: bool) -> int:
    return POLICY_POINTS if compliant else 0


def scholarship_score(kind: Any) -> int:
    return SCHOLARSHIP_POINTS.get(Scholarship.parse(kind), 0)


def score(
        record: Union[ApplicantRecord, Mapping[str, Any]],
        rules: Optional[SalaryRules] = None,
) -> ScoreResult:
    """
    Score a complete applicant record.
    Pure and recomputed from scratch on every call; each category is
    looked up independently and the total is their sum.
    """
    if not isinstance(record, ApplicantRecord):
        record = record_from_dict(record)

    breakdown = ScoreBreakdown(
        education=education_score(record.education_level),
        salary=salary_score(record.salary_amount, rules),
        experience=experience_score(record.experience_years),
        qualification=qualification_score(record.qualification_score),
        chinese=chinese_score(record.chinese_level),
        languages=languages_score(record.foreign_language_count),
        policy=policy_score(record.policy_compliance),
        scholarship=scholarship_score(record.scholarship),
    )
    return ScoreResult(breakdown=breakdown, total=breakdown.total)


def qualifies(result: ScoreResult, threshold: int = PASS_THRESHOLD) -> bool:
    return result.total >= threshold
