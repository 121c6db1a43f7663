from __future__ import annotations

from typing import Dict, List, Tuple

from permitpoints.models import ChineseLevel, EducationLevel, Scholarship

# Qualification verdict (presentation side compares the total against this)
PASS_THRESHOLD = 70

# Highest degree only; high school and below scores nothing
EDUCATION_POINTS: Dict[EducationLevel, int] = {
    EducationLevel.DOCTORAL: 30,
    EducationLevel.MASTER: 20,
    EducationLevel.BACHELOR: 10,
    EducationLevel.ASSOCIATE: 5,
    EducationLevel.HIGH_SCHOOL: 0,
}

# (minimum monthly base salary, points), highest tier first
SALARY_TIERS: List[Tuple[int, int]] = [
    (47971, 40),
    (40000, 30),
    (35000, 20),
    (31520, 10),
]

EXPERIENCE_TIERS: List[Tuple[int, int]] = [
    (2, 20),
    (1, 10),
]

QUALIFICATION_POINTS = 20

CHINESE_POINTS: Dict[ChineseLevel, int] = {
    ChineseLevel.FLUENT: 30,
    ChineseLevel.HIGH: 25,
    ChineseLevel.INTERMEDIATE: 20,
}

# Two or more languages other than Chinese -> 20, exactly one -> 10
LANGUAGES_MANY_POINTS = 20
LANGUAGES_ONE_POINTS = 10

POLICY_POINTS = 20

SCHOLARSHIP_POINTS: Dict[Scholarship, int] = {
    Scholarship.GOV: 20,
    Scholarship.SCHOOL: 5,
}


def tier_points(value: float, tiers: List[Tuple[int, int]]) -> int:
    for minimum, points in tiers:
        if value >= minimum:
            return points
    return 0
