from .engine import qualifies, score
from .salary import SALARY_REVISIONS, SalaryRules, normalize_salary, read_salary
from .tables import PASS_THRESHOLD
from .types import ScoreBreakdown, ScoreResult

__all__ = [
    "score",
    "qualifies",
    "normalize_salary",
    "read_salary",
    "SalaryRules",
    "SALARY_REVISIONS",
    "PASS_THRESHOLD",
    "ScoreBreakdown",
    "ScoreResult",
]
