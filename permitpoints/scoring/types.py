from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ScoreBreakdown:
    education: int = 0
    salary: int = 0
    experience: int = 0
    qualification: int = 0
    chinese: int = 0
    languages: int = 0
    policy: int = 0
    scholarship: int = 0

    @property
    def total(self) -> int:
        # Categories are independent: the total is a plain sum
        return sum(asdict(self).values())

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ScoreResult:
    breakdown: ScoreBreakdown
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "breakdown": self.breakdown.to_dict()}
