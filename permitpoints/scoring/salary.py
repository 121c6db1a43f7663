from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

Number = Union[int, float]

COMPOSITE_SUM = "sum"
COMPOSITE_FIRST = "first"

OFFSET_IN_NORMALIZER = "normalizer"
OFFSET_IN_ENGINE = "engine"
OFFSET_NOWHERE = "none"

# Reading forms
FORM_EMPTY = "empty"
FORM_PAY_GRADE = "pay_grade"
FORM_COMPOSITE = "composite"
FORM_NUMERIC = "numeric"

# Connector glyphs between level and grade: "2-4", "2等4", "2級4", "2 4"
_GRADE_SEPARATORS = r"[-等級\s]+"
_NON_NUMERIC = re.compile(r"[^\d.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


@dataclass(frozen=True)
class PayGrade:
    base: int
    increment: int

    def salary_for(self, grade: int) -> int:
        # Grade is 1-indexed: grade 1 is the base pay
        return self.base + (grade - 1) * self.increment


@dataclass(frozen=True)
class SalaryRules:
    """
    One revision of the salary conventions.

    grade_table:             level -> PayGrade(base, increment)
    composite_strategy:      "sum" adds every "+" segment, "first" keeps the base segment
    bonus_offset:            attendance bonus removed from a summed composite
    bonus_offset_applied_in: "normalizer" | "engine" | "none"
    """
    grade_table: Dict[int, PayGrade] = field(default_factory=dict)
    composite_strategy: str = COMPOSITE_SUM
    bonus_offset: int = 2000
    bonus_offset_applied_in: str = OFFSET_NOWHERE

    def __post_init__(self) -> None:
        if self.composite_strategy not in (COMPOSITE_SUM, COMPOSITE_FIRST):
            raise ValueError(f"Unknown composite strategy: {self.composite_strategy!r}")
        if self.bonus_offset_applied_in not in (OFFSET_IN_NORMALIZER, OFFSET_IN_ENGINE, OFFSET_NOWHERE):
            raise ValueError(f"Unknown bonus offset placement: {self.bonus_offset_applied_in!r}")

    def grade_pattern(self) -> Optional[re.Pattern]:
        if not self.grade_table:
            return None
        levels = "".join(str(level) for level in sorted(self.grade_table))
        return re.compile(f"([{levels}]){_GRADE_SEPARATORS}(\\d+)")


_CURRENT_GRADES = {
    4: PayGrade(base=41000, increment=1000),
    3: PayGrade(base=37000, increment=900),
    2: PayGrade(base=34000, increment=800),
}

_LEGACY_GRADES = {
    3: PayGrade(base=35000, increment=900),
    2: PayGrade(base=33000, increment=800),
}

SALARY_REVISIONS: Dict[str, SalaryRules] = {
    "sum": SalaryRules(grade_table=_CURRENT_GRADES, composite_strategy=COMPOSITE_SUM),
    "first-segment": SalaryRules(grade_table=_CURRENT_GRADES, composite_strategy=COMPOSITE_FIRST),
    "legacy": SalaryRules(
        grade_table=_LEGACY_GRADES,
        composite_strategy=COMPOSITE_SUM,
        bonus_offset_applied_in=OFFSET_IN_NORMALIZER,
    ),
    "legacy-engine": SalaryRules(
        grade_table=_LEGACY_GRADES,
        composite_strategy=COMPOSITE_SUM,
        bonus_offset_applied_in=OFFSET_IN_ENGINE,
    ),
}

DEFAULT_SALARY_REVISION = "sum"
DEFAULT_SALARY_RULES = SALARY_REVISIONS[DEFAULT_SALARY_REVISION]


@dataclass(frozen=True)
class SalaryReading:
    amount: Number
    form: str
    # True when the amount came from adding several "+" segments
    summed: bool = False


def _as_number(value: float) -> Number:
    return int(value) if float(value).is_integer() else value


def _parse_leading_number(text: str) -> Optional[float]:
    """parseFloat-style: longest numeric prefix, None when there is none."""
    m = _LEADING_NUMBER.match(text)
    if not m:
        return None
    return float(m.group(0))


def _strip_to_number(text: str) -> Optional[float]:
    return _parse_leading_number(_NON_NUMERIC.sub("", text))


def apply_bonus_offset(amount: Number, rules: SalaryRules) -> Number:
    """Remove the attendance bonus, unless that would leave nothing."""
    reduced = amount - rules.bonus_offset
    return reduced if reduced > 0 else amount


def read_salary(token: Optional[str], rules: Optional[SalaryRules] = None) -> SalaryReading:
    """
    Parse a salary token into a monthly base salary.

    Priority (first match wins):
      1) pay-grade code  "2-4", "3等2", "4級1"
      2) composite       "34600+2000"
      3) raw number      "NT$ 34,600"
    Never raises; anything unparseable reads as 0.
    """
    rules = rules or DEFAULT_SALARY_RULES
    text = "" if token is None else str(token)
    if not text.strip():
        return SalaryReading(amount=0, form=FORM_EMPTY)

    pattern = rules.grade_pattern()
    m = pattern.search(text) if pattern else None
    if m:
        level = int(m.group(1))
        grade = int(m.group(2))
        return SalaryReading(amount=rules.grade_table[level].salary_for(grade), form=FORM_PAY_GRADE)

    if "+" in text:
        parts = [_strip_to_number(p) for p in text.split("+")]
        if rules.composite_strategy == COMPOSITE_FIRST:
            first = parts[0]
            return SalaryReading(amount=_as_number(first) if first is not None else 0, form=FORM_COMPOSITE)
        total = sum(p for p in parts if p is not None)
        return SalaryReading(amount=_as_number(total), form=FORM_COMPOSITE, summed=True)

    num = _strip_to_number(text)
    return SalaryReading(amount=_as_number(num) if num is not None else 0, form=FORM_NUMERIC)


def normalize_salary(token: Optional[str], rules: Optional[SalaryRules] = None) -> Number:
    rules = rules or DEFAULT_SALARY_RULES
    reading = read_salary(token, rules)
    if reading.summed and rules.bonus_offset_applied_in == OFFSET_IN_NORMALIZER:
        return apply_bonus_offset(reading.amount, rules)
    return reading.amount


def effective_salary(token: Optional[str], rules: Optional[SalaryRules] = None) -> Number:
    """
    Salary used for tier lookup: the normalized salary, with the
    attendance bonus removed wherever the active revision removes it.
    """
    rules = rules or DEFAULT_SALARY_RULES
    reading = read_salary(token, rules)
    if reading.summed and rules.bonus_offset_applied_in != OFFSET_NOWHERE:
        return apply_bonus_offset(reading.amount, rules)
    return reading.amount
