import pytest

from permitpoints.scoring.salary import (
    FORM_COMPOSITE,
    FORM_EMPTY,
    FORM_NUMERIC,
    FORM_PAY_GRADE,
    SALARY_REVISIONS,
    PayGrade,
    SalaryRules,
    effective_salary,
    normalize_salary,
    read_salary,
)

LEGACY = SALARY_REVISIONS["legacy"]
LEGACY_ENGINE = SALARY_REVISIONS["legacy-engine"]
FIRST = SALARY_REVISIONS["first-segment"]


# ------------------------------------------------------------------
# Pay-grade codes
# ------------------------------------------------------------------

@pytest.mark.parametrize(
    "token, expected",
    [
        ("2-1", 34000),
        ("2-4", 34000 + 3 * 800),
        ("3等2", 37000 + 900),
        ("4級1", 41000),
        ("4-10", 41000 + 9 * 1000),
        ("3 5", 37000 + 4 * 900),
        ("職等 3-8", 37000 + 7 * 900),
    ],
)
def test_pay_grade_uses_base_plus_increment(token, expected):
    assert normalize_salary(token) == expected
    assert read_salary(token).form == FORM_PAY_GRADE


def test_pay_grade_wins_over_composite():
    # "2-4" matches first; the "+" rule is never attempted
    assert normalize_salary("2-4+2000") == 36400


def test_legacy_table_has_lower_bases():
    assert normalize_salary("2-4", LEGACY) == 33000 + 3 * 800
    assert normalize_salary("3-1", LEGACY) == 35000


def test_legacy_table_has_no_level_4():
    # Level 4 is not a pay-grade code there, so the raw number fallback applies
    assert normalize_salary("4-2", LEGACY) == 42


def test_custom_grade_table():
    rules = SalaryRules(grade_table={5: PayGrade(base=50000, increment=2000)})
    assert normalize_salary("5-3", rules) == 54000
    # Level 2 is unknown to this table
    assert normalize_salary("2-3", rules) == 23


# ------------------------------------------------------------------
# Composite "base+bonus"
# ------------------------------------------------------------------

def test_composite_sums_segments_by_default():
    assert normalize_salary("34600+2000") == 36600
    reading = read_salary("34600+2000")
    assert reading.form == FORM_COMPOSITE
    assert reading.summed is True


def test_composite_strips_currency_and_separators():
    assert normalize_salary("NT$34,600 + NT$2,000") == 36600


def test_composite_first_segment_strategy():
    assert normalize_salary("34600+2000", FIRST) == 34600
    assert read_salary("34600+2000", FIRST).summed is False


def test_composite_with_no_numbers_is_zero():
    assert normalize_salary("base+bonus") == 0
    assert normalize_salary("base+bonus", FIRST) == 0


def test_legacy_removes_attendance_bonus_in_normalizer():
    assert normalize_salary("34600+2000", LEGACY) == 34600


def test_legacy_engine_keeps_normalized_sum_but_reduces_effective_salary():
    assert normalize_salary("34600+2000", LEGACY_ENGINE) == 36600
    assert effective_salary("34600+2000", LEGACY_ENGINE) == 34600


def test_bonus_offset_skipped_when_result_would_not_be_positive():
    assert normalize_salary("1500+300", LEGACY) == 1800
    assert normalize_salary("1000+1000", LEGACY) == 2000


def test_bonus_offset_never_applies_to_plain_numbers():
    assert normalize_salary("36600", LEGACY) == 36600
    assert effective_salary("36600", LEGACY_ENGINE) == 36600


# ------------------------------------------------------------------
# Raw numbers and garbage
# ------------------------------------------------------------------

def test_raw_number_fallback():
    assert normalize_salary("NT$ 34,600") == 34600
    assert normalize_salary("36600元") == 36600
    assert read_salary("36600").form == FORM_NUMERIC


def test_decimal_amount_is_kept():
    assert normalize_salary("34600.5") == 34600.5


def test_integral_amounts_are_ints():
    assert isinstance(normalize_salary("34600"), int)
    assert isinstance(normalize_salary("34600+2000"), int)


@pytest.mark.parametrize("token", ["", "   ", None, "abc", "n/a", "."])
def test_unparseable_tokens_are_zero(token):
    assert normalize_salary(token) == 0


def test_empty_token_form():
    assert read_salary("").form == FORM_EMPTY


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        SalaryRules(composite_strategy="average")
    with pytest.raises(ValueError):
        SalaryRules(bonus_offset_applied_in="ui")
