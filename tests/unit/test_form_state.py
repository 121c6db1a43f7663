from datetime import date

import pytest

from permitpoints.extraction.documents import DocumentFile
from permitpoints.models import ChineseLevel, JobType, initial_record
from permitpoints.scoring.salary import SALARY_REVISIONS
from permitpoints.state import (
    AddDocuments,
    FormState,
    MergeExtraction,
    RemoveDocument,
    ReplaceRecord,
    Reset,
    SetField,
    ToggleJobType,
    UnknownFieldError,
    new_form,
    reduce,
)

TODAY = date(2024, 1, 1)


def test_new_form_fills_default_employment_dates():
    state = new_form(TODAY)
    assert state.record.employment_start == "2024/02/08"
    assert state.record.employment_end == "2027/02/07"
    assert state.documents == ()


def test_set_field_rescores_from_scratch():
    state = new_form(TODAY)
    assert state.score().total == 10

    state = reduce(state, SetField("chineseLevel", "Fluent"))
    assert state.record.chinese_level == ChineseLevel.FLUENT
    assert state.score().total == 40

    state = reduce(state, SetField("chinese_level", "None"))
    assert state.score().total == 10


def test_reduce_never_mutates_previous_state():
    before = new_form(TODAY)
    after = reduce(before, SetField("salary_amount", "47971"))
    assert before.record.salary_amount == "0"
    assert after.record.salary_amount == "47971"
    assert before.score().breakdown.salary == 0
    assert after.score().breakdown.salary == 40


def test_set_unknown_field_raises():
    with pytest.raises(UnknownFieldError):
        reduce(FormState(), SetField("favouriteColour", "blue"))


def test_merge_extraction_overlays_fields_and_regenerates_dates():
    state = reduce(FormState(), SetField("salaryAmount", "2-4"))
    extracted = {
        "chineseName": "阮文安",
        "educationLevel": "Master",
        "foreignLanguageCount": 2,
        "unexpectedKey": "ignored",
        "nationality": None,
    }

    merged = reduce(state, MergeExtraction(extracted, today=TODAY))

    assert merged.record.chinese_name == "阮文安"
    assert merged.record.education_level.value == "Master"
    assert merged.record.foreign_language_count == 2
    assert merged.record.nationality == ""
    assert merged.record.employment_start == "2024/02/08"
    # Salary was not extracted: the user's value stays
    assert merged.record.salary_amount == "2-4"


def test_merge_extraction_keeps_salary_when_blank():
    state = reduce(FormState(), SetField("salaryAmount", "36600"))
    merged = reduce(state, MergeExtraction({"salaryAmount": "  "}, today=TODAY))
    assert merged.record.salary_amount == "36600"


def test_merge_extraction_replaces_salary_when_present():
    state = reduce(FormState(), SetField("salaryAmount", "36600"))
    merged = reduce(state, MergeExtraction({"salary_amount": "34600+2000"}, today=TODAY))
    assert merged.record.salary_amount == "34600+2000"


def test_replace_record(load_json):
    from permitpoints.records import record_from_dict

    imported = record_from_dict(load_json("bachelor_applicant.json"))
    state = reduce(new_form(TODAY), ReplaceRecord(imported))
    assert state.record == imported
    assert state.score().total == 160


def test_toggle_job_type_applies_presets():
    state = reduce(FormState(), ToggleJobType())
    r = state.record
    assert r.job_type == JobType.CADRE
    assert (r.job_code, r.job_title, r.job_content) == ("-", "儲備幹部", "餐飲服務國際化諮詢")

    back = reduce(state, ToggleJobType()).record
    assert back.job_type == JobType.CHEF
    assert back.job_code == "512"


def test_reset_clears_documents_and_record(sample_documents):
    state = reduce(FormState(), AddDocuments(tuple(sample_documents)))
    state = reduce(state, SetField("policyCompliance", True))

    reset = reduce(state, Reset(today=TODAY))

    assert reset.documents == ()
    assert reset.record == initial_record().with_changes(
        employment_start="2024/02/08", employment_end="2027/02/07"
    )


def test_documents_add_and_remove(sample_documents):
    state = reduce(FormState(), AddDocuments(tuple(sample_documents[:2])))
    state = reduce(state, AddDocuments((sample_documents[2],)))
    assert [d.name for d in state.documents] == ["passport.png", "diploma.pdf", "offer.txt"]

    state = reduce(state, RemoveDocument("diploma.pdf"))
    assert [d.name for d in state.documents] == ["passport.png", "offer.txt"]


def test_source_document_resolves_file_index(sample_documents):
    state = reduce(FormState(), AddDocuments(tuple(sample_documents)))
    state = reduce(state, SetField("educationFileIndex", 1))
    state = reduce(state, SetField("salaryFileIndex", 9))

    assert state.source_document("education").name == "diploma.pdf"
    assert state.source_document("salary") is None
    assert state.source_document("policy") is None  # -1

    with pytest.raises(UnknownFieldError):
        state.source_document("hobbies")


def test_score_projection_uses_given_rules():
    state = reduce(FormState(), SetField("salaryAmount", "34600+2000"))
    assert state.score().breakdown.salary == 20
    assert state.score(SALARY_REVISIONS["legacy"]).breakdown.salary == 10


def test_unsupported_action_raises():
    with pytest.raises(TypeError):
        reduce(FormState(), object())  # type: ignore[arg-type]


def test_document_file_helpers():
    doc = DocumentFile(name="a.png", mime_type="image/png", data=b"abc")
    assert doc.is_image and not doc.is_pdf
    assert doc.data_url() == "data:image/png;base64,YWJj"
