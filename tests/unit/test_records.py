import json
from pathlib import Path

import pytest

from permitpoints.models import ChineseLevel, EducationLevel, JobType, Scholarship, initial_record
from permitpoints.records import (
    JsonRecordStore,
    RecordFormatError,
    dumps_record,
    loads_record,
    record_filename,
    record_from_dict,
    record_to_dict,
)


def test_record_to_dict_uses_camel_case_keys():
    d = record_to_dict(initial_record())
    assert d["jobTitle"] == "廚藝人員"
    assert d["educationLevel"] == "Bachelor"
    assert d["chineseLevel"] == "None"
    assert d["educationFileIndex"] == -1
    assert "salary_amount" not in d


def test_import_saved_record(load_text):
    record = loads_record(load_text("bachelor_applicant.json"))
    assert record.chinese_name == "阮文安"
    assert record.education_level == EducationLevel.BACHELOR
    assert record.salary_amount == "34600+2000"
    assert record.chinese_level == ChineseLevel.FLUENT
    assert record.scholarship == Scholarship.GOV
    assert record.qualification_score is True
    assert record.scholarship_file_index == 5


def test_export_then_import_preserves_every_field(load_text):
    record = loads_record(load_text("bachelor_applicant.json"))
    assert loads_record(dumps_record(record)) == record


def test_missing_keys_take_defaults():
    record = record_from_dict({"chineseName": "王小明"})
    assert record.chinese_name == "王小明"
    assert record.job_type == JobType.CHEF
    assert record.salary_amount == "0"


def test_unknown_enum_strings_import_as_unknown():
    record = record_from_dict({"educationLevel": "Diploma", "scholarship": "Private"})
    assert record.education_level == EducationLevel.UNKNOWN
    assert record.scholarship == Scholarship.UNKNOWN


def test_snake_case_keys_are_accepted():
    record = record_from_dict({"salary_amount": "2-4", "foreign_language_count": 2})
    assert record.salary_amount == "2-4"
    assert record.foreign_language_count == 2


def test_malformed_json_raises_record_format_error():
    with pytest.raises(RecordFormatError, match="not valid JSON"):
        loads_record("{not json")


def test_non_object_json_raises_record_format_error():
    with pytest.raises(RecordFormatError, match="JSON object"):
        loads_record("[1, 2, 3]")


def test_non_finite_numbers_import_as_defaults():
    record = loads_record('{"foreignLanguageCount": Infinity, "salaryFileIndex": -Infinity, "chineseFileIndex": NaN}')
    assert record.foreign_language_count == 0
    assert record.salary_file_index == -1
    assert record.chinese_file_index == -1


def test_filename_from_chinese_name():
    assert record_filename(initial_record().with_changes(chinese_name="王小明")) == "王小明_assessment.json"
    assert record_filename(initial_record()) == "applicant_assessment.json"
    assert record_filename(initial_record().with_changes(chinese_name="a/b c")) == "a_b_c_assessment.json"


def test_store_save_and_load(tmp_path: Path, load_text):
    record = loads_record(load_text("bachelor_applicant.json"))
    store = JsonRecordStore(tmp_path / "records")

    path = store.save(record)

    assert path.name == "阮文安_assessment.json"
    raw = path.read_text(encoding="utf-8")
    assert "廚藝人員" in raw  # not \u-escaped
    assert json.loads(raw)["salaryAmount"] == "34600+2000"
    assert store.load(path) == record
    assert store.load(Path(path.name)) == record
