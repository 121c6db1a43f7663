"""
permitpoints/extraction/prompt.py

Prompt for pre-filling an applicant record from uploaded documents.

The model only proposes values; every field stays editable and the score
is always recomputed locally from the corrected record.
"""
from __future__ import annotations

from typing import Sequence

from permitpoints.extraction.documents import DocumentFile

_SYSTEM_PROMPT = """\
You are an expert HR assistant for Taiwan's AP0 points-based work permit system.
You read applicant documents (passports, diplomas, transcripts, payslips, employment offers, \
service certificates, labor insurance records, language test reports, scholarship letters) \
and return the facts needed to fill in the assessment form.
CRITICAL: Only report what the documents show. If a field is not supported by any document, \
omit it or use the neutral value ("None", false, 0) and set its file index to -1.
Respond with a single JSON object and nothing else.\
"""

# camelCase key -> expected value, as shown to the model
RESPONSE_FIELDS = {
    "chineseName": "string",
    "englishSurname": "string",
    "englishGivenName": "string",
    "gender": '"M" | "F"',
    "nationality": "string",
    "passportNumber": "string",
    "dateOfBirth": "string, YYYY-MM-DD",
    "educationLevel": '"Doctoral" | "Master" | "Bachelor" | "Associate" | "HighSchool"',
    "educationEvidence": "string",
    "educationFileIndex": "integer",
    "salaryAmount": 'string, "34600+2000" for base+bonus, "2-4" for level-grade',
    "salaryReason": "string",
    "salaryFileIndex": "integer",
    "experienceYears": "number",
    "experienceEvidence": "string",
    "experienceFileIndex": "integer",
    "qualificationScore": "boolean",
    "qualificationEvidence": "string",
    "qualificationFileIndex": "integer",
    "chineseLevel": '"Fluent" | "High" | "Intermediate" | "Basic" | "None"',
    "chineseEvidence": "string",
    "chineseFileIndex": "integer",
    "foreignLanguageCount": "integer",
    "foreignLanguageEvidence": "string",
    "foreignLanguageFileIndex": "integer",
    "policyCompliance": "boolean",
    "policyEvidence": "string",
    "policyFileIndex": "integer",
    "scholarship": '"Gov" | "School" | "None"',
    "scholarshipEvidence": "string",
    "scholarshipFileIndex": "integer",
}

REQUIRED_FIELDS = ("chineseName", "educationLevel", "salaryAmount")


def _file_listing(documents: Sequence[DocumentFile]) -> str:
    return ", ".join(f"{i}: {d.name}" for i, d in enumerate(documents)) or "(no files)"


def _schema_listing() -> str:
    lines = []
    for key, kind in RESPONSE_FIELDS.items():
        marker = " (required)" if key in REQUIRED_FIELDS else ""
        lines.append(f'- "{key}": {kind}{marker}')
    return "\n".join(lines)


def build_extraction_prompt(documents: Sequence[DocumentFile]) -> str:
    """
    User-turn instructions sent after the document parts.
    File indexes in the answer refer to the numbering listed here.
    """
    return f"""\
Analyze the attached documents (images / PDFs).
File Names: {_file_listing(documents)}.

CRITICAL RULES:
1. Salary: if you see "Base + Bonus" (e.g. 34600+2000), return exactly "34600+2000". \
For a pay level and grade, return "level-grade" (e.g. "2-4").
2. Education: map the highest degree to Doctoral, Master, Bachelor or Associate \
(HighSchool if below associate).
3. Experience: count years only from a Service Certificate or Labor Insurance record.
4. Language: count languages other than Chinese with proof (FLPT, TOEFL, TOEIC, IELTS, GEPT, \
Linguaskill, DELF, TestDaF, JLPT). A Hong Kong / Macau passport alone is NOT a foreign language.
5. Policy: true only if the diploma names "New Southbound", "2+i", "OYVAT" or "產學攜手".
6. Evidence: for every category quote the supporting text and give the file index it came from \
(-1 if none).

Return JSON with these keys:
{_schema_listing()}\
"""
