from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from permitpoints import config
from permitpoints.extraction.documents import DocumentFile, load_document
from permitpoints.extraction.extractor import DocumentExtractor, ExtractionError, FailoverDocumentExtractor
from permitpoints.records import JsonRecordStore, RecordFormatError, record_to_dict
from permitpoints.models import ApplicantRecord
from permitpoints.scoring.engine import qualifies
from permitpoints.scoring.salary import SalaryRules, effective_salary
from permitpoints.scoring.tables import PASS_THRESHOLD
from permitpoints.scoring.types import ScoreResult
from permitpoints.state import AddDocuments, FormState, MergeExtraction, ReplaceRecord, new_form, reduce
from permitpoints.summary import render_summary


@dataclass(frozen=True)
class AssessmentResult:
    record: ApplicantRecord
    result: ScoreResult
    base_salary: float
    salary_revision: str
    documents: List[str]
    extracted: bool
    extraction_error: Optional[str] = None
    saved_to: Optional[str] = None

    @property
    def qualified(self) -> bool:
        return qualifies(self.result)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record": record_to_dict(self.record),
            "score": self.result.to_dict(),
            "base_salary": self.base_salary,
            "salary_revision": self.salary_revision,
            "threshold": PASS_THRESHOLD,
            "qualified": self.qualified,
            "documents": list(self.documents),
            "extraction": {"used": self.extracted, "error": self.extraction_error},
            "saved_to": self.saved_to,
        }


def run_assessment(
        *,
        record: Optional[ApplicantRecord] = None,
        documents: Sequence[DocumentFile] = (),
        extractor: Optional[DocumentExtractor] = None,
        today: Optional[date] = None,
        salary_revision: Optional[str] = None,
        save_dir: Optional[Path] = None,
) -> AssessmentResult:
    """
    Library entry point:
      - start from a blank form (or an imported record)
      - optionally pre-fill from documents through the extractor
      - score the resulting record
    Extraction failures never fail the run; the record is scored as it stands.
    """
    revision = config.resolve_salary_revision(salary_revision)
    rules: SalaryRules = config.load_salary_rules(revision)

    state: FormState = new_form(today)
    if record is not None:
        state = reduce(state, ReplaceRecord(record))
    if documents:
        state = reduce(state, AddDocuments(tuple(documents)))

    extracted = False
    extraction_error: Optional[str] = None
    if extractor is not None and state.documents:
        try:
            fields = extractor.extract(state.documents)
            state = reduce(state, MergeExtraction(fields, today=today))
            extracted = True
        except ExtractionError as exc:
            extraction_error = str(exc)
            print(f"[PermitPoints] Document extraction failed, keeping current record: {exc}", file=sys.stderr)

    saved_to = None
    if save_dir is not None:
        saved_to = str(JsonRecordStore(save_dir).save(state.record))

    return AssessmentResult(
        record=state.record,
        result=state.score(rules),
        base_salary=effective_salary(state.record.salary_amount, rules),
        salary_revision=revision,
        documents=[d.name for d in state.documents],
        extracted=extracted,
        extraction_error=extraction_error,
        saved_to=saved_to,
    )


def _parse_today(raw: str) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"--today must be YYYY-MM-DD, got {raw!r}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="PermitPoints: AP0 work permit points assessment")
    parser.add_argument("--record", type=str, default="", help="Path to a saved assessment .json to start from")
    parser.add_argument("--documents", nargs="*", default=[], help="Supporting documents (images / PDFs) for extraction")
    parser.add_argument("--no-extract", action="store_true", help="Skip LLM extraction even when an API key is set")
    parser.add_argument("--today", type=_parse_today, default=None, help="Reference date (YYYY-MM-DD) for default employment dates")
    parser.add_argument(
        "--salary-revision",
        choices=sorted(config.SALARY_REVISIONS),
        default=None,
        help="Salary convention revision (default: PERMITPOINTS_SALARY_REVISION or 'sum')",
    )
    parser.add_argument("--save", type=str, default="", help="Directory to save the resulting record in")
    parser.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    args = parser.parse_args(argv)

    record: Optional[ApplicantRecord] = None
    if args.record:
        record_path = Path(args.record)
        if not record_path.exists():
            print(f"\n[PermitPoints] Record file not found: {record_path}", file=sys.stderr)
            raise SystemExit(2)
        try:
            record = JsonRecordStore(record_path.parent).load(record_path)
        except RecordFormatError as exc:
            print(f"\n[PermitPoints] Could not import record: {exc}", file=sys.stderr)
            raise SystemExit(2)

    documents: List[DocumentFile] = []
    for raw in args.documents:
        p = Path(raw)
        if not p.exists():
            print(f"[PermitPoints] Document not found, skipping: {p}", file=sys.stderr)
            continue
        documents.append(load_document(p))

    extractor: Optional[DocumentExtractor] = None
    if documents and not args.no_extract:
        if config.llm_configured():
            extractor = FailoverDocumentExtractor.from_config()
        else:
            print("[PermitPoints] No LLM API key configured, skipping document extraction.", file=sys.stderr)

    result = run_assessment(
        record=record,
        documents=documents,
        extractor=extractor,
        today=args.today,
        salary_revision=args.salary_revision,
        save_dir=Path(args.save) if args.save else None,
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    print()
    print(render_summary(result.record, result.result, config.load_salary_rules(result.salary_revision), documents))
    if result.saved_to:
        print(f"\nSaved: {result.saved_to}")


if __name__ == "__main__":
    main()
