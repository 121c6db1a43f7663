from __future__ import annotations

import io
import mimetypes
from pathlib import Path

from pypdf import PdfReader

from permitpoints.models import PDF_MIME_TYPE, DocumentFile

__all__ = ["PDF_MIME_TYPE", "DocumentFile", "guess_mime_type", "load_document", "pdf_text"]


def guess_mime_type(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    return mime or "application/octet-stream"


def load_document(path: str | Path) -> DocumentFile:
    p = Path(path)
    return DocumentFile(name=p.name, mime_type=guess_mime_type(p.name), data=p.read_bytes())


def pdf_text(document: DocumentFile) -> str:
    """
    Text layer of a PDF document.
    Best-effort: scanned PDFs without a text layer return "".
    """
    try:
        reader = PdfReader(io.BytesIO(document.data))
        parts = []
        for page in reader.pages:
            t = page.extract_text() or ""
            if t.strip():
                parts.append(t)
        return "\n".join(parts).strip()
    except Exception:
        return ""
