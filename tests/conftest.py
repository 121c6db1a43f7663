import json
from pathlib import Path
import pytest

from permitpoints.extraction.documents import DocumentFile

# Path to tests/fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_text(fixtures_dir):
    """
    Fixture that returns a function: load_text("file.ext") -> str
    """
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """
    Fixture that returns a function: load_json("file.json") -> dict
    Built on load_text so there's one source of truth for file IO.
    """
    def _load(name: str) -> dict:
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def sample_documents() -> list[DocumentFile]:
    """Small in-memory uploads; contents are never parsed in unit tests."""
    return [
        DocumentFile(name="passport.png", mime_type="image/png", data=b"\x89PNG fake"),
        DocumentFile(name="diploma.pdf", mime_type="application/pdf", data=b"%PDF-1.4 fake"),
        DocumentFile(name="offer.txt", mime_type="text/plain", data="月薪 34600+2000".encode("utf-8")),
    ]
