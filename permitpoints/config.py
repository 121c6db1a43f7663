# permitpoints/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Tuple

from permitpoints.scoring.salary import DEFAULT_SALARY_REVISION, SALARY_REVISIONS, SalaryRules

# --- Scoring ---

# Which salary convention revision to score with (see scoring/salary.py).
# Unknown names fall back to the default revision.
PERMITPOINTS_SALARY_REVISION: str = (
        os.environ.get("PERMITPOINTS_SALARY_REVISION", "").strip().lower()
        or DEFAULT_SALARY_REVISION
)

# --- Document extraction ---

EXTRACTION_TIMEOUT_SECONDS = 60
EXTRACTION_MAX_TOKENS = 2048

# Per-file guardrail: hosted APIs reject very large inline payloads
MAX_DOCUMENT_BYTES = 20 * 1024 * 1024

def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default

def _parse_llm_chain(raw: str | None) -> List[Tuple[str, str]]:
    """
    Parses: "anthropic/claude-sonnet-4-6,openai/gpt-4o"
    -> [("anthropic","claude-sonnet-4-6"), ("openai","gpt-4o")]
    """
    if not raw:
        return []
    items: List[Tuple[str, str]] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "/" not in part:
            # Allow "gpt-4o" shorthand -> assume openai
            items.append(("openai", part))
            continue
        provider, model = part.split("/", 1)
        provider = provider.strip().lower()
        model = model.strip()
        if provider and model:
            items.append((provider, model))
    return items

@dataclass(frozen=True)
class LLMFailoverConfig:
    chain: List[Tuple[str, str]]
    max_retries: int
    breaker_consecutive_fails: int


def load_llm_failover_config() -> LLMFailoverConfig:
    chain_raw = os.getenv(
        "PERMITPOINTS_LLM_CHAIN",
        "anthropic/claude-sonnet-4-6,openai/gpt-4o",
    )
    return LLMFailoverConfig(
        chain=_parse_llm_chain(chain_raw),
        max_retries=_env_int("PERMITPOINTS_LLM_MAX_RETRIES", 2),
        breaker_consecutive_fails=_env_int("PERMITPOINTS_LLM_CIRCUIT_BREAKER_FAILS", 2),
    )


def resolve_salary_revision(name: str | None = None) -> str:
    """
    Name of the revision that will actually be applied.
    Unknown names fall back to the default revision.
    """
    key = (name or PERMITPOINTS_SALARY_REVISION).strip().lower()
    return key if key in SALARY_REVISIONS else DEFAULT_SALARY_REVISION


def load_salary_rules(name: str | None = None) -> SalaryRules:
    return SALARY_REVISIONS[resolve_salary_revision(name)]


# --- LLM provider ---

# User-provided API key for document extraction.
# Never logged, never written to disk, never included in structured output.
PERMITPOINTS_LLM_KEY: str | None = os.environ.get("PERMITPOINTS_LLM_KEY") or None

# Provider selection: "anthropic" | "openai"  (default: anthropic)
PERMITPOINTS_LLM_PROVIDER: str = os.environ.get("PERMITPOINTS_LLM_PROVIDER", "anthropic").strip().lower()

# Both defaults accept images and PDFs.
# Override via PERMITPOINTS_LLM_MODEL env var.
_DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-6",
    "openai": "gpt-4o",
}
PERMITPOINTS_LLM_MODEL: str = (
        os.environ.get("PERMITPOINTS_LLM_MODEL", "").strip()
        or _DEFAULT_MODELS.get(PERMITPOINTS_LLM_PROVIDER, "claude-sonnet-4-6")
)


def resolve_api_key(provider: str) -> str | None:
    """Provider-specific key first, then the generic one."""
    provider = (provider or "").strip().lower()
    specific = {
        "anthropic": ("PERMITPOINTS_ANTHROPIC_KEY", "ANTHROPIC_API_KEY"),
        "openai": ("PERMITPOINTS_OPENAI_KEY", "OPENAI_API_KEY"),
    }.get(provider, ())
    for name in specific:
        value = os.getenv(name)
        if value:
            return value
    return os.getenv("PERMITPOINTS_LLM_KEY") or None


def llm_configured() -> bool:
    return bool(
        os.getenv("PERMITPOINTS_OPENAI_KEY")
        or os.getenv("PERMITPOINTS_ANTHROPIC_KEY")
        or os.getenv("PERMITPOINTS_LLM_KEY")
        or os.getenv("OPENAI_API_KEY")
        or os.getenv("ANTHROPIC_API_KEY")
    )
