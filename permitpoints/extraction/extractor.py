"""
permitpoints/extraction/extractor.py

DocumentExtractor protocol + LLM-backed implementations.

Design principles:
- User-provided API key only
- One LLM call per extraction, all documents in a single request
- Hard timeout per call
- Output is a best-effort partial record; the caller merges and the user corrects
- Raises ExtractionError on any failure (caller keeps the current record)
- API key MUST NOT appear in any log, exception message or structured output
"""
from __future__ import annotations

import json
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from permitpoints import config as _config
from permitpoints.extraction.documents import DocumentFile, pdf_text
from permitpoints.extraction.prompt import _SYSTEM_PROMPT, build_extraction_prompt
from permitpoints.models import NO_SOURCE_FILE, coerce_field, resolve_field_name

TRANSIENT_HINTS = (
    "rate limit",
    "ratelimit",
    "too many requests",
    "overloaded",
    "temporarily overloaded",
    "timeout",
    "timed out",
    "try again",
    "server error",
    "503",
    "529",
)

# Top-level optional imports so tests can patch them via module attribute.
# The actual ImportError (if library not installed) is raised at call time.
try:
    import anthropic
except ImportError:
    anthropic = None  # type: ignore[assignment]

try:
    import openai
except ImportError:
    openai = None  # type: ignore[assignment]


class ExtractionError(Exception):
    """Raised when extraction fails for any reason (timeout, bad output, API error)."""


class DocumentExtractor(Protocol):
    def extract(self, documents: Sequence[DocumentFile]) -> Dict[str, Any]:
        ...


_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_extraction_response(text: str, *, document_count: Optional[int] = None) -> Dict[str, Any]:
    """
    Turn the model's JSON answer into a partial record (snake_case keys, coerced values).
    Unknown keys and nulls are dropped. File indexes that point outside the
    uploaded documents are reset to -1.
    """
    cleaned = _FENCE.sub("", (text or "").strip()).strip()
    if not cleaned:
        raise ExtractionError("LLM returned an empty response.")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        raise ExtractionError("LLM response is not valid JSON.") from None
    if not isinstance(data, dict):
        raise ExtractionError(f"LLM response must be a JSON object, got {type(data).__name__}.")

    out: Dict[str, Any] = {}
    for key, value in data.items():
        name = resolve_field_name(str(key))
        if name is None or value is None:
            continue
        value = coerce_field(name, value)
        if name.endswith("_file_index") and document_count is not None:
            if not (0 <= value < document_count):
                value = NO_SOURCE_FILE
        out[name] = value
    return out


class LLMDocumentExtractor:
    """
    Calls an LLM (Anthropic or OpenAI) to read the uploaded documents and
    propose values for the applicant record.
    """

    _TIMEOUT_SECONDS = _config.EXTRACTION_TIMEOUT_SECONDS
    _MAX_TOKENS = _config.EXTRACTION_MAX_TOKENS

    def __init__(
            self,
            *,
            api_key: str,
            model: Optional[str] = None,
            provider: str = "anthropic",
    ) -> None:
        if not api_key:
            raise ExtractionError("LLM API key must not be empty.")
        self._api_key = api_key
        self._model = (model or _config.PERMITPOINTS_LLM_MODEL).strip()
        self._provider = provider.strip().lower()

        if self._provider not in ("anthropic", "openai"):
            raise ExtractionError(
                f"Unsupported provider '{self._provider}'. Use 'anthropic' or 'openai'."
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, documents: Sequence[DocumentFile]) -> Dict[str, Any]:
        """
        Return a partial record (snake_case keys) proposed from the documents.
        Raises ExtractionError on any failure.
        The API key is never included in the exception message.
        """
        if not documents:
            raise ExtractionError("No documents to analyze.")
        for d in documents:
            if len(d.data) > _config.MAX_DOCUMENT_BYTES:
                raise ExtractionError(f"Document too large for inline upload: {d.name}")

        prompt = build_extraction_prompt(documents)
        try:
            if self._provider == "anthropic":
                raw = self._call_anthropic(documents, prompt)
            else:
                raw = self._call_openai(documents, prompt)
        except ExtractionError:
            raise
        except Exception as exc:
            # Sanitize: never let the key propagate through exception messages
            raise ExtractionError(f"LLM call failed: {type(exc).__name__}") from None

        return parse_extraction_response(raw, document_count=len(documents))

    # ------------------------------------------------------------------
    # Provider implementations
    # ------------------------------------------------------------------

    def _call_anthropic(self, documents: Sequence[DocumentFile], prompt: str) -> str:
        if anthropic is None:
            raise ExtractionError(
                "Package 'anthropic' is not installed. Run: pip install anthropic"
            )

        content: List[Dict[str, Any]] = []
        for d in documents:
            if d.is_pdf:
                content.append({
                    "type": "document",
                    "source": {"type": "base64", "media_type": d.mime_type, "data": d.base64_data()},
                })
            elif d.is_image:
                content.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": d.mime_type, "data": d.base64_data()},
                })
            else:
                content.append({"type": "text", "text": _as_text_part(d)})
        content.append({"type": "text", "text": prompt})

        client = anthropic.Anthropic(api_key=self._api_key)
        try:
            message = client.messages.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                timeout=self._TIMEOUT_SECONDS,
                system=_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APITimeoutError:
            raise ExtractionError(f"Anthropic API timed out after {self._TIMEOUT_SECONDS} seconds.")
        except anthropic.APIError as exc:
            raise ExtractionError(f"Anthropic API error: {type(exc).__name__}") from None

        for block in message.content:
            if block.type == "text":
                return block.text
        raise ExtractionError("Anthropic returned no text content.")

    def _call_openai(self, documents: Sequence[DocumentFile], prompt: str) -> str:
        if openai is None:
            raise ExtractionError(
                "Package 'openai' is not installed. Run: pip install openai"
            )

        content: List[Dict[str, Any]] = []
        for i, d in enumerate(documents):
            if d.is_image:
                content.append({"type": "image_url", "image_url": {"url": d.data_url()}})
            elif d.is_pdf:
                text = pdf_text(d) or "(no text layer)"
                content.append({"type": "text", "text": f"[File {i}: {d.name}]\n{text}"})
            else:
                content.append({"type": "text", "text": _as_text_part(d, index=i)})
        content.append({"type": "text", "text": prompt})

        client = openai.OpenAI(api_key=self._api_key, timeout=self._TIMEOUT_SECONDS)
        try:
            response = client.chat.completions.create(
                model=self._model,
                max_tokens=self._MAX_TOKENS,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": content},
                ],
            )
        except openai.APITimeoutError:
            raise ExtractionError(f"OpenAI API timed out after {self._TIMEOUT_SECONDS} seconds.")
        except openai.APIError as exc:
            raise ExtractionError(f"OpenAI API error: {type(exc).__name__}") from None

        content_text = response.choices[0].message.content
        if not content_text:
            raise ExtractionError("OpenAI returned empty content.")
        return content_text


def _as_text_part(document: DocumentFile, index: Optional[int] = None) -> str:
    label = f"[File {index}: {document.name}]" if index is not None else f"[File: {document.name}]"
    body = document.data.decode("utf-8", errors="replace")
    return f"{label}\n{body}"


def _is_transient_error(err: Exception) -> bool:
    msg = (str(err) or "").lower()
    return any(h in msg for h in TRANSIENT_HINTS)


def _sleep_backoff(attempt: int) -> None:
    # attempt=0 -> ~0.8s, attempt=1 -> ~1.6s, with jitter
    base = 0.8 * (2 ** attempt)
    jitter = random.uniform(0.0, 0.25)
    time.sleep(base + jitter)


@dataclass
class FailoverState:
    consecutive_failures: int = 0
    disabled: bool = False
    disabled_reason: Optional[str] = None
    sticky_provider: Optional[str] = None
    sticky_model: Optional[str] = None


class FailoverDocumentExtractor:
    """
    Wraps LLMDocumentExtractor:
    - tries a provider/model chain
    - retries transient errors (rate limit/overloaded/timeout)
    - circuit breaker after N consecutive candidate failures
    - sticky success (keeps using the candidate that last worked)
    """

    def __init__(
            self,
            *,
            api_key_resolver: Callable[[str], Optional[str]],
            candidates: List[Tuple[str, str]],
            max_retries: int = 2,
            breaker_consecutive_fails: int = 2,
    ) -> None:
        self._api_key_resolver = api_key_resolver
        self._candidates = candidates
        self._max_retries = max(0, max_retries)
        self._breaker_fails = max(1, breaker_consecutive_fails)
        self._state = FailoverState()

    @classmethod
    def from_config(cls) -> "FailoverDocumentExtractor":
        cfg = _config.load_llm_failover_config()
        return cls(
            api_key_resolver=_config.resolve_api_key,
            candidates=cfg.chain,
            max_retries=cfg.max_retries,
            breaker_consecutive_fails=cfg.breaker_consecutive_fails,
        )

    def is_disabled(self) -> bool:
        return self._state.disabled

    def _disable(self, reason: str) -> None:
        self._state.disabled = True
        self._state.disabled_reason = reason

    def extract(self, documents: Sequence[DocumentFile]) -> Dict[str, Any]:
        if self._state.disabled:
            raise ExtractionError(f"Document extraction disabled: {self._state.disabled_reason}")

        last_err: Optional[Exception] = None

        for provider, model in self._ordered_candidates():
            api_key = self._api_key_resolver(provider)
            if not api_key:
                last_err = ExtractionError(f"Missing API key for provider: {provider}")
                continue

            try:
                extractor = LLMDocumentExtractor(api_key=api_key, provider=provider, model=model)
            except ExtractionError as e:
                last_err = e
                continue

            for attempt in range(self._max_retries + 1):
                try:
                    out = extractor.extract(documents)

                    self._state.consecutive_failures = 0
                    self._state.sticky_provider = provider
                    self._state.sticky_model = model
                    return out

                except ExtractionError as e:
                    last_err = e
                    if _is_transient_error(e) and attempt < self._max_retries:
                        _sleep_backoff(attempt)
                        continue
                    break

            self._state.consecutive_failures += 1
            if self._state.consecutive_failures >= self._breaker_fails:
                self._disable(f"circuit-breaker tripped after {self._state.consecutive_failures} failures")
                break

        if last_err is None:
            last_err = ExtractionError("Document extraction failed: no candidates available")
        raise last_err

    def _ordered_candidates(self) -> List[Tuple[str, str]]:
        if self._state.sticky_provider and self._state.sticky_model:
            sticky = (self._state.sticky_provider, self._state.sticky_model)
            rest = [c for c in self._candidates if c != sticky]
            return [sticky] + rest
        return list(self._candidates)
