# interviewxpert/engine/parsing.py
"""
Recovery of a question array from LLM output.

Models do not reliably return clean JSON: the array may be bare, wrapped in
``{"questions": [...]}`` or ``{"data": [...]}``, fenced in Markdown, or buried
in prose. Each recovery technique is a named strategy that returns a typed
success or failure. Strategies run in a fixed order and the first success
wins; every attempt is kept on the outcome for logging and tests.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union


class QuestionParseError(Exception):
    """No strategy could recover a question array."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details


@dataclass(frozen=True)
class ParseSuccess:
    strategy: str
    shape: str  # array | questions | data
    items: List[Any]


@dataclass(frozen=True)
class ParseFailure:
    strategy: str
    reason: str


ParseResult = Union[ParseSuccess, ParseFailure]


@dataclass
class ParseOutcome:
    result: Optional[ParseSuccess] = None
    attempts: List[ParseResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result is not None

    def describe_failures(self) -> str:
        return "; ".join(
            f"{a.strategy}: {a.reason}" for a in self.attempts if isinstance(a, ParseFailure)
        )


# -------------------------------------------------
# Shape matching
# -------------------------------------------------

def match_shape(strategy: str, value: Any) -> ParseResult:
    """Accept a top-level array, or an object carrying a ``questions``/``data`` array."""
    if isinstance(value, list):
        return ParseSuccess(strategy=strategy, shape="array", items=value)

    if isinstance(value, dict):
        for key in ("questions", "data"):
            if isinstance(value.get(key), list):
                return ParseSuccess(strategy=strategy, shape=key, items=value[key])
        return ParseFailure(strategy, f"object without questions/data array (keys: {sorted(value)[:10]})")

    return ParseFailure(strategy, f"unexpected JSON type {type(value).__name__}")


def _decode(strategy: str, text: Optional[str]) -> ParseResult:
    if text is None:
        return ParseFailure(strategy, "no candidate JSON found")
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseFailure(strategy, f"invalid JSON: {e.msg} at position {e.pos}")
    return match_shape(strategy, value)


# -------------------------------------------------
# Text cleanup
# -------------------------------------------------

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_ARROW_FN = re.compile(r":\s*\([^)]*\)\s*=>\s*\{[^}]*\}")
_FUNCTION = re.compile(r":\s*function\s*\([^)]*\)\s*\{[^}]*\}")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def clean_model_output(text: str) -> str:
    """Strip code fences and the usual non-JSON debris models emit."""
    cleaned = _FENCE.sub("", text).strip()
    cleaned = _ARROW_FN.sub(": null", cleaned)
    cleaned = _FUNCTION.sub(": null", cleaned)
    cleaned = cleaned.replace("\u2018", "'").replace("\u2019", "'")
    cleaned = cleaned.replace("\u201c", '"').replace("\u201d", '"')
    cleaned = _TRAILING_COMMA.sub(r"\1", cleaned)
    return cleaned.strip()


def _search(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(0) if match else None


# -------------------------------------------------
# Strategies, in priority order
# -------------------------------------------------

def _direct(text: str) -> ParseResult:
    return _decode("direct", text)


def _cleaned(text: str) -> ParseResult:
    return _decode("cleaned", clean_model_output(text))


def _embedded_array(text: str) -> ParseResult:
    return _decode("embedded_array", _search(_ARRAY, clean_model_output(text)))


def _embedded_object(text: str) -> ParseResult:
    return _decode("embedded_object", _search(_OBJECT, clean_model_output(text)))


STRATEGIES: Tuple[Tuple[str, Callable[[str], ParseResult]], ...] = (
    ("direct", _direct),
    ("cleaned", _cleaned),
    ("embedded_array", _embedded_array),
    ("embedded_object", _embedded_object),
)


def parse_question_payload(content: Any) -> ParseOutcome:
    outcome = ParseOutcome()

    # some providers hand back already-decoded JSON
    if isinstance(content, (list, dict)):
        result = match_shape("native", content)
        outcome.attempts.append(result)
        if isinstance(result, ParseSuccess):
            outcome.result = result
        return outcome

    if not isinstance(content, str) or not content.strip():
        outcome.attempts.append(ParseFailure("input", "empty or non-text content"))
        return outcome

    for _, strategy in STRATEGIES:
        result = strategy(content)
        outcome.attempts.append(result)
        if isinstance(result, ParseSuccess):
            outcome.result = result
            break

    return outcome


def extract_message_content(envelope: Dict[str, Any]) -> Any:
    """Read ``choices[0].message.content`` from a chat-completions response."""
    try:
        return envelope["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise QuestionParseError(
            "Unexpected response format from A4F API.",
            details="Response does not contain expected choices structure",
        )
