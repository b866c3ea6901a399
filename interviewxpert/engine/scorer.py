# interviewxpert/engine/scorer.py

import json
import logging
import math
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from interviewxpert.schemas.assessment import (
    Answer,
    Question,
    QuestionDetail,
    QuestionType,
    RubricBreakdown,
)

logger = logging.getLogger(__name__)


def _default_weights() -> Dict[str, float]:
    return {
        QuestionType.MCQ.value: 1.0,
        QuestionType.SCENARIO.value: 1.0,
        QuestionType.ROLEPLAY.value: 1.5,
        QuestionType.CASE_MINI.value: 1.5,
    }


def _default_domain_keywords() -> Dict[str, Tuple[str, ...]]:
    return {
        "finance": ("budget", "cost", "revenue", "profit", "roi", "cash flow", "investment", "risk"),
        "soft-skills": ("communication", "team", "feedback", "leadership", "conflict", "collaboration"),
        "marketing": ("customer", "brand", "campaign", "conversion", "funnel", "segment", "target"),
        "sales": ("prospect", "objection", "value", "solution", "close", "relationship", "needs"),
        "hr": ("employee", "performance", "culture", "development", "recruitment", "retention"),
        "operations": ("process", "efficiency", "workflow", "optimization", "quality", "metrics"),
        "consulting": ("analysis", "recommendation", "strategy", "framework", "solution", "implementation"),
    }


@dataclass
class RubricConfig:
    """
    Knobs of the free-text heuristic rubric.

    Every dimension starts at ``base`` and only gains credit; each is then
    clamped to [0, 1] and the five are averaged with equal weight.
    """
    min_length: int = 10
    floor: float = 0.1
    base: float = 0.5
    clarity_thresholds: Tuple[int, ...] = (100, 200)
    clarity_step: float = 0.2
    structure_markers: Tuple[str, ...] = ("situation", "task", "action", "result")
    structure_marker_bonus: float = 0.3
    sentence_threshold: int = 3
    sentence_bonus: float = 0.2
    keyword_accuracy_step: float = 0.1
    keyword_accuracy_cap: float = 0.4
    keyword_relevance_step: float = 0.075
    keyword_relevance_cap: float = 0.3
    commitment_phrases: Tuple[str, ...] = ("I would", "I will", "My approach")
    commitment_bonus: float = 0.2
    professional_tone_bonus: float = 0.1

    def __post_init__(self):
        if not 0 <= self.floor <= 1:
            raise ValueError("floor must be between 0 and 1")
        if self.min_length < 0:
            raise ValueError("min_length must be non-negative")


@dataclass
class ScoringConfig:
    """Per-type weights, fallback credit and rubric settings."""
    weights: Dict[str, float] = field(default_factory=_default_weights)
    default_weight: float = 1.0
    unknown_type_credit: float = 0.5
    rubric: RubricConfig = field(default_factory=RubricConfig)
    domain_keywords: Dict[str, Tuple[str, ...]] = field(default_factory=_default_domain_keywords)

    def __post_init__(self):
        if any(w < 0 for w in self.weights.values()) or self.default_weight < 0:
            raise ValueError("weights must be non-negative")
        if not 0 <= self.unknown_type_credit <= 1:
            raise ValueError("unknown_type_credit must be between 0 and 1")

    def weight_for(self, question_type: str) -> float:
        return self.weights.get(question_type, self.default_weight)


def load_scoring_config(path: Optional[Union[str, Path]] = None) -> ScoringConfig:
    """
    Build a ScoringConfig, overriding defaults with values from a JSON file.

    Unknown keys are ignored. ``domain_keywords`` replaces the default
    keyword lists per domain rather than merging word by word.
    """
    config = ScoringConfig()
    if not path:
        return config

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    rubric_fields = {f.name for f in fields(RubricConfig)}
    rubric_overrides = {
        k: tuple(v) if isinstance(v, list) else v
        for k, v in (raw.get("rubric") or {}).items()
        if k in rubric_fields
    }

    weights = dict(config.weights)
    weights.update(raw.get("weights") or {})

    keywords = dict(config.domain_keywords)
    keywords.update({d: tuple(words) for d, words in (raw.get("domain_keywords") or {}).items()})

    config = replace(
        config,
        weights=weights,
        default_weight=float(raw.get("default_weight", config.default_weight)),
        unknown_type_credit=float(raw.get("unknown_type_credit", config.unknown_type_credit)),
        rubric=replace(config.rubric, **rubric_overrides),
        domain_keywords=keywords,
    )
    logger.info(f"Loaded scoring config overrides from {path}")
    return config


@dataclass
class QuestionScore:
    score: float
    weight: float
    rule: str
    rubric: Optional[RubricBreakdown] = None


@dataclass
class ScoringResult:
    overall_score: float
    details: List[QuestionDetail]


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


_SPECIAL_CHARS = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>?]""")
_SENTENCE_PUNCT = re.compile(r"[.,!?]")


class ScoringEngine:
    """
    RULE-BASED SESSION SCORER.

    Pure function of (questions, answers): no I/O, no clock, no randomness.
    Malformed questions degrade to partial credit instead of raising.

    - mcq: exact match, 1 or 0
    - case_mini: relative error, clamped to [0, 1]
    - scenario / roleplay: five-dimension heuristic rubric
    - anything else: ``unknown_type_credit``
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    # ------------------------------------------------------------
    # Text helpers
    # ------------------------------------------------------------

    def _normalize_text(self, text: str) -> str:
        """Lowercase, punctuation to spaces, collapse whitespace."""
        if not isinstance(text, str):
            return ""
        text = text.lower()
        text = re.sub(r"[^\w\s]", " ", text)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    def answer_text(self, answer: Answer) -> str:
        value = answer.value
        text = value if isinstance(value, str) else ("" if value is None else str(value))
        if not text.strip():
            text = answer.transcript or ""
        return text

    def keyword_matches(self, text: str, domain: str) -> List[str]:
        normalized = self._normalize_text(text)
        return [
            keyword for keyword in self.config.domain_keywords.get(domain, ())
            if self._normalize_text(keyword) in normalized
        ]

    # ------------------------------------------------------------
    # Per-type rules
    # ------------------------------------------------------------

    def score_mcq(self, question: Question, answer: Answer) -> QuestionScore:
        weight = self.config.weight_for(question.type)
        correct = question.correct_answer
        if correct is None:
            return QuestionScore(self.config.unknown_type_credit, weight, "missing_correct_answer")

        value = answer.value
        # a choice index against an option-text key
        if isinstance(value, int) and not isinstance(value, bool) and isinstance(correct, str) and question.options:
            if 0 <= value < len(question.options):
                value = question.options[value]

        return QuestionScore(1.0 if value == correct else 0.0, weight, "exact_match")

    def score_numeric(self, question: Question, answer: Answer) -> QuestionScore:
        weight = self.config.weight_for(question.type)
        correct = question.correct_answer
        if isinstance(correct, bool) or not isinstance(correct, (int, float)) or not math.isfinite(correct):
            return QuestionScore(self.config.unknown_type_credit, weight, "missing_correct_answer")

        value = _as_number(answer.value)
        if value is None:
            return QuestionScore(0.0, weight, "relative_error")

        if correct == 0:
            return QuestionScore(1.0 if value == 0 else 0.0, weight, "exact_match")

        accuracy = 1 - abs(value - correct) / abs(correct)
        return QuestionScore(_clamp(accuracy), weight, "relative_error")

    def rubric_breakdown(self, text: str, domain: str) -> RubricBreakdown:
        """
        Heuristic rubric for free-text answers.

        Args:
            text: the answer (or transcript)
            domain: selects the keyword list

        Returns:
            Each of the five dimensions clamped to [0, 1]
        """
        rc = self.config.rubric
        clarity = relevance = structure = communication = accuracy = rc.base

        for threshold in rc.clarity_thresholds:
            if len(text) > threshold:
                clarity += rc.clarity_step

        lowered = text.lower()
        if any(marker in lowered for marker in rc.structure_markers):
            structure += rc.structure_marker_bonus
        if len(text.split(".")) > rc.sentence_threshold:
            structure += rc.sentence_bonus

        matches = len(self.keyword_matches(text, domain))
        accuracy += min(rc.keyword_accuracy_cap, matches * rc.keyword_accuracy_step)
        relevance += min(rc.keyword_relevance_cap, matches * rc.keyword_relevance_step)

        if any(phrase in text for phrase in rc.commitment_phrases):
            communication += rc.commitment_bonus
        if not _SPECIAL_CHARS.search(_SENTENCE_PUNCT.sub("", text)):
            communication += rc.professional_tone_bonus

        return RubricBreakdown(
            clarity=_clamp(clarity),
            relevance=_clamp(relevance),
            structure=_clamp(structure),
            communication=_clamp(communication),
            domain_accuracy=_clamp(accuracy),
        )

    def score_free_text(self, question: Question, answer: Answer) -> QuestionScore:
        rc = self.config.rubric
        weight = self.config.weight_for(question.type)
        text = self.answer_text(answer)

        if len(text.strip()) < rc.min_length:
            return QuestionScore(rc.floor, weight, "rubric_floor")

        rubric = self.rubric_breakdown(text, question.domain)
        average = (
            rubric.clarity
            + rubric.relevance
            + rubric.structure
            + rubric.communication
            + rubric.domain_accuracy
        ) / 5
        return QuestionScore(_clamp(average, rc.floor, 1.0), weight, "rubric", rubric)

    def score_question(self, question: Question, answer: Answer) -> QuestionScore:
        qtype = question.type
        if qtype == QuestionType.MCQ.value:
            return self.score_mcq(question, answer)
        if qtype == QuestionType.CASE_MINI.value:
            return self.score_numeric(question, answer)
        if qtype in (QuestionType.SCENARIO.value, QuestionType.ROLEPLAY.value):
            return self.score_free_text(question, answer)

        logger.debug(f"No scoring rule for type '{qtype}', using default credit")
        return QuestionScore(self.config.unknown_type_credit, self.config.weight_for(qtype), "default_credit")

    # ------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------

    def _scored(
        self,
        questions: Sequence[Question],
        answers: Mapping[int, Answer],
    ) -> List[Tuple[int, Question, Optional[Answer], Optional[QuestionScore]]]:
        rows = []
        for index, question in enumerate(questions):
            answer = answers.get(index)
            score = self.score_question(question, answer) if answer is not None else None
            rows.append((index, question, answer, score))
        return rows

    @staticmethod
    def _aggregate(scores: List[QuestionScore]) -> float:
        total_weight = sum(s.weight for s in scores)
        if total_weight <= 0:
            return 0.0
        weighted = sum(s.score * s.weight for s in scores)
        return round_half_up(weighted / total_weight * 100, 1)

    def calculate_score(self, questions: Sequence[Question], answers: Mapping[int, Answer]) -> float:
        """
        Weighted percentage over the answered questions.

        Unanswered indices add nothing to numerator or denominator; no answers
        at all gives 0.0.
        """
        scored = [s for _, _, _, s in self._scored(questions, answers) if s is not None]
        return self._aggregate(scored)

    def evaluate(self, questions: Sequence[Question], answers: Mapping[int, Answer]) -> ScoringResult:
        rows = self._scored(questions, answers)
        details = [self._detail(i, q, a, s) for i, q, a, s in rows]
        overall = self._aggregate([s for _, _, _, s in rows if s is not None])
        return ScoringResult(overall_score=overall, details=details)

    def _detail(
        self,
        index: int,
        question: Question,
        answer: Optional[Answer],
        score: Optional[QuestionScore],
    ) -> QuestionDetail:
        detail = QuestionDetail(
            index=index,
            qid=question.id,
            domain=question.domain,
            level=question.level,
            type=question.type,
            prompt=question.prompt,
            answered=answer is not None,
            rationale=question.rationale or "",
        )
        if answer is None or score is None:
            return detail

        detail.answer_text = "" if answer.value is None else str(answer.value)
        detail.transcript_text = answer.transcript or ""
        detail.time_s = answer.time_spent
        detail.score = round(score.score, 4)
        detail.weight = score.weight
        detail.rubric = score.rubric

        if question.type == QuestionType.MCQ.value:
            detail.mcq_choice = answer.value
            if score.rule == "exact_match":
                detail.correct = score.score == 1.0
        elif question.type == QuestionType.CASE_MINI.value:
            detail.numeric_value = _as_number(answer.value)

        return detail


def create_scoring_engine(config_path: Optional[str] = None) -> ScoringEngine:
    return ScoringEngine(load_scoring_config(config_path))
