# interviewxpert/engine/generator.py
"""
Question acquisition: AI generation first, static bank as fallback.

The remote path is attempted exactly once. Any failure (transport, upstream
status, unparseable output, nothing usable left after de-duplication) drops
to a seeded selection from the injected ``QuestionBank``. Acquisition itself
never raises; an empty result is reported through ``source="none"``.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Collection, Iterable, List, Optional

import requests

from interviewxpert.engine.llm_client import UpstreamError, UpstreamNotConfiguredError
from interviewxpert.engine.parsing import QuestionParseError
from interviewxpert.engine.question_bank import BankEntry, QuestionBank
from interviewxpert.engine.randomness import SeededRandom, fisher_yates, seed_for_user
from interviewxpert.schemas.assessment import AssessmentConfig, Question
from interviewxpert.schemas.generation import GenerateQuestionsRequest, RemoteQuestion

logger = logging.getLogger(__name__)

LEVEL_MAP = {"Easy": "easy", "Medium": "medium", "Hard": "hard"}
INPUT_MODE_MAP = {"Text": "text", "Voice": "voice", "Both": "text-voice"}

FALLBACK_ERRORS = (
    requests.RequestException,
    UpstreamError,
    UpstreamNotConfiguredError,
    QuestionParseError,
)


@dataclass
class AcquisitionResult:
    questions: List[Question] = field(default_factory=list)
    source: str = "none"  # a4f | static | none
    fallback_reason: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.questions


def display_role(domain: str) -> str:
    """``soft-skills`` -> ``Soft skills``."""
    if not domain:
        return domain
    return domain[0].upper() + domain[1:].replace("-", " ", 1)


def build_remote_request(
    config: AssessmentConfig,
    used_ids: Iterable[str],
    user_id: Optional[str],
) -> GenerateQuestionsRequest:
    return GenerateQuestionsRequest(
        roles=[display_role(d) for d in config.domains],
        level=LEVEL_MAP.get(config.level, "medium"),
        interview_type="mix",
        question_types=["mcq", "qa"],
        duration_min=max(config.duration, 5),
        input_mode=INPUT_MODE_MAP.get(config.input_mode, "text"),
        resume_text="",
        used_ids=sorted(used_ids),
        user_id=user_id,
    )


def _map_remote_type(remote_type: str) -> str:
    if remote_type == "mcq":
        return "mcq"
    if remote_type in ("code", "debugging"):
        return "case_mini"
    return "scenario"


def convert_remote_question(remote: RemoteQuestion, index: int, config: AssessmentConfig) -> Question:
    """Map a generated question onto the assessment's domains and types."""
    domain = config.domains[index % len(config.domains)]
    options = [str(o) for o in remote.options] if remote.options else None

    correct = remote.correct_answer
    # generated MCQs point at the correct option by index
    if remote.type == "mcq" and isinstance(correct, int) and options:
        correct = options[correct] if 0 <= correct < len(options) else str(correct)

    return Question(
        id=remote.id,
        domain=domain,
        level=config.level,
        type=_map_remote_type(remote.type),
        tags=remote.tags or [domain],
        prompt=remote.prompt,
        context=f"Hint: {remote.hint}" if remote.hint else None,
        hint=remote.hint,
        options=options,
        correct_answer=correct,
        rationale=f"AI-generated question for {domain}",
        estimated_time=remote.estimated_time,
    )


def _to_question(qid: str, domain: str, level: str, entry: BankEntry) -> Question:
    return Question(
        id=qid,
        domain=domain,
        level=level,
        type=entry.type,
        tags=list(entry.tags),
        prompt=entry.prompt,
        context=entry.context,
        hint=entry.hint,
        options=list(entry.options) if entry.options else None,
        correct_answer=entry.correct_answer,
        rationale=entry.rationale,
        estimated_time=entry.estimated_time,
    )


def select_fallback_questions(
    bank: QuestionBank,
    config: AssessmentConfig,
    used_ids: Collection[str],
    rng: Callable[[], float],
) -> List[Question]:
    """
    Seeded selection from the static bank.

    Each domain gets ``ceil(N / D)`` picks from a shuffle of its unused
    entries. Cutting down to ``N`` keeps ``floor(N / D)`` picks of every
    domain (or all it has) and fills the remaining slots from the surplus.
    The result is shuffled again so domains are interleaved.
    """
    total = config.question_count()
    per_domain = math.ceil(total / len(config.domains))
    guaranteed = total // len(config.domains)
    used = set(used_ids)

    kept: List[Question] = []
    surplus: List[Question] = []
    for domain in config.domains:
        candidates = [
            (QuestionBank.entry_id(domain, config.level, entry, index), entry)
            for index, entry in enumerate(bank.entries(domain, config.level))
        ]
        available = [(qid, entry) for qid, entry in candidates if qid not in used]

        picks = [
            _to_question(qid, domain, config.level, entry)
            for qid, entry in fisher_yates(available, rng)[:per_domain]
        ]
        kept.extend(picks[:guaranteed])
        surplus.extend(picks[guaranteed:])

    kept.extend(fisher_yates(surplus, rng)[: max(0, total - len(kept))])
    return fisher_yates(kept, rng)


class QuestionAcquirer:
    """
    Produces the question list for one assessment session.

    Args:
        bank: static registry used for the fallback path
        remote: object with ``generate(GenerateQuestionsRequest)``; ``None``
            skips straight to the bank
        clock: seconds since the epoch, injectable for tests
    """

    def __init__(self, bank: QuestionBank, remote=None, clock: Callable[[], float] = time.time):
        self.bank = bank
        self.remote = remote
        self.clock = clock

    def acquire(
        self,
        config: AssessmentConfig,
        used_ids: Collection[str],
        user_id: str,
        seed: Optional[int] = None,
    ) -> AcquisitionResult:
        fallback_reason = "remote generation disabled"

        if self.remote is not None:
            try:
                questions = self._fetch_remote(config, used_ids, user_id)
            except FALLBACK_ERRORS as e:
                fallback_reason = f"{type(e).__name__}: {e}"
            else:
                if questions:
                    logger.info(f"Acquired {len(questions)} AI-generated questions for user {user_id}")
                    return AcquisitionResult(questions=questions, source="a4f")
                fallback_reason = "remote returned no usable questions"

            logger.warning(f"Falling back to static question bank ({fallback_reason})")

        if self.bank.is_empty_for(config.domains, config.level):
            logger.error(f"Question bank has no entries for domains={config.domains} level={config.level}")
            return AcquisitionResult(source="none", fallback_reason=fallback_reason)

        if seed is None:
            seed = seed_for_user(user_id, int(self.clock() * 1000))

        questions = select_fallback_questions(self.bank, config, used_ids, SeededRandom(seed))
        if not questions:
            logger.error(
                f"All bank questions already used for domains={config.domains} level={config.level}"
            )
            return AcquisitionResult(source="none", fallback_reason=fallback_reason)

        logger.info(f"Selected {len(questions)} fallback questions (seed={seed})")
        return AcquisitionResult(questions=questions, source="static", fallback_reason=fallback_reason)

    def _fetch_remote(self, config: AssessmentConfig, used_ids: Collection[str], user_id: str) -> List[Question]:
        response = self.remote.generate(build_remote_request(config, used_ids, user_id))

        used = set(used_ids)
        fresh = [q for q in response.questions if q.id not in used and q.prompt]
        converted = [convert_remote_question(q, i, config) for i, q in enumerate(fresh)]
        return converted[: config.question_count()]
