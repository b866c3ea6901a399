from functools import lru_cache

from fastapi import Depends

from interviewxpert.core.config import settings
from interviewxpert.engine.generator import QuestionAcquirer
from interviewxpert.engine.llm_client import create_generation_client
from interviewxpert.engine.question_bank import QuestionBank, load_question_bank
from interviewxpert.engine.scorer import ScoringEngine, create_scoring_engine
from interviewxpert.services.generation import GenerationService


@lru_cache
def get_question_bank() -> QuestionBank:
    return load_question_bank(settings.QUESTION_BANK_PATH)


@lru_cache
def get_scoring_engine() -> ScoringEngine:
    return create_scoring_engine(settings.SCORING_CONFIG_PATH)


@lru_cache
def get_generation_service() -> GenerationService:
    return GenerationService(create_generation_client())


def get_question_acquirer(
    bank: QuestionBank = Depends(get_question_bank),
    remote: GenerationService = Depends(get_generation_service),
) -> QuestionAcquirer:
    return QuestionAcquirer(bank=bank, remote=remote)
