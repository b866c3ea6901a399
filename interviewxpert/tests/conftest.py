import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import interviewxpert.models.session  # noqa: F401
from interviewxpert.api.deps import (
    get_generation_service,
    get_question_acquirer,
    get_scoring_engine,
)
from interviewxpert.db.base import Base
from interviewxpert.db.session import get_db
from interviewxpert.engine.generator import QuestionAcquirer
from interviewxpert.engine.llm_client import QuestionGenerationClient
from interviewxpert.engine.question_bank import QuestionBank
from interviewxpert.engine.scorer import ScoringEngine
from interviewxpert.main import app
from interviewxpert.services.generation import GenerationService

FIXED_CLOCK = 1_700_000_000.0


def _mcq(tag, prompt, correct):
    return {
        "type": "mcq",
        "tags": [tag],
        "prompt": prompt,
        "options": ["Alpha", "Beta", "Gamma", "Delta"],
        "correct_answer": correct,
        "rationale": f"{correct} is the expected choice.",
    }


BANK_DATA = {
    "finance": {
        "Medium": [
            _mcq("npv", "Which metric discounts future cash flows?", "Beta"),
            _mcq("ratios", "Which ratio measures liquidity?", "Alpha"),
            {"type": "case_mini", "tags": ["roi"], "prompt": "ROI of 1000 returning 1300?", "correct_answer": 30},
            {"type": "scenario", "tags": ["budget"], "prompt": "Costs are over budget. What do you do?"},
            {"type": "roleplay", "tags": ["cfo"], "prompt": "Pitch a cost cut to the CFO."},
        ],
        "Easy": [
            _mcq("basics", "What does a budget plan?", "Gamma"),
        ],
    },
    "sales": {
        "Medium": [
            _mcq("pipeline", "Which stage follows qualification?", "Delta"),
            {"type": "roleplay", "tags": ["objection"], "prompt": "The prospect says the price is too high."},
            {"type": "scenario", "tags": ["quota"], "prompt": "You are behind quota mid-quarter."},
        ],
    },
}


@pytest.fixture
def bank():
    return QuestionBank.from_dict(BANK_DATA)


@pytest.fixture
def scorer():
    return ScoringEngine()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def acquirer(bank):
    return QuestionAcquirer(bank=bank, remote=None, clock=lambda: FIXED_CLOCK)


@pytest.fixture
def client(db_session, acquirer, scorer):
    def override_get_db():
        yield db_session

    unconfigured = QuestionGenerationClient(base_url="http://a4f.test/v1", api_key=None, model="test-model")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_question_acquirer] = lambda: acquirer
    app.dependency_overrides[get_scoring_engine] = lambda: scorer
    app.dependency_overrides[get_generation_service] = lambda: GenerationService(unconfigured)

    yield TestClient(app)

    app.dependency_overrides.clear()
