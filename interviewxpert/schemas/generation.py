# interviewxpert/schemas/generation.py
"""
Wire models of the question-generation proxy.

These keep the camelCase field names the frontend already sends and reads.
"""

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateQuestionsRequest(CamelModel):
    roles: List[str] = Field(..., min_length=1)
    level: Literal["easy", "medium", "hard"]
    interview_type: Literal["technical", "behavioural", "mix"]
    question_types: List[str] = Field(..., min_length=1)
    duration_min: float = Field(..., ge=5)
    input_mode: Literal["text", "voice", "text-voice"]
    resume_text: Optional[str] = None
    used_ids: List[str] = []
    user_id: Optional[str] = None


class RemoteQuestion(CamelModel):
    """A normalised AI-generated question."""
    id: str
    type: str = "qa"
    prompt: str = ""
    options: List[Any] = []
    correct_answer: Optional[Union[int, float, str]] = None
    hint: Optional[str] = None
    language: str = "javascript"
    code_snippet: Optional[str] = None
    skill: str = "General"
    difficulty: str = "medium"
    tags: List[str] = []
    estimated_time: int = 120
    rubric_target: str = "general"
    tests: Optional[List[Any]] = None


class GenerateQuestionsResponse(CamelModel):
    questions: List[RemoteQuestion]
    source: str = "a4f"
    count: int
