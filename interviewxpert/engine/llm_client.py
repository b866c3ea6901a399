# interviewxpert/engine/llm_client.py

import logging
from typing import Any, Dict, List, Optional

import requests

from interviewxpert.core.config import settings

logger = logging.getLogger(__name__)


class UpstreamNotConfiguredError(Exception):
    """The A4F API key is missing."""


class UpstreamError(Exception):
    """The upstream answered, but not with a usable chat-completions envelope."""

    def __init__(self, message: str, status_code: int = 502, details: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class QuestionGenerationClient:
    """
    Thin client for an OpenAI-compatible ``/chat/completions`` endpoint.

    One request per call. Transport failures are left to propagate as
    ``requests.RequestException``; callers decide whether to fall back.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str,
        timeout: float = 60.0,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.http = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self, user_id: Optional[str]) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "x-a4f-cache": "read",
        }
        if user_id:
            headers["x-a4f-metadata-user-id"] = user_id
        return headers

    def complete(self, messages: List[Dict[str, str]], user_id: Optional[str] = None) -> Dict[str, Any]:
        """POST the conversation and return the decoded response envelope."""
        if not self.configured:
            raise UpstreamNotConfiguredError("A4F API key not configured.")

        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

        logger.debug(f"POST {url} model={self.model}")
        response = self.http.post(
            url,
            headers=self._headers(user_id),
            json=payload,
            timeout=self.timeout,
        )

        if not response.ok:
            logger.error(f"A4F API error {response.status_code}: {response.text[:500]}")
            raise UpstreamError(
                "Failed to generate questions from A4F API.",
                status_code=response.status_code,
                details=response.text,
            )

        try:
            return response.json()
        except ValueError:
            logger.error(f"Failed to parse A4F response: {response.text[:500]}")
            raise UpstreamError("Invalid JSON response from A4F.", status_code=502)


def create_generation_client() -> QuestionGenerationClient:
    return QuestionGenerationClient(
        base_url=settings.A4F_BASE_URL,
        api_key=settings.A4F_API_KEY,
        model=settings.A4F_MODEL,
        timeout=settings.A4F_TIMEOUT_SECONDS,
        temperature=settings.A4F_TEMPERATURE,
        max_tokens=settings.A4F_MAX_TOKENS,
    )
