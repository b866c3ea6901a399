from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL_DOCKER: Optional[str] = None
    DATABASE_URL_LOCAL: str = "sqlite:///./interviewxpert.db"
    USE_DOCKER_DB: bool = False

    # A4F (OpenAI-compatible) question generation upstream
    A4F_BASE_URL: str = "https://api.a4f.co/v1"
    A4F_API_KEY: Optional[str] = None
    A4F_MODEL: str = "provider-5/gpt-4o-mini"
    A4F_TIMEOUT_SECONDS: float = 60.0
    A4F_TEMPERATURE: float = 0.7
    A4F_MAX_TOKENS: int = 4000

    # Questions seen inside this window are not asked again
    USED_QUESTION_WINDOW_DAYS: int = 90

    QUESTION_BANK_PATH: Optional[str] = None
    SCORING_CONFIG_PATH: Optional[str] = None

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    REPORTS_DIR: str = "reports"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def DATABASE_URL(self) -> str:
        """
        Use the docker DB only when explicitly requested.
        """
        if self.USE_DOCKER_DB and self.DATABASE_URL_DOCKER:
            return self.DATABASE_URL_DOCKER
        return self.DATABASE_URL_LOCAL


settings = Settings()
