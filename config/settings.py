"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/assessment.db")

    MAX_QUESTIONS: int = 18
    COMPLETENESS_FINISH_SCORE: int = 80
    MIN_QUESTIONS_FOR_SCORE_FINISH: int = 8
    MIN_QUESTIONS_ALL_ESSENTIAL: int = 10
    CAN_FINISH_ACTION_MIN_QUESTIONS: int = 12
    LOW_COMPLETENESS_SCORE: int = 70
    INITIAL_QUESTION_BUDGET: int = 15

    ROUTER_CANDIDATE_LIMIT: int = 8
    ROUTER_RECENT_EXCHANGES: int = 3
    LLM_TIMEOUT_S: float = 10.0

    SESSION_TTL_HOURS: int = 24
    TAG_MIN_ANSWER_CHARS: int = 10
    FOLLOWUP_SHORT_ANSWER_CHARS: int = 40

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
