from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from typing import List, Optional

HOME_TOPIC_QUERY = "Home"


class Settings(BaseSettings):
    # App
    app_name: str = "DeepLearn API"
    environment: str = Field(default="development")
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Postgres
    postgres_host: str = Field(default="postgres")
    postgres_port: int = Field(default=5432)
    postgres_db: str = Field(default="deeplearn")
    postgres_user: str = Field(default="deeplearn")
    postgres_password: str = Field(default="deeplearn")
    postgres_pool_min_size: int = Field(default=1)
    postgres_pool_max_size: int = Field(default=10)

    # Auth (tokens are issued by the managed auth provider)
    auth_jwt_secret: Optional[str] = Field(default=None)
    auth_jwt_algorithm: str = Field(default="HS256")
    auth_jwt_audience: Optional[str] = Field(default="authenticated")

    # LLM provider (OpenAI-compatible chat completions)
    groq_api_key: Optional[str] = Field(default=None)
    llm_base_url: str = Field(default="https://api.groq.com/openai/v1")
    llm_completion_path: str = Field(default="/chat/completions")
    llm_timeout_seconds: float = Field(default=60.0)
    llm_default_model: str = Field(default="openai/gpt-oss-120b")
    llm_grounded_model: str = Field(default="groq/compound")
    llm_classifier_model: str = Field(default="llama-3.1-8b-instant")
    llm_classifier_max_tokens: int = Field(default=10)
    # Characters of the raw model reply kept in AI call logs.
    llm_log_preview_chars: int = Field(default=800)

    # Feed generation
    feed_threads_count: int = Field(default=6)
    feed_replies_per_thread: int = Field(default=5)
    feed_temperature: float = Field(default=0.7)
    feed_max_output_tokens: int = Field(default=8192)

    # Thread expansion from a Home suggestion
    expand_replies_count: int = Field(default=5)
    expand_temperature: float = Field(default=0.7)
    expand_max_output_tokens: int = Field(default=2048)

    # Follow-up questions
    ask_temperature: float = Field(default=0.6)
    ask_max_output_tokens: int = Field(default=400)

    # Home suggestions
    home_max_suggestions: int = Field(default=10)
    home_max_already_covered: int = Field(default=30)
    home_temperature: float = Field(default=0.8)
    home_max_output_tokens: int = Field(default=2048)
    # None keeps every stored suggestion.
    home_suggestions_max_stored: Optional[int] = Field(default=None)

    # Interests
    max_tags_count: int = Field(default=30)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
