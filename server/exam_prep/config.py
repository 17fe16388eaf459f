from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application configuration settings"""

    # Application
    app_name: str = "Exam Prep Functions"
    debug: bool = False
    api_version: str = "v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./exam_prep.db"

    # LLM provider (OpenAI-compatible endpoint). Without a key the
    # generation endpoints serve fallback templates only.
    groq_api_key: Optional[str] = None
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_models: str = "llama3-70b-8192,llama3-8b-8192"
    analysis_model: str = "llama3-70b-8192"
    llm_timeout_seconds: float = 60.0

    # Question generation
    max_questions: int = 10
    stagger_seconds: float = 0.5
    max_attempts: int = 3
    backoff_base_seconds: float = 2.0
    backoff_cap_seconds: float = 15.0

    # CORS
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def llm_models_list(self) -> List[str]:
        """Primary model first, then alternates."""
        return [model.strip() for model in self.llm_models.split(",") if model.strip()]

    @property
    def llm_configured(self) -> bool:
        return bool(self.groq_api_key)

    # Client side
    functions_url: str = "http://localhost:8000/functions/v1"
    network_probe_url: str = "https://api.groq.com"
    history_file: str = "./question_history.json"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
