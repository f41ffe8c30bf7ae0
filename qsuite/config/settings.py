from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Literal, Optional


class Settings(BaseSettings):
    # API Configuration
    debug: bool = False
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"

    # AI provider selection: "openai" or "gemini"
    ai_provider: Literal["openai", "gemini"] = "openai"

    # OpenAI Configuration (secrets come from environment)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Gemini Configuration (optional)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-pro"

    # Test case generation parameters
    generation_temperature: float = 0.3
    generation_top_p: float = 0.8
    generation_max_tokens: int = 1500

    # AI chat parameters
    chat_temperature: float = 0.7
    chat_top_p: float = 1.0
    chat_max_tokens: int = 2000

    # Category used when the user confirms generated cases without choosing one
    default_category_name: str = "AI Generated"

    # Database Configuration
    database_url: str = "sqlite:///./data/qsuite.db"

    # Security
    # JWT secret of the backend that issues user access tokens
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    # Leave empty to skip audience verification
    jwt_audience: Optional[str] = "authenticated"
    access_token_expire_minutes: int = 60

    # Logging
    log_level: str = "INFO"

    @field_validator("ai_provider", mode="before")
    @classmethod
    def normalize_provider(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
