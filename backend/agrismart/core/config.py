from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Upstream chat-completion provider (OpenRouter compatible)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_MODEL: str = "openai/gpt-3.5-turbo"
    OPENROUTER_MAX_TOKENS: int = 1000
    OPENROUTER_TEMPERATURE: float = 0.7
    OPENROUTER_TIMEOUT_SECONDS: float = 30.0

    # "production" hides internal error details from API responses
    ENVIRONMENT: str = "production"

    DATABASE_URL: str = "sqlite+aiosqlite:///./agrismart.db"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    LOG_DIR: str = "logs"

    # Timers
    ANALYZER_DELAY_SECONDS: float = 0.0
    CALCULATOR_DEBOUNCE_SECONDS: float = 0.5
    WEATHER_TICK_SECONDS: float = 5.0

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

settings = Settings()
