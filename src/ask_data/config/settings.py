from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings managed via Pydantic Settings.
    Reads variables from environment and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # --- Application Meta ---
    APP_NAME: str = "Ask Data"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # --- AI/LLM Configuration ---
    # Optional: without a key every query goes through keyword matching
    GROQ_API_KEY: Optional[str] = Field(None, description="API Key for Groq Cloud")

    DEFAULT_MODEL: str = "llama-3.3-70b-versatile"
    TEMPERATURE: float = 0.1
    INTENT_MAX_TOKENS: int = 800
    CHART_MAX_TOKENS: int = 3000
    INTENT_TIMEOUT_SECONDS: float = 10.0
    CHART_TIMEOUT_SECONDS: float = 20.0

    # --- Server Configuration ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # --- Data Ingestion Limits ---
    MAX_UPLOAD_SIZE_MB: int = 10
    PREVIEW_ROWS: int = 10
    FULL_DATA_MAX_ROWS: int = 5000
    SCHEMA_SAMPLE_ROWS: int = 1
    SAMPLE_DATA_DIR: str = "data/samples"
    DATASET_TTL_SECONDS: Optional[float] = None

    # --- Result Shaping ---
    RESULT_ROW_CAP: int = Field(20, ge=1)
    TABLE_ROW_THRESHOLD: int = Field(20, ge=1)

    @field_validator("GROQ_API_KEY")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        """
        Normalises a blank key to None so "not configured" has one spelling.
        """
        if v is None:
            return v
        v = v.strip()
        return v or None

    @property
    def llm_configured(self) -> bool:
        return bool(self.GROQ_API_KEY)


settings = Settings()
