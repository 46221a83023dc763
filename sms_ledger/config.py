"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "sms-ledger-gateway"
    log_level: str = "INFO"

    # Pipeline
    rule_cache_ttl_seconds: float = 300.0
    strict_extraction: bool = False  # Missing amount/direction becomes a 422

    # Backends: "sheets" or "database"
    rule_backend: str = "sheets"
    store_backend: str = "sheets"

    # Database (alternative rule source and store)
    database_url: str = "sqlite:///./ledger.db"

    # Google Sheets
    google_sheets_id: str = ""
    google_client_email: str = ""
    google_private_key: str = ""
    rules_range: str = "Merchant Rules!A2:D"
    transactions_range: str = "Monthly Spending!A:I"

    # Fallback classifier (Gemini)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_temperature: float = 0.1
    gemini_max_output_tokens: int = 256
    classifier_max_message_chars: int = 500

    # Store writes
    store_max_retries: int = 3
    store_backoff_base: float = 0.5  # Exponential backoff base in seconds


settings = Settings()
