"""Configuration settings for Pashoot Reports."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Flat settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )

    # Source API transport
    source_timeout: float = Field(default=30.0, validation_alias="SOURCE_TIMEOUT")
    source_max_retries: int = Field(
        default=0,
        validation_alias="SOURCE_MAX_RETRIES",
        description="Retries for transport errors; 0 leaves retry policy to the caller",
    )
    sync_record_limit: int = Field(
        default=100,
        validation_alias="SYNC_RECORD_LIMIT",
        description="Most recent native records pulled per record kind on each sync",
    )
    gusto_payroll_limit: int = Field(default=50, validation_alias="GUSTO_PAYROLL_LIMIT")

    # Source API endpoints
    square_environment: Literal["sandbox", "production"] = Field(
        default="sandbox", validation_alias="SQUARE_ENVIRONMENT"
    )
    stripe_api_url: str = Field(
        default="https://api.stripe.com", validation_alias="STRIPE_API_URL"
    )
    xero_api_url: str = Field(default="https://api.xero.com", validation_alias="XERO_API_URL")
    wave_api_url: str = Field(default="https://gql.waveapps.com", validation_alias="WAVE_API_URL")
    gusto_api_url: str = Field(default="https://api.gusto.com", validation_alias="GUSTO_API_URL")
    airtable_api_url: str = Field(
        default="https://api.airtable.com", validation_alias="AIRTABLE_API_URL"
    )
    notion_api_url: str = Field(default="https://api.notion.com", validation_alias="NOTION_API_URL")

    # Report parameter defaults (overridable per user via ReportParameters)
    monthly_budget_income: float = Field(
        default=10000.0, validation_alias="MONTHLY_BUDGET_INCOME"
    )
    monthly_budget_expenses: float = Field(
        default=7000.0, validation_alias="MONTHLY_BUDGET_EXPENSES"
    )
    default_sales_tax_rate: float = Field(
        default=0.08, validation_alias="DEFAULT_SALES_TAX_RATE"
    )
    self_employment_tax_rate: float = Field(
        default=0.153, validation_alias="SELF_EMPLOYMENT_TAX_RATE"
    )
    estimated_income_tax_rate: float = Field(
        default=0.22, validation_alias="ESTIMATED_INCOME_TAX_RATE"
    )
    contractor_1099_threshold: float = Field(
        default=600.0, validation_alias="CONTRACTOR_1099_THRESHOLD"
    )

    # Chat assistant
    anthropic_api_key: SecretStr | None = Field(
        default=None, validation_alias="ANTHROPIC_API_KEY"
    )
    claude_model: str = Field(default="claude-sonnet-4-20250514", validation_alias="CLAUDE_MODEL")
    chat_max_tokens: int = Field(default=1024, validation_alias="CHAT_MAX_TOKENS")
    chat_monthly_limit: int = Field(default=20, validation_alias="CHAT_MONTHLY_LIMIT")

    @property
    def square_api_url(self) -> str:
        """Square base URL for the configured environment."""
        if self.square_environment == "production":
            return "https://connect.squareup.com"
        return "https://connect.squareupsandbox.com"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
