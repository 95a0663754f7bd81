"""
Configuration for the stock processor using pydantic-settings.

Handles environment variables and the validation feature flag.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load .env
load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AIServiceConfig:
    """
    Settings for the document AI adapter.

    Built explicitly and handed to the adapter at call time, so each call
    carries its own credentials and model.
    """
    api_key: str
    model: str = "gpt-4o"
    timeout_sec: float = 120.0
    max_output_tokens: int = 8000
    temperature: float = 0.1

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class ProcessorConfig(BaseSettings):
    """Full processor configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server
    port: int = Field(default=8080, description="FastAPI server port")

    # OpenAI (document path)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="Model used for document extraction")
    ai_timeout_sec: float = Field(default=120.0, gt=0, description="Timeout for a single AI call")
    ai_max_output_tokens: int = Field(default=8000, ge=1, le=32000, description="Max output tokens per AI call")

    # Spreadsheet import
    header_scan_rows: int = Field(default=20, ge=1, le=1000, description="Rows scanned for the header row")

    # Inventory views
    page_size: int = Field(default=50, ge=1, le=1000, description="Products per page in filtered views")

    # Export defaults
    default_tax_id: str = Field(
        default="500000000",
        pattern=r"^\d{9}$",
        description="Tax registration number (NIF), 9 digits"
    )
    default_fiscal_year: int = Field(
        default_factory=lambda: date.today().year,
        description="Fiscal year written in the XML header"
    )

    # Validation
    unify_negative_quantity_check: bool = Field(
        default=False,
        description="Apply the negative-quantity rule to spreadsheet records too"
    )

    # Processor info
    processor_name: str = Field(default="Stock Processor", description="Processor name")
    processor_version: str = Field(default="1.0.0", description="Processor version")

    def ai_service_config(self) -> AIServiceConfig:
        """Build the AI adapter settings from this configuration."""
        return AIServiceConfig(
            api_key=self.openai_api_key,
            model=self.openai_model,
            timeout_sec=self.ai_timeout_sec,
            max_output_tokens=self.ai_max_output_tokens,
        )

    def validate_config(self) -> bool:
        """Validate critical settings."""
        if not self.openai_api_key:
            # Warning, not an error: the spreadsheet path works without AI
            logger.warning("OPENAI_API_KEY not configured - document import disabled")

        if not self.unify_negative_quantity_check:
            logger.info(
                "Negative quantity check applies to document imports only "
                "(set UNIFY_NEGATIVE_QUANTITY_CHECK=true to apply it to spreadsheets)"
            )

        logger.info("Processor configuration validated")
        return True


# Global configuration instance
_config: Optional[ProcessorConfig] = None


def get_config() -> ProcessorConfig:
    """Return the configuration instance (singleton)."""
    global _config
    if _config is None:
        _config = ProcessorConfig()
        _config.validate_config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
