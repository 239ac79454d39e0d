"""
Configuration module for Factura.

Handles settings for the Gemini extraction client, the engine's reset
policy, the downstream billing API and the HTTP server.

There is no global configuration object and no embedded credential:
load_config() builds a fresh AppConfig from the environment and callers
pass the pieces they need to the objects they construct.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .engine_core.errors import ConfigurationError
from .engine_core.questions import Modality, questions_for

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


@dataclass
class GeminiConfig:
    """Configuration for the Gemini extraction client."""
    api_key: str | None = None
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.1
    timeout: int = 60  # Seconds
    max_retries: int = 3  # Connection errors and timeouts only
    image_max_size: int = 1536  # Longest side, pixels

    @classmethod
    def from_env(cls) -> GeminiConfig:
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or None,
            model=os.getenv("FACTURA_GEMINI_MODEL", cls.model),
            timeout=_env_int("FACTURA_GEMINI_TIMEOUT", cls.timeout),
            image_max_size=_env_int("FACTURA_IMAGE_MAX_SIZE", cls.image_max_size),
        )

    def validate_api_key(self) -> tuple[bool, str]:
        """Validate the API key is set."""
        if not self.api_key:
            return False, (
                "Gemini API key not set.\n"
                "Set it via environment variable: GEMINI_API_KEY=your_key"
            )
        return True, "Gemini API key is configured"


@dataclass
class EngineConfig:
    """Reconciliation engine policy."""
    # Keep the accumulated record when resetting out of ERROR
    preserve_record_on_reset: bool = False
    # Overrides the built-in question list for every modality
    custom_questions: list[str] | None = None

    @classmethod
    def from_env(cls) -> EngineConfig:
        return cls(
            preserve_record_on_reset=_env_bool("FACTURA_PRESERVE_RECORD_ON_RESET"),
        )

    def questions(self, modality: Modality) -> tuple[str, ...]:
        try:
            return questions_for(modality, self.custom_questions)
        except ValueError as e:
            raise ConfigurationError(str(e))


@dataclass
class BillingConfig:
    """Downstream billing API that consumes finalized records."""
    url: str | None = None
    token: str | None = None
    timeout: int = 30

    @classmethod
    def from_env(cls) -> BillingConfig:
        return cls(
            url=os.getenv("FACTURA_BILLING_URL") or None,
            token=os.getenv("FACTURA_BILLING_TOKEN") or None,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.url)


@dataclass
class ApiConfig:
    """HTTP server settings."""
    env: str = "development"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    session_max_age_seconds: int = 3600

    @classmethod
    def from_env(cls) -> ApiConfig:
        return cls(
            env=os.getenv("FACTURA_ENV", "development"),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
            session_max_age_seconds=_env_int("FACTURA_SESSION_MAX_AGE", cls.session_max_age_seconds),
        )


@dataclass
class AppConfig:
    """Main application configuration."""
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    billing: BillingConfig = field(default_factory=BillingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)


def load_config() -> AppConfig:
    """Build configuration from environment variables."""
    return AppConfig(
        gemini=GeminiConfig.from_env(),
        engine=EngineConfig.from_env(),
        billing=BillingConfig.from_env(),
        api=ApiConfig.from_env(),
    )
