"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

DEFAULT_SITE_URL = "https://tuspacio.vercel.app/"
DEFAULT_SENDER_NAME = "Tu Spacio, los expertos en belleza"

HEADER_BREAKS = ("\r", "\n")


def contains_header_break(value: str) -> bool:
    """Return True when a value would split an e-mail header line."""
    return any(char in value for char in HEADER_BREAKS)


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class DeliveryConfig(BaseModel):
    """Retry behaviour of the delivery executor."""

    max_attempts: int = Field(
        3, ge=1, le=10, description="Send attempts per notification, first one included"
    )
    backoff_unit_seconds: float = Field(
        1.0,
        gt=0,
        le=60,
        description="Length of one backoff time unit; attempt n waits 2**n units",
    )


class TemplateConfig(BaseModel):
    """Overrides applied by the template renderer."""

    sender: Optional[str] = Field(
        None, description="From header; defaults to the provider login"
    )
    sender_name: str = Field(
        DEFAULT_SENDER_NAME, min_length=1, description="Display name used with the default sender"
    )
    site_url: str = Field(
        DEFAULT_SITE_URL, description="Public store URL used in footer and call-to-action links"
    )
    subjects: Dict[str, str] = Field(
        default_factory=dict, description="Subject overrides keyed by notification kind"
    )
    autoescape: bool = Field(
        False, description="Enable Jinja2 HTML autoescaping of interpolated values"
    )

    @field_validator("sender", "sender_name")
    @classmethod
    def validate_header_value(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Trim header values and reject embedded line breaks.

        A blank ``sender`` means no override; a blank ``sender_name`` is an error.
        """
        if v is None:
            return v
        stripped = v.strip()
        if contains_header_break(stripped):
            raise ValueError("must not contain line breaks")
        if not stripped:
            if info.field_name == "sender":
                return None
            raise ValueError("cannot be blank")
        return stripped

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        stripped = v.strip()
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("site_url must start with http:// or https://")
        return stripped

    @field_validator("subjects")
    @classmethod
    def strip_subjects(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Trim subjects and reject blank ones."""
        cleaned = {}
        for kind, subject in v.items():
            stripped = subject.strip()
            if not stripped:
                raise ValueError(f"Subject override for '{kind}' cannot be empty")
            if contains_header_break(stripped):
                raise ValueError(f"Subject override for '{kind}' must not contain line breaks")
            cleaned[kind.strip()] = stripped
        return cleaned


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class NotifierConfig(BaseModel):
    """Root configuration object loaded from config.yaml."""

    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    templates: TemplateConfig = Field(default_factory=TemplateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
