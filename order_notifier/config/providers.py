"""SMTP provider presets and the per-provider connection model."""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, SecretStr


class ProviderConfig(BaseModel):
    """Connection parameters for one SMTP provider.

    Built once at startup from the presets below plus credentials taken from
    the environment. Read-only afterwards.
    """

    key: str = Field(..., min_length=1, description="Provider key, e.g. 'gmail'")
    host: str = Field(..., min_length=1, description="SMTP server hostname")
    port: int = Field(..., ge=1, le=65535, description="SMTP server port")
    secure: bool = Field(False, description="Connect with implicit TLS (SMTP_SSL)")
    starttls: bool = Field(True, description="Upgrade plain connections with STARTTLS")
    username: str = Field(..., min_length=1, description="SMTP login")
    password: SecretStr = Field(..., description="SMTP password or API key")
    timeout: float = Field(30.0, gt=0, le=300, description="Socket timeout in seconds")

    model_config = {"frozen": True}


@dataclass(frozen=True)
class ProviderPreset:
    """Static host/port/security shape of a supported provider.

    ``username_vars`` and ``password_vars`` list the environment variables
    consulted in order. ``fixed_username`` is used by providers whose login is
    a protocol constant rather than a secret.
    """

    host: str
    port: int
    secure: bool
    starttls: bool
    username_vars: Tuple[str, ...] = ()
    password_vars: Tuple[str, ...] = ()
    fixed_username: Optional[str] = None


PROVIDER_PRESETS: Dict[str, ProviderPreset] = {
    "gmail": ProviderPreset(
        host="smtp.gmail.com",
        port=465,
        secure=True,
        starttls=False,
        username_vars=("EMAIL_USER",),
        password_vars=("EMAIL_PASS", "GMAIL_APP_PASSWORD"),
    ),
    "mailtrap": ProviderPreset(
        host="smtp.mailtrap.io",
        port=2525,
        secure=False,
        starttls=True,
        username_vars=("MAILTRAP_USER",),
        password_vars=("MAILTRAP_PASS",),
    ),
    "sendgrid": ProviderPreset(
        host="smtp.sendgrid.net",
        port=587,
        secure=False,
        starttls=True,
        password_vars=("SENDGRID_API_KEY",),
        fixed_username="apikey",
    ),
    "outlook": ProviderPreset(
        host="smtp-mail.outlook.com",
        port=587,
        secure=False,
        starttls=True,
        username_vars=("OUTLOOK_USER",),
        password_vars=("OUTLOOK_PASS",),
    ),
}


def _first_set(environ: Mapping[str, str], names: Tuple[str, ...]) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value and value.strip():
            return value.strip()
    return None


def read_credentials(
    key: str, environ: Mapping[str, str]
) -> Tuple[Optional[str], Optional[str]]:
    """Return the (username, password) configured for a provider.

    Either element is None when the corresponding variable is unset. There is
    deliberately no literal fallback.

    Raises:
        KeyError: If ``key`` is not a known preset
    """
    preset = PROVIDER_PRESETS[key]
    username = preset.fixed_username or _first_set(environ, preset.username_vars)
    password = _first_set(environ, preset.password_vars)
    return username, password


def build_provider_config(
    key: str, username: str, password: str, timeout: float = 30.0
) -> ProviderConfig:
    """Combine a preset with credentials into a ProviderConfig."""
    preset = PROVIDER_PRESETS[key]
    return ProviderConfig(
        key=key,
        host=preset.host,
        port=preset.port,
        secure=preset.secure,
        starttls=preset.starttls,
        username=username,
        password=SecretStr(password),
        timeout=timeout,
    )
