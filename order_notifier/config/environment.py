"""Environment variable loading and validation."""

import os
from email.utils import parseaddr
from typing import Dict, Mapping, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError
from .models import contains_header_break
from .providers import PROVIDER_PRESETS, ProviderConfig, build_provider_config, read_credentials

DEFAULT_PROVIDER = "gmail"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder.

    ``providers`` only contains presets whose credentials are configured; the
    selected ``provider`` is guaranteed to be among them.
    """

    def __init__(
        self,
        provider: str,
        providers: Dict[str, ProviderConfig],
        sender: Optional[str] = None,
        site_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.provider = provider
        self.providers = providers
        self.sender = sender
        self.site_url = site_url
        self.max_attempts = max_attempts
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def provider_config(self) -> ProviderConfig:
        """Connection parameters of the selected provider."""
        return self.providers[self.provider]


def load_environment_config(environ: Optional[Mapping[str, str]] = None) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Recognized variables:
    - EMAIL_PROVIDER: gmail (default), mailtrap, sendgrid or outlook
    - EMAIL_USER / EMAIL_PASS (or GMAIL_APP_PASSWORD): gmail credentials
    - MAILTRAP_USER / MAILTRAP_PASS: mailtrap credentials
    - SENDGRID_API_KEY: sendgrid API key
    - OUTLOOK_USER / OUTLOOK_PASS: outlook credentials
    - EMAIL_FROM: From header override
    - WEBSITE_URL: public store URL used in e-mail links
    - EMAIL_MAX_RETRIES: maximum send attempts (1-10)
    - SMTP_TIMEOUT: socket timeout in seconds (default 30)
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
    - ENVIRONMENT: label attached to log records

    Credentials of the selected provider are mandatory. There are no
    built-in fallback credentials.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    env = os.environ if environ is None else environ
    errors = []

    provider = (env.get("EMAIL_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
    if provider not in PROVIDER_PRESETS:
        errors.append(
            f"Unsupported EMAIL_PROVIDER: '{provider}'. "
            f"Supported providers: {', '.join(PROVIDER_PRESETS)}"
        )

    timeout = 30.0
    timeout_ok = True
    timeout_str = env.get("SMTP_TIMEOUT")
    if timeout_str:
        try:
            timeout = float(timeout_str)
            if timeout <= 0 or timeout > 300:
                timeout_ok = False
                errors.append(f"Invalid SMTP_TIMEOUT: {timeout_str}. Must be between 0 and 300.")
        except ValueError:
            timeout_ok = False
            errors.append(f"Invalid SMTP_TIMEOUT: '{timeout_str}'. Must be a number.")

    providers: Dict[str, ProviderConfig] = {}
    configured = set()
    for key, preset in PROVIDER_PRESETS.items():
        username, password = read_credentials(key, env)
        if username and password:
            configured.add(key)
            if timeout_ok:
                providers[key] = build_provider_config(key, username, password, timeout=timeout)
        elif preset.fixed_username is None and (username or password):
            present, missing = (
                (preset.username_vars[0], preset.password_vars[0])
                if username
                else (preset.password_vars[0], preset.username_vars[0])
            )
            errors.append(
                f"{present} is set but {missing} is not. Both must be set for {key}."
            )

    if provider in PROVIDER_PRESETS and provider not in configured:
        preset = PROVIDER_PRESETS[provider]
        required = [*preset.username_vars[:1], *preset.password_vars[:1]]
        errors.append(
            f"Missing credentials for provider '{provider}': set {' and '.join(required)}"
        )

    sender = env.get("EMAIL_FROM")
    if sender:
        sender = sender.strip()
        if contains_header_break(sender):
            errors.append("Invalid EMAIL_FROM: must not contain line breaks")
        else:
            _, address = parseaddr(sender)
            try:
                validate_email(address, check_deliverability=False)
            except EmailNotValidError as e:
                errors.append(f"Invalid EMAIL_FROM: '{sender}' - {e}")

    site_url = env.get("WEBSITE_URL")
    if site_url:
        site_url = site_url.strip()
        if not site_url.startswith(("http://", "https://")):
            errors.append(f"Invalid WEBSITE_URL: '{site_url}'. Must start with http:// or https://")

    max_attempts = None
    max_retries_str = env.get("EMAIL_MAX_RETRIES")
    if max_retries_str:
        try:
            max_attempts = int(max_retries_str)
            if max_attempts < 1 or max_attempts > 10:
                errors.append(
                    f"Invalid EMAIL_MAX_RETRIES: {max_attempts}. Must be between 1 and 10."
                )
        except ValueError:
            errors.append(
                f"Invalid EMAIL_MAX_RETRIES: '{max_retries_str}'. Must be a valid integer."
            )

    log_level = env.get("LOG_LEVEL")
    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Set EMAIL_PROVIDER and the credentials of that provider",
                "Check that EMAIL_FROM contains a valid address",
            ],
        )

    return EnvironmentConfig(
        provider=provider,
        providers=providers,
        sender=sender or None,
        site_url=site_url or None,
        max_attempts=max_attempts,
        log_level=log_level.upper() if log_level else None,
        environment=env.get("ENVIRONMENT"),
    )
