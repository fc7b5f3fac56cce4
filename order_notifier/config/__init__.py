"""Configuration management for the order notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import (
    apply_environment_overrides,
    load_config,
    load_notifier_config,
    load_preview_config,
    validate_config_file,
)
from .models import (
    DeliveryConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NotifierConfig,
    TemplateConfig,
)
from .providers import PROVIDER_PRESETS, ProviderConfig, build_provider_config

__all__ = [
    # Loader functions
    "load_config",
    "load_notifier_config",
    "load_preview_config",
    "validate_config_file",
    "load_environment_config",
    "apply_environment_overrides",
    # Configuration models
    "NotifierConfig",
    "DeliveryConfig",
    "TemplateConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "ProviderConfig",
    "PROVIDER_PRESETS",
    "build_provider_config",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
