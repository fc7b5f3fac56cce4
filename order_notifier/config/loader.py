"""Configuration loader for the order notifier."""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import NotifierConfig
from .providers import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_CANDIDATES = (
    Path("config.yaml"),
    Path("config") / "config.yaml",
)


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[NotifierConfig, EnvironmentConfig]:
    """
    Load configuration from an optional YAML file and the environment.

    The YAML file is optional: when no path is given and none of the default
    locations exist, built-in defaults are used. Environment values take
    precedence over the file for the sender, site URL and retry count.

    Args:
        config_path: Optional explicit path to a configuration file
        environ: Mapping to read environment variables from (defaults to os.environ)

    Returns:
        Tuple of (NotifierConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If the file or the environment is invalid
    """
    notifier_config = load_notifier_config(config_path)
    env_config = load_environment_config(environ)
    return apply_environment_overrides(notifier_config, env_config), env_config


def load_notifier_config(config_path: Optional[Path] = None) -> NotifierConfig:
    """
    Load only the YAML part of the configuration.

    Args:
        config_path: Optional explicit path to a configuration file

    Returns:
        NotifierConfig built from the file, or defaults when no file exists

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    config_dict = _read_config_file(_find_config_file(config_path))

    try:
        return NotifierConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            "Configuration validation failed",
            e,
            suggestions=[
                "Review config.example.yaml for correct format",
                "Verify field types match the expected schema",
            ],
        )


def load_preview_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[NotifierConfig, Optional[ProviderConfig]]:
    """
    Load configuration for rendering previews, where credentials are optional.

    When the environment is complete the result matches what ``load_config``
    would produce, so previews show the real From header. Otherwise only the
    file is used and no provider is returned.

    Raises:
        ConfigurationError: If the configuration file is invalid
    """
    notifier_config = load_notifier_config(config_path)
    try:
        env_config = load_environment_config(environ)
    except ConfigurationError as e:
        logger.debug(f"Previewing without environment settings: {e.message}")
        return notifier_config, None
    return apply_environment_overrides(notifier_config, env_config), env_config.provider_config


def apply_environment_overrides(
    notifier_config: NotifierConfig, env_config: EnvironmentConfig
) -> NotifierConfig:
    """Return a copy of ``notifier_config`` with environment values applied."""
    template_updates: Dict[str, Any] = {}
    if env_config.sender:
        template_updates["sender"] = env_config.sender
    if env_config.site_url:
        template_updates["site_url"] = env_config.site_url

    delivery_updates: Dict[str, Any] = {}
    if env_config.max_attempts is not None:
        delivery_updates["max_attempts"] = env_config.max_attempts

    return notifier_config.model_copy(
        update={
            "templates": notifier_config.templates.model_copy(update=template_updates),
            "delivery": notifier_config.delivery.model_copy(update=delivery_updates),
        }
    )


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Omit --config to run with built-in defaults",
                ],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate

    return None


def _read_config_file(config_file: Optional[Path]) -> Dict[str, Any]:
    if config_file is None:
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
        )

    if config_dict is None:
        return {}

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Configuration file {config_file} must contain a mapping at the top level",
            suggestions=["Review config.example.yaml for correct format"],
        )

    return config_dict


def validate_config_file(config_path: Path) -> bool:
    """
    Validate a configuration file without loading environment variables.

    Args:
        config_path: Path to configuration file

    Returns:
        True if valid, False otherwise (errors printed to stdout)
    """
    try:
        NotifierConfig.model_validate(_read_config_file(config_path))
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False
    except ValidationError as e:
        print(f"✗ Configuration validation failed:\n{ConfigurationError.from_validation_error(str(config_path), e)}")
        return False

    print(f"✓ Configuration file {config_path} is valid")
    return True
