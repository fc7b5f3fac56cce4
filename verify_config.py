#!/usr/bin/env python3
"""Check config.example.yaml structure without importing the package."""

import sys
from pathlib import Path

import yaml

KNOWN_SECTIONS = {"delivery": dict, "templates": dict, "logging": dict}
KNOWN_KINDS = {
    "order-success",
    "order-failure",
    "order-pending",
    "order-cancelled",
    "admin-notice",
    "shipping-notice",
}


def verify_config_structure(config_file: Path = Path("config.example.yaml")) -> bool:
    """Verify the example configuration has the expected structure."""
    if not config_file.exists():
        print(f"✗ {config_file} not found")
        return False

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"✗ Failed to parse {config_file}: {e}")
        return False

    errors = []

    for key in config:
        if key not in KNOWN_SECTIONS:
            errors.append(f"Unknown top-level key: {key}")

    for key, expected_type in KNOWN_SECTIONS.items():
        if key in config and not isinstance(config[key], expected_type):
            errors.append(f"'{key}' must be of type {expected_type.__name__}")

    delivery = config.get("delivery") or {}
    max_attempts = delivery.get("max_attempts", 3)
    if not isinstance(max_attempts, int) or not 1 <= max_attempts <= 10:
        errors.append("delivery.max_attempts must be an integer between 1 and 10")

    templates = config.get("templates") or {}
    for kind in templates.get("subjects") or {}:
        if kind not in KNOWN_KINDS:
            errors.append(f"templates.subjects has unknown kind: {kind}")

    for secret_key in ("password", "pass", "api_key"):
        if secret_key in templates or secret_key in delivery:
            errors.append(f"Credentials ({secret_key}) belong in the environment, not in {config_file}")

    if errors:
        print(f"✗ {config_file} validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False

    print(f"✓ {config_file} structure is valid")
    print(f"  - Max attempts: {max_attempts}")
    print(f"  - Site URL: {templates.get('site_url', 'default')}")
    print(f"  - {len(templates.get('subjects') or {})} subject overrides")
    return True


if __name__ == "__main__":
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("config.example.yaml")
    sys.exit(0 if verify_config_structure(path) else 1)
