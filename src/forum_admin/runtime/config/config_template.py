"""Loading ``config.yaml`` with environment variable placeholders."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.forum_admin.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def _resolve(expression: str) -> str:
    if ":-" in expression:
        name, default = expression.split(":-", 1)
        return os.getenv(name, default)

    if ":?" in expression:
        name, message = expression.split(":?", 1)
        hint = f": {message}"
    else:
        name, hint = expression, " not set"

    value = os.getenv(name)
    if value is None:
        raise ValueError(f"Required environment variable {name}{hint}")
    return value


def substitute_env_vars(text: str) -> str:
    """Expand ``${VAR}``, ``${VAR:-default}`` and ``${VAR:?message}``.

    Raises:
        ValueError: A required variable is not set
    """
    return _PLACEHOLDER.sub(lambda match: _resolve(match.group(1)), text)


def apply_environment_overrides(env_mode: str) -> None:
    """Let ``PRODUCTION_SSO_SECRET`` win over ``SSO_SECRET`` in production, etc."""
    prefix = f"{env_mode.upper()}_"
    for name, value in list(os.environ.items()):
        if name.startswith(prefix):
            os.environ[name[len(prefix) :]] = value
            logger.debug("Environment override {} applied", name)


def parse_config_text(content: str) -> ConfigData:
    """Validate the ``config`` section of a YAML document."""
    try:
        document = yaml.safe_load(substitute_env_vars(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not document:
        raise ValueError("Configuration document is empty")

    try:
        return ConfigData(**(document.get("config") or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def load_templated_yaml(file_path: Path, env_mode: str = "development") -> ConfigData:
    """Load the configuration file for ``env_mode``; defaults if it is absent.

    Raises:
        ValueError: Missing required variables or an invalid document
    """
    logger.bind(path=str(file_path), environment=env_mode).info("Loading configuration")
    apply_environment_overrides(env_mode)

    if file_path.exists():
        config = parse_config_text(file_path.read_text())
    else:
        logger.bind(path=str(file_path)).warning("No configuration file; using defaults")
        config = ConfigData()

    if config.sso.enabled and not config.sso.secret:
        logger.warning("SSO is enabled but no SSO secret is configured")
    return config
