"""Process-wide configuration held in a ``ContextVar``.

The default context is loaded from ``config.yaml`` at import time. Tests and
tools swap parts of it with ``with_context`` without touching the file.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src.forum_admin.runtime.config.config_data import ConfigData
from src.forum_admin.runtime.config.config_template import load_templated_yaml
from src.forum_admin.runtime.config.settings import EnvironmentVariables


@dataclass
class AppContext:
    config: ConfigData


def _load_default_context() -> AppContext:
    env = EnvironmentVariables()
    return AppContext(
        config=load_templated_yaml(
            Path(env.app_config_file), env_mode=env.app_environment
        )
    )


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=_load_default_context()
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    return _app_context.set(context)


def _explicit_values(model: BaseModel) -> dict[str, Any]:
    """Values the caller actually set, nested models included.

    A nested model counts when it was passed explicitly or when any of its
    own fields was.
    """
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_values(value)
            if nested:
                values[name] = nested
            elif name in model.model_fields_set:
                values[name] = value.model_dump()
        elif name in model.model_fields_set:
            values[name] = value
    return values


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_configs(base_config: ConfigData, override_config: ConfigData) -> ConfigData:
    """Overlay the explicitly set parts of ``override_config`` on ``base_config``."""
    base = base_config.model_dump(exclude={"database": {"is_sqlite"}})
    return ConfigData.model_validate(
        _deep_merge(base, _explicit_values(override_config))
    )


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Run a block with parts of the configuration replaced.

    Example:
        with with_context(ConfigData(sso=SSOConfig(enabled=True, secret="s"))):
            assert get_config().sso.enabled
    """
    if config_override is None:
        yield
        return
    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData or None, got {type(config_override)}"
        )

    current = get_context()
    token = set_context(
        replace(current, config=merge_configs(current.config, config_override))
    )
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the configuration for the rest of the current context."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
