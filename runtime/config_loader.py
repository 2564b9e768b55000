"""Config loader — parse xcodekit.yaml and apply environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

import yaml

from contracts.config import Config

logger = logging.getLogger(__name__)

CONFIG_ENV = "XCODEKIT_CONFIG"
DEFAULT_CONFIG_PATH = "xcodekit.yaml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def load_config(path: str | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Load the runtime configuration.

    *path* wins over ``$XCODEKIT_CONFIG``, which wins over ./xcodekit.yaml.
    Only the implicit default file may be missing.
    """
    env = os.environ if environ is None else environ
    explicit = path or env.get(CONFIG_ENV)
    p = Path(explicit or DEFAULT_CONFIG_PATH)

    if p.exists():
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a YAML mapping, got {type(data).__name__}")
        config = Config(**data)
        logger.debug("Loaded config from %s", p)
    elif explicit:
        raise FileNotFoundError(f"Config not found: {explicit}")
    else:
        config = Config()

    return apply_env_overrides(config, env)


def apply_env_overrides(config: Config, environ: Mapping[str, str]) -> Config:
    updated = config.model_copy(deep=True)

    workflows = environ.get("XCODEKIT_ENABLED_WORKFLOWS")
    if workflows is not None:
        updated.workflows.enabled = [w.strip() for w in workflows.split(",") if w.strip()]

    disabled = _parse_bool(environ, "XCODEKIT_DISABLE_SESSION_DEFAULTS")
    if disabled is not None:
        updated.session.enabled = not disabled

    timeout = environ.get("XCODEKIT_COMMAND_TIMEOUT")
    if timeout is not None:
        try:
            seconds = float(timeout)
        except ValueError:
            seconds = 0.0
        if seconds > 0:
            updated.executor.timeout_seconds = seconds
        else:
            logger.warning("Ignoring XCODEKIT_COMMAND_TIMEOUT=%r: expected a positive number", timeout)

    debug = _parse_bool(environ, "XCODEKIT_DEBUG")
    if debug is not None:
        updated.debug = debug

    return updated


def _parse_bool(environ: Mapping[str, str], name: str) -> bool | None:
    raw = environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    logger.warning("Ignoring %s=%r: expected a boolean", name, raw)
    return None
