"""Settings resolution for vault_sync.

Builds the ``UnifiedConfig`` from YAML config files, ``.env`` files, and
environment variable overrides.

Precedence (highest to lowest):
    Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    VAULT_SYNC_EXCLUDE: Exclusion patterns (replaces ``sync.exclude_globs``)
    VAULT_SYNC_FALLBACK_STRATEGY: Fallback conflict strategy
    VAULT_SYNC_STATE_DIR: Watermark state directory
    LOG_LEVEL: Logging level
    LOG_FILE: Log file path
"""

import logging
import os

from dotenv import find_dotenv, load_dotenv

from vault_sync.config_loader import check_sync_section, load_config_tree
from vault_sync.config_schema import UnifiedConfig, build_config

logger = logging.getLogger(__name__)

_SYNC_ENV_OVERRIDES = {
    "VAULT_SYNC_EXCLUDE": "exclude_globs",
    "VAULT_SYNC_FALLBACK_STRATEGY": "fallback_conflict_resolution_strategy",
    "VAULT_SYNC_STATE_DIR": "state_dir",
}

_LOGGING_ENV_OVERRIDES = {
    "LOG_LEVEL": "level",
    "LOG_FILE": "file",
}


def _overrides(mapping: dict[str, str]) -> dict[str, str]:
    found = {}
    for env_key, field in mapping.items():
        value = os.getenv(env_key)
        if value is not None and value != "":
            found[field] = value
    return found


def load_settings(dotenv: bool = True) -> UnifiedConfig:
    """Load the effective configuration.

    Args:
        dotenv: Call ``load_dotenv()`` first so ``.env`` values are
            visible to interpolation and overrides.

    Returns:
        Validated ``UnifiedConfig``.

    Raises:
        ConfigError: If a config file or a ``VAULT_SYNC_*`` override holds
            an invalid sync setting.
        pydantic.ValidationError: If the merged config is malformed.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    config = build_config(load_config_tree())

    sync_overrides = _overrides(_SYNC_ENV_OVERRIDES)
    check_sync_section(sync_overrides, "environment")
    logging_overrides = _overrides(_LOGGING_ENV_OVERRIDES)
    if not sync_overrides and not logging_overrides:
        return config

    logger.debug(
        "Applying env overrides: %s",
        sorted(sync_overrides) + sorted(logging_overrides),
    )
    return config.model_copy(
        update={
            "sync": config.sync.model_copy(update=sync_overrides),
            "logging": config.logging.model_copy(update=logging_overrides),
        }
    )
