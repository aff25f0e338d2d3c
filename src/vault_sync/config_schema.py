"""Unified configuration schema for vault_sync.

Defines Pydantic models for the config structure with dedicated sections
for sync behaviour and logging.

Usage:
    from vault_sync.config_schema import UnifiedConfig, build_config

    raw = load_config_tree()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ConflictRule(BaseModel):
    """Conflict strategy for the paths matching ``glob``.

    ``glob`` may list several comma-separated patterns.  ``strategy`` is
    kept as a plain string and checked when a conflict is classified.
    """

    glob: str = Field(description="Comma-separated glob patterns")
    strategy: str = Field(description="Resolution strategy name")

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Sync behaviour settings.

    Attributes:
        exclude_globs: Newline- and comma-separated exclusion patterns.
        resolution_strategies: Ordered per-path conflict rules.
        fallback_conflict_resolution_strategy: Strategy used when no
            rule matches a non-text path.
        state_dir: Directory holding the persisted watermark.
    """

    exclude_globs: str | list[str] = Field(
        default="", description="Exclusion patterns"
    )
    resolution_strategies: list[ConflictRule] = Field(
        default_factory=list, description="Per-path conflict rules"
    )
    fallback_conflict_resolution_strategy: str = Field(
        default="latest", description="Strategy when no rule matches"
    )
    state_dir: str = Field(
        default=".vault_sync", description="Watermark state directory"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", description="text or json")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_config_tree()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
