"""Config file discovery and loading for vault_sync.

A config is assembled from up to three YAML files, lowest precedence
first:

1. ``~/.config/vault_sync/config.yml``: user defaults.
2. ``./.vault_sync/config.yml`` (or ``config.yaml``): the vault being
   synced.
3. ``$VAULT_SYNC_CONFIG``: an explicit file, which must exist.

Files merge section by section: a later file overrides individual keys of
``sync`` or ``logging`` and inherits the rest.  String values may refer to
environment variables as ``${NAME}`` or ``${NAME:-default}``, and any
value may be read from another file with ``!include <path>``.

Each file's ``sync`` section is checked as it loads, so a bad strategy
name or exclude pattern is reported against the file that declared it
instead of surfacing at the first conflict of a pass.

Usage:
    from vault_sync.config_loader import load_config_tree

    raw = load_config_tree()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from vault_sync.exceptions import ConfigError
from vault_sync.globs import parse_patterns
from vault_sync.sync.models import Strategy

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VAULT_SYNC_CONFIG"
CONFIG_DIRNAME = ".vault_sync"
SECTIONS = ("sync", "logging")

_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+)(?::-(?P<default>[^}]*))?\}")


# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------


def expand_env(text: str) -> str:
    """Substitute ``${NAME}`` and ``${NAME:-default}`` in *text*.

    An unset or empty variable yields its default, or ``""`` without one.
    An unterminated ``${`` is left as written.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m["name"]) or (m["default"] or ""), text
    )


def _expand_tree(node: Any) -> Any:
    if isinstance(node, str):
        return expand_env(node)
    if isinstance(node, list):
        return [_expand_tree(item) for item in node]
    if isinstance(node, dict):
        return {key: _expand_tree(value) for key, value in node.items()}
    return node


# ---------------------------------------------------------------------------
# YAML with !include
# ---------------------------------------------------------------------------


class _IncludingLoader(yaml.SafeLoader):
    """SafeLoader accepting ``!include``; ``yaml.SafeLoader`` is untouched.

    ``chain`` lists the files being loaded, outermost first.
    """

    chain: tuple[Path, ...] = ()


def _construct_include(loader: _IncludingLoader, node: yaml.Node) -> Any:
    target = Path(loader.construct_scalar(node)).expanduser()
    if not target.is_absolute():
        target = loader.chain[-1].parent / target
    return read_yaml(target, loader.chain)


_IncludingLoader.add_constructor("!include", _construct_include)


def read_yaml(path: Path, chain: tuple[Path, ...] = ()) -> Any:
    """Parse one YAML file, following ``!include`` directives.

    Args:
        path: File to read.  Relative includes resolve against the
            including file's directory.
        chain: Files already being loaded (used for cycle detection).

    Raises:
        ConfigError: If the file is unreadable or malformed, or if it
            includes itself directly or indirectly.
    """
    path = Path(path).resolve()
    source = " -> ".join(str(p) for p in (*chain, path))
    if path in chain:
        raise ConfigError(source, "circular !include")

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(source, f"cannot read file ({exc})") from exc

    loader = _IncludingLoader(text)
    loader.chain = (*chain, path)
    try:
        return loader.get_single_data()
    except yaml.YAMLError as exc:
        raise ConfigError(source, f"invalid YAML: {exc}") from exc
    finally:
        loader.dispose()


# ---------------------------------------------------------------------------
# Sync section checks
# ---------------------------------------------------------------------------


def _check_strategy(value: Any, source: str, where: str) -> None:
    try:
        strategy = Strategy(str(value).strip())
    except ValueError:
        choices = ", ".join(
            s.value for s in Strategy if s is not Strategy.RESOLVE
        )
        raise ConfigError(
            source, f"{where}: unknown strategy {value!r} (use {choices})"
        ) from None
    if strategy is Strategy.RESOLVE:
        raise ConfigError(
            source,
            f"{where}: 'resolve' cannot be configured; text files are "
            "always merged and other files are replaced whole",
        )


def _check_pattern(pattern: str, source: str, where: str) -> None:
    if pattern.startswith("/"):
        raise ConfigError(
            source,
            f"{where}: {pattern!r} must be relative to the vault root",
        )
    if ".." in pattern.split("/"):
        raise ConfigError(source, f"{where}: {pattern!r} may not use '..'")


def check_sync_section(section: Any, source: str) -> None:
    """Reject ``sync`` settings that could only fail during a pass.

    Args:
        section: The raw ``sync`` mapping (``None`` is accepted).
        source: Where the settings came from, for error messages.

    Raises:
        ConfigError: On a malformed section, a rule without patterns, an
            unknown or ``resolve`` strategy, or a pattern that is absolute
            or climbs out of the vault.
    """
    if section is None:
        return
    if not isinstance(section, dict):
        raise ConfigError(source, "'sync' must be a mapping")

    excludes = section.get("exclude_globs")
    if excludes is not None and not isinstance(excludes, (str, list)):
        raise ConfigError(source, "sync.exclude_globs must be text or a list")
    for pattern in parse_patterns(excludes):
        _check_pattern(pattern, source, "sync.exclude_globs")

    rules = section.get("resolution_strategies") or []
    if not isinstance(rules, list):
        raise ConfigError(
            source, "sync.resolution_strategies must be a list"
        )
    for index, rule in enumerate(rules):
        where = f"sync.resolution_strategies[{index}]"
        if not isinstance(rule, dict):
            raise ConfigError(source, f"{where} must be a mapping")
        patterns = parse_patterns(str(rule.get("glob") or ""))
        if not patterns:
            raise ConfigError(source, f"{where} has no glob")
        for pattern in patterns:
            _check_pattern(pattern, source, where)
        _check_strategy(rule.get("strategy"), source, where)

    if "fallback_conflict_resolution_strategy" in section:
        _check_strategy(
            section["fallback_conflict_resolution_strategy"],
            source,
            "sync.fallback_conflict_resolution_strategy",
        )


# ---------------------------------------------------------------------------
# Discovery and merge
# ---------------------------------------------------------------------------


def config_paths() -> list[Path]:
    """Return the config files in effect, lowest precedence first.

    Raises:
        ConfigError: If ``VAULT_SYNC_CONFIG`` names a missing file.
    """
    paths = []

    user = Path.home() / ".config" / "vault_sync" / "config.yml"
    if user.is_file():
        paths.append(user)

    project_dir = Path.cwd() / CONFIG_DIRNAME
    for name in ("config.yml", "config.yaml"):
        if (project_dir / name).is_file():
            paths.append(project_dir / name)
            break

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit).expanduser().resolve()
        if not path.is_file():
            raise ConfigError(
                str(path), f"named by {CONFIG_ENV_VAR} but missing"
            )
        paths.append(path)

    return paths


def load_config_tree() -> dict[str, Any]:
    """Load, check and merge every config file in effect.

    Returns:
        The merged raw mapping; ``{}`` when no file exists.

    Raises:
        ConfigError: If a file cannot be loaded, is not a mapping, or has
            an invalid ``sync`` section.
    """
    merged: dict[str, Any] = {}
    for path in config_paths():
        data = read_yaml(path)
        if data is None:
            logger.debug("Config %s is empty", path)
            continue
        if not isinstance(data, dict):
            raise ConfigError(str(path), "top level must be a mapping")

        data = _expand_tree(data)
        check_sync_section(data.get("sync"), str(path))

        for key, value in data.items():
            inherited = merged.get(key)
            if (
                key in SECTIONS
                and isinstance(inherited, dict)
                and isinstance(value, dict)
            ):
                merged[key] = {**inherited, **value}
            else:
                merged[key] = value
        logger.debug("Loaded config %s", path)

    return merged


_STARTER_CONFIG = """\
# vault-sync configuration
#
# sync:
#   # Newline- or comma-separated glob patterns never synced.
#   exclude_globs: |
#     .trash/**
#     **/*.tmp
#   # Conflicts on non-text files; first matching rule wins.
#   # Text files (md, txt, json, yaml, ...) are always merged.
#   resolution_strategies:
#     - glob: "**/*.png, **/*.jpg"
#       strategy: latest
#     - glob: "archive/**"
#       strategy: ignore
#   # latest | oldest | always-pull | always-push | ignore
#   fallback_conflict_resolution_strategy: latest
#   state_dir: .vault_sync
#
# logging:
#   level: INFO
#   file: null
#   format: text
"""


def write_starter_config(target: Path | None = None) -> Path:
    """Create a commented starter config unless one is already in effect.

    Args:
        target: File to create.  Defaults to ``./.vault_sync/config.yml``.

    Returns:
        The highest-precedence existing config, or the new file.
    """
    existing = config_paths()
    if existing:
        return existing[-1]

    target = target or Path.cwd() / CONFIG_DIRNAME / "config.yml"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Wrote starter config %s", target)
    return target
