"""
Configuration loader — reads config.yml and resolves the workspace.

The configuration directory is ``$POND_CONFIG_DIR`` or ``~/.pond``.
Every function takes an explicit ``base_dir`` so tests and callers can
point at an isolated directory without touching process state.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from pondctl.core.errors import WorkspaceNotFoundError
from pondctl.core.models.config import GlobalConfig, ProjectContext
from pondctl.core.models.workspace import Workspace

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
ROOT_MARKER = ".pond-root"
CONFIG_DIR_ENV = "POND_CONFIG_DIR"
ROOT_ENV = "POND_ROOT"


class ConfigError(Exception):
    """Raised when the global configuration is invalid."""


def config_dir(base_dir: Path | None = None) -> Path:
    """Resolve the configuration directory."""
    if base_dir is not None:
        return base_dir
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / ".pond"


def config_path(base_dir: Path | None = None) -> Path:
    return config_dir(base_dir) / CONFIG_FILE


def load_config(base_dir: Path | None = None) -> GlobalConfig | None:
    """Load the global configuration.

    Returns:
        GlobalConfig, or None if no config file exists yet.

    Raises:
        ConfigError: If the file exists but is not valid.
    """
    path = config_path(base_dir)
    if not path.is_file():
        return None

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return GlobalConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return GlobalConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def save_config(config: GlobalConfig, base_dir: Path | None = None) -> Path:
    """Write the global configuration, creating the directory if needed."""
    path = config_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    logger.debug("Config saved to %s", path)
    return path


def find_root_marker(start_dir: Path | None = None) -> Path | None:
    """Search for the .pond-root marker, walking up from start_dir."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(64):  # safety limit
        if (current / ROOT_MARKER).exists():
            return current
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def discover_workspace(
    start_dir: Path | None = None,
    base_dir: Path | None = None,
) -> Workspace:
    """Locate the workspace.

    Priority:
        1. ``$POND_ROOT``
        2. Upward search for a ``.pond-root`` marker
        3. Active context (or home pointer) in config.yml

    Raises:
        WorkspaceNotFoundError: If no tier yields a root.
    """
    cfg_dir = config_dir(base_dir)

    env_root = os.environ.get(ROOT_ENV)
    if env_root:
        root = Path(env_root).resolve()
        logger.debug("Workspace from $%s: %s", ROOT_ENV, root)
        return Workspace(root=root, config_dir=cfg_dir)

    marker_root = find_root_marker(start_dir)
    if marker_root is not None:
        logger.debug("Workspace from marker: %s", marker_root)
        return Workspace(root=marker_root, config_dir=cfg_dir)

    config = load_config(base_dir)
    if config is not None:
        path = config.active_path()
        if path is not None and path.exists():
            logger.debug("Workspace from context %s: %s", config.active_context, path)
            return Workspace(
                root=path.resolve(),
                config_dir=cfg_dir,
                active_context=config.active_context,
            )

    raise WorkspaceNotFoundError(
        "Workspace not found. Set $POND_ROOT, create a .pond-root marker, "
        "or register one with 'pond context add'."
    )


def add_context(
    name: str,
    path: Path,
    description: str | None = None,
    activate: bool = True,
    base_dir: Path | None = None,
) -> GlobalConfig:
    """Register a workspace root under a context name."""
    config = load_config(base_dir) or GlobalConfig()
    resolved = path.resolve()
    config.project_contexts[name] = ProjectContext(path=resolved, description=description)
    if activate or config.active_context is None:
        config.active_context = name
    if config.home_pointer is None:
        config.home_pointer = resolved
    save_config(config, base_dir)
    logger.info("Registered context '%s' → %s", name, resolved)
    return config


def use_context(name: str, base_dir: Path | None = None) -> GlobalConfig:
    """Switch the active context.

    Raises:
        ConfigError: If the context is not registered.
    """
    config = load_config(base_dir)
    if config is None or name not in config.project_contexts:
        raise ConfigError(f"Unknown context '{name}'")
    config.active_context = name
    save_config(config, base_dir)
    return config
