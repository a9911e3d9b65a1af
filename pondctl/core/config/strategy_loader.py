"""
Strategy loader — loads the stack detection rule table from YAML files.

Strategies live in two directories under the config dir::

    strategies/
        builtin/        # populated with defaults when empty
            rust.yml
            ...
        custom/         # same filename replaces the builtin
            rust.yml

The merged rows are sorted by descending priority, so the generic
matcher can simply take the first match. ``pond strategy add`` and
``remove`` only ever touch ``custom/``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from pondctl.core.models.stack import StackStrategy

logger = logging.getLogger(__name__)

STRATEGIES_DIR = "strategies"
BUILTIN_DIR = "builtin"
CUSTOM_DIR = "custom"

DEFAULT_STRATEGIES: dict[str, dict] = {
    "rust.yml": {
        "name": "Rust",
        "match_files": ["Cargo.toml"],
        "artifacts": ["target"],
        "tags": ["#rust"],
        "priority": 10,
    },
    "node.yml": {
        "name": "NodeJS",
        "match_files": ["package.json"],
        "artifacts": ["node_modules", "dist", ".next", "build", "out"],
        "tags": ["#nodejs"],
        "priority": 10,
    },
    "go.yml": {
        "name": "Go",
        "match_files": ["go.mod"],
        "artifacts": ["bin", "vendor"],
        "tags": ["#go"],
        "priority": 10,
    },
    "python.yml": {
        "name": "Python",
        "match_files": ["requirements.txt", "pyproject.toml"],
        "artifacts": ["__pycache__", ".venv", "venv", ".pytest_cache", "build", "dist"],
        "tags": ["#python"],
        "priority": 10,
    },
    "monorepo.yml": {
        "name": "Monorepo",
        "match_files": ["nx.json", "turbo.json", "go.work", "lerna.json"],
        "artifacts": ["node_modules", "target", ".turbo", "dist"],
        "tags": ["#monorepo"],
        "priority": 20,
    },
    "docker.yml": {
        "name": "Docker",
        "match_files": ["Dockerfile"],
        "artifacts": [],
        "tags": ["#docker"],
        "priority": 5,
    },
    "tauri.yml": {
        "name": "Tauri",
        "match_files": ["tauri.conf.json"],
        "artifacts": ["src-tauri/target", "src-tauri/bin"],
        "tags": ["#tauri", "#desktop"],
        "priority": 15,
    },
    "wails.yml": {
        "name": "Wails",
        "match_files": ["wails.json", "Wails.json"],
        "artifacts": ["build/bin", "frontend/dist"],
        "tags": ["#wails", "#desktop"],
        "priority": 15,
    },
}


def default_strategies() -> list[StackStrategy]:
    """The builtin rule table, without touching disk."""
    return _by_priority(StackStrategy.model_validate(d) for d in DEFAULT_STRATEGIES.values())


def install_defaults(directory: Path) -> None:
    """Write the default strategy files into a directory."""
    directory.mkdir(parents=True, exist_ok=True)
    for filename, data in DEFAULT_STRATEGIES.items():
        (directory / filename).write_text(
            yaml.safe_dump(data, sort_keys=False), encoding="utf-8"
        )
    logger.debug("Installed %d default strategies into %s", len(DEFAULT_STRATEGIES), directory)


def load_strategy(path: Path) -> StackStrategy | None:
    """Load a single strategy file.

    Returns:
        StackStrategy, or None if the file is not a valid strategy.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            logger.warning("Strategy file %s is not a mapping, skipping", path)
            return None
        return StackStrategy.model_validate(data)
    except Exception as e:
        logger.warning("Failed to load strategy from %s: %s", path, e)
        return None


def _strategy_dirs(config_dir: Path) -> tuple[Path, Path]:
    root = config_dir / STRATEGIES_DIR
    builtin = root / BUILTIN_DIR
    custom = root / CUSTOM_DIR

    builtin.mkdir(parents=True, exist_ok=True)
    custom.mkdir(parents=True, exist_ok=True)

    if not any(builtin.iterdir()):
        install_defaults(builtin)
    return builtin, custom


def list_strategies(config_dir: Path) -> list[tuple[StackStrategy, str]]:
    """Effective strategies with where each came from (``builtin`` or ``custom``).

    Custom files override builtins by filename. Rows are in table order.
    """
    builtin, custom = _strategy_dirs(config_dir)

    by_file: dict[str, tuple[StackStrategy, str]] = {
        stem: (s, BUILTIN_DIR) for stem, s in _load_dir(builtin).items()
    }
    by_file.update((stem, (s, CUSTOM_DIR)) for stem, s in _load_dir(custom).items())

    return sorted(by_file.values(), key=lambda row: row[0].priority, reverse=True)


def load_strategies(config_dir: Path) -> list[StackStrategy]:
    """Load builtin + custom strategies, custom overriding by filename."""
    strategies = [s for s, _ in list_strategies(config_dir)]
    logger.info("Loaded %d strategies: %s", len(strategies), [s.name for s in strategies])
    return strategies


def find_strategy(config_dir: Path, name: str) -> StackStrategy | None:
    """Effective strategy by case-insensitive name."""
    for strategy, _ in list_strategies(config_dir):
        if strategy.name.lower() == name.lower():
            return strategy
    return None


def strategy_filename(name: str) -> str:
    """File a custom strategy is stored in: ``Node JS`` → ``nodejs.yml``."""
    stem = "".join(c for c in name.lower() if c.isalnum() or c in "_-")[:64]
    if not stem:
        raise ValueError(f"Strategy name {name!r} has no usable characters")
    return f"{stem}.yml"


def add_custom_strategy(config_dir: Path, strategy: StackStrategy) -> Path:
    """Write a custom strategy.

    A builtin with the same name (case-insensitive) is overridden by
    reusing its filename; other names get ``strategy_filename``.
    """
    builtin, custom = _strategy_dirs(config_dir)
    filename = strategy_filename(strategy.name)
    for stem, existing in _load_dir(builtin).items():
        if existing.name.lower() == strategy.name.lower():
            filename = f"{stem}.yml"
            break

    path = custom / filename
    path.write_text(
        yaml.safe_dump(strategy.model_dump(), sort_keys=False), encoding="utf-8"
    )
    logger.info("Saved strategy %s to %s", strategy.name, path)
    return path


def remove_custom_strategy(config_dir: Path, name: str) -> Path | None:
    """Delete the custom strategy file(s) defining ``name``.

    Returns:
        A removed path, or None when no custom strategy has that name.
        Builtins are never removed; dropping a custom override restores them.
    """
    _, custom = _strategy_dirs(config_dir)
    removed: Path | None = None
    for path in sorted(custom.iterdir()):
        if path.suffix not in (".yml", ".yaml"):
            continue
        strategy = load_strategy(path)
        if strategy is not None and strategy.name.lower() == name.lower():
            path.unlink()
            removed = path
            logger.info("Removed strategy %s (%s)", strategy.name, path)
    return removed


def match_strategy(files: list[str] | set[str], strategies: list[StackStrategy]) -> StackStrategy | None:
    """Return the first strategy (in table order) whose markers are present."""
    for strategy in strategies:
        if strategy.matches(files):
            return strategy
    return None


def _load_dir(directory: Path) -> dict[str, StackStrategy]:
    loaded: dict[str, StackStrategy] = {}
    for path in sorted(directory.iterdir()):
        if path.suffix not in (".yml", ".yaml"):
            continue
        strategy = load_strategy(path)
        if strategy is not None:
            loaded[path.stem] = strategy
    return loaded


def _by_priority(strategies) -> list[StackStrategy]:
    # sorted() is stable: equal priorities keep filename order
    return sorted(strategies, key=lambda s: s.priority, reverse=True)
