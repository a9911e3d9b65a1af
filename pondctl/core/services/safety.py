"""
Safety classifier — pure predicates gating batch and VCS mutations.

Matching is substring-based on the lower-cased command and deliberately
over-flags. Callers decide what to do with a positive: the CLI asks for
confirmation on destructive commands and warns on stack mismatches.
"""

from __future__ import annotations

DESTRUCTIVE_PATTERNS: tuple[str, ...] = (
    "rm ",
    "delete",
    "force",
    "prune",
    "drop ",
    "truncate",
)

DESTRUCTIVE_GIT_PATTERNS: tuple[str, ...] = (
    "reset --hard",
    "push -f",
    "push --force",
    "clean -f",
    "clean -df",
    "clean -xdf",
)

# Tool invocation → the stacks it belongs to.
STACK_COMMANDS: dict[str, tuple[str, ...]] = {
    "cargo ": ("Rust", "Tauri", "Monorepo"),
    "npm ": ("NodeJS", "Monorepo", "Tauri", "Wails"),
    "npx ": ("NodeJS", "Monorepo", "Tauri", "Wails"),
    "yarn ": ("NodeJS", "Monorepo", "Tauri", "Wails"),
    "pnpm ": ("NodeJS", "Monorepo", "Tauri", "Wails"),
    "go ": ("Go", "Monorepo", "Wails"),
    "pip ": ("Python",),
    "poetry ": ("Python",),
    "pytest": ("Python",),
    "uv ": ("Python",),
    "docker ": ("Docker",),
}


def is_destructive_git_command(command: str) -> bool:
    cmd = command.lower()
    return any(p in cmd for p in DESTRUCTIVE_GIT_PATTERNS)


def is_destructive(command: str) -> bool:
    """Whether a command could destroy data."""
    cmd = command.lower()
    if any(p in cmd for p in DESTRUCTIVE_PATTERNS):
        return True
    return is_destructive_git_command(command)


def is_stack_mismatch(command: str, stack: str) -> bool:
    """Whether the command invokes another stack's tooling.

    Only the leading word of each ``&&``/``;``/``|`` segment counts, so
    ``echo npm`` is not a Node command.
    """
    stack_lower = stack.lower()
    for segment in _segments(command):
        for tool, stacks in STACK_COMMANDS.items():
            if segment.startswith(tool) or segment == tool.strip():
                if stack_lower not in (s.lower() for s in stacks):
                    return True
    return False


def _segments(command: str) -> list[str]:
    normalized = command.lower()
    for sep in ("&&", "||", ";", "|"):
        normalized = normalized.replace(sep, "\n")
    return [s.strip() for s in normalized.splitlines() if s.strip()]
