"""ContextVar-based match configuration for Ristra.

Provides per-context configuration using Python's ContextVars (PEP 567).
Text sources read the active config when they are created, so a config
set around a ``Pattern.matches()`` call governs every window built for it.

Thread Safety:
    ContextVars are thread-local by design. Each thread has independent storage,
    so no locks are needed and race conditions are impossible.

Usage:
    from ristra.config import MatchConfig, match_config_context

    with match_config_context(MatchConfig(chunk_capacity=8)):
        for match in pattern.matches(text):
            ...

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

# Smallest window that can hold a surrogate pair.
MIN_CHUNK_CAPACITY = 2


@dataclass(frozen=True, slots=True)
class MatchConfig:
    """Immutable match configuration.

    Frozen dataclass ensures thread-safety (immutable after creation).

    Attributes:
        chunk_capacity: Code units materialized per chunk window
        validate_windows: Check window buffer stability on every access
            (defaults to on unless Python runs with -O)

    """

    chunk_capacity: int = 64
    validate_windows: bool = __debug__

    def __post_init__(self) -> None:
        if self.chunk_capacity < MIN_CHUNK_CAPACITY:
            raise ValueError(
                f"chunk_capacity must be at least {MIN_CHUNK_CAPACITY}, "
                f"got {self.chunk_capacity}"
            )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "MatchConfig":
        """Create MatchConfig from dictionary.

        Only includes keys that are valid MatchConfig fields; unknown keys
        are silently ignored.

        Example:
            >>> MatchConfig.from_dict({"chunk_capacity": 16, "other": 1}).chunk_capacity
            16

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        return cls(**filtered)


# Module-level default config (reused, never recreated)
_DEFAULT_CONFIG: MatchConfig = MatchConfig()

_match_config: ContextVar[MatchConfig] = ContextVar(
    "match_config",
    default=_DEFAULT_CONFIG,
)


def get_match_config() -> MatchConfig:
    """Get current match configuration (thread-local)."""
    return _match_config.get()


def set_match_config(config: MatchConfig) -> None:
    """Set match configuration for current context.

    Thread Safety:
        Only affects the current thread's context. Other threads are unaffected.

    """
    _match_config.set(config)


def reset_match_config() -> None:
    """Reset to default configuration."""
    _match_config.set(_DEFAULT_CONFIG)


@contextmanager
def match_config_context(config: MatchConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Properly restores the previous config even if an exception is raised.

    """
    previous = _match_config.get()
    _match_config.set(config)
    try:
        yield
    finally:
        _match_config.set(previous)


__all__ = [
    "MIN_CHUNK_CAPACITY",
    "MatchConfig",
    "get_match_config",
    "match_config_context",
    "reset_match_config",
    "set_match_config",
]
