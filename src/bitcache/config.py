"""Module containing the default bitcache configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# Name of the metadata document at the root of the store
METADATA_FILENAME: Final[str] = "bitcache_metadata.json"

# Default bound for publish attempts when the remote keeps moving
DEFAULT_MAX_ATTEMPTS: Final[int] = 5

# Exponential backoff between publish attempts, in seconds
DEFAULT_INITIAL_DELAY: Final[float] = 0.5
DEFAULT_BACKOFF_MULTIPLIER: Final[float] = 2.0
DEFAULT_MAX_DELAY: Final[float] = 8.0

# Upper bound for a single git invocation (clone, push), in seconds
DEFAULT_GIT_TIMEOUT: Final[float] = 300.0

# Identity used for commits when git has none configured
DEFAULT_COMMITTER_NAME: Final[str] = "bitcache"
DEFAULT_COMMITTER_EMAIL: Final[str] = "bitcache@localhost"

# Environment variables overriding the defaults from the command line
ENV_MAX_ATTEMPTS: Final[str] = "BITCACHE_MAX_ATTEMPTS"
ENV_GIT_TIMEOUT: Final[str] = "BITCACHE_GIT_TIMEOUT"
ENV_SSH_KEY: Final[str] = "BITCACHE_SSH_KEY"


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """
    Bounded retry policy for publishing when the remote advanced.

    Attributes:
        max_attempts: total number of publish attempts, including the first.
        initial_delay: seconds to wait after the first conflict.
        multiplier: factor applied to the delay after each conflict.
        max_delay: cap for the delay between two attempts.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay: float = DEFAULT_INITIAL_DELAY
    multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    max_delay: float = DEFAULT_MAX_DELAY

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be non-negative")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    def delay(self, attempt: int) -> float:
        """Return the seconds to wait after the given failed attempt (1-based)."""
        if self.initial_delay == 0:
            return 0.0
        try:
            delay = self.initial_delay * self.multiplier ** (attempt - 1)
        except OverflowError:
            return self.max_delay
        return min(self.max_delay, delay)
