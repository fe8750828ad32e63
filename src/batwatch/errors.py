"""Exception classes for the battery watchdog.

This module defines the hierarchy of errors raised by the sampler,
the settings layer and the suspend executor. None of them is allowed
to terminate the monitor; callers recover locally and log.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from batwatch.power import SuspendAttempt


class BatwatchError(Exception):
    """Base class for all battery watchdog errors."""


class SamplingError(BatwatchError):
    """Raised when a power-supply attribute cannot be read.

    The sampler catches this internally and reports the battery as absent.
    """

    def __init__(self, path: str, original_error: Exception | None = None) -> None:
        """Initialize with the attribute that failed.

        Args:
            path: Filesystem path of the attribute
            original_error: The underlying OS or parse error
        """
        super().__init__(f"Unable to read {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class ConfigError(BatwatchError):
    """Raised when a settings update does not validate."""


class PersistenceError(BatwatchError):
    """Raised when the settings file cannot be written."""

    def __init__(self, path: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Failed to save config to {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class SuspendError(BatwatchError):
    """Raised when a suspend request could not be carried out."""


class AllMethodsFailed(SuspendError):
    """Raised when every method in the fallback chain failed.

    Carries the attempts in the order they were made so the failure
    notification can name each method and its exit indicator.
    """

    def __init__(self, attempts: Sequence[SuspendAttempt]) -> None:
        """Initialize with the failed attempts.

        Args:
            attempts: Every attempt made, in order
        """
        self.attempts = list(attempts)
        tried = ", ".join(f"{a.method.name}={a.exit_indicator}" for a in self.attempts)
        super().__init__(f"All suspend methods failed ({tried})")
