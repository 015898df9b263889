"""
ovh_machine exception hierarchy.

Every driver failure inherits from :class:`MachineDriverError`. Errors
coming out of the provider SDK are translated into :class:`RemoteError`,
catalog lookups that fail raise :class:`NotFoundError`, and the
provisioning flow adds validation, state and timeout errors on top.
"""

from __future__ import annotations


# ── Base ──────────────────────────────────────────────────────────────
class MachineDriverError(Exception):
    """Root exception for all machine driver errors."""


class ConfigurationError(MachineDriverError):
    """Driver options are invalid or the API client cannot be built."""


# ── Remote API ────────────────────────────────────────────────────────
class RemoteError(MachineDriverError):
    """The provider API answered with a non-2xx response.

    Attributes:
        status_code: HTTP status reported by the provider, if known.
        message: Provider error message.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class NotFoundError(MachineDriverError):
    """A name or id did not match any catalog entry.

    Attributes:
        alternatives: Valid names the user may pick instead.
    """

    def __init__(self, message: str, alternatives: list[str] | None = None) -> None:
        super().__init__(message)
        self.alternatives = list(alternatives or [])


# ── Provisioning ──────────────────────────────────────────────────────
class ValidationError(MachineDriverError):
    """Pre-create validation rejected the requested machine."""


class UnsupportedOperationError(MachineDriverError):
    """The provider does not support this lifecycle operation."""


class InstanceStateError(MachineDriverError):
    """The instance reached an unusable state (ERROR, no public IP)."""


class InstanceTimeoutError(MachineDriverError, TimeoutError):
    """The instance did not reach the expected status in time."""
