"""Exception hierarchy for buildrelay.

Why a small hierarchy:
- External commands never raise for non-zero exit codes (see `CommandResult`),
  so exceptions here are reserved for bad input and bad configuration.
- The CLI can catch `BuildRelayError` once and turn it into a clean exit.
"""

from __future__ import annotations


class BuildRelayError(Exception):
    """Base error for everything raised by this package."""


class AuditReportError(BuildRelayError):
    """The vulnerability audit report is missing, malformed, or has bad counts."""


class UnknownVariantError(BuildRelayError):
    """A pipeline variant name is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown pipeline variant '{name}'. Available variants: {', '.join(available)}."
        )


class CredentialsError(BuildRelayError):
    """Registry credentials are required but not configured."""


class InvalidBuildNumberError(BuildRelayError):
    """The build identifier cannot be used as a Docker image tag."""
