"""Exception hierarchy for scopeshift.

Everything raised on purpose by the package derives from
:class:`ScopeShiftError`, so callers can catch library failures with a single
``except`` clause while still telling configuration problems apart from
oracle failures.
"""

from __future__ import annotations


class ScopeShiftError(Exception):
    """Base exception for all scopeshift errors."""


class ConfigurationError(ScopeShiftError):
    """Raised when a required credential or setting is missing or invalid."""


class OracleError(ScopeShiftError):
    """Raised when the completion service fails or returns unusable output.

    Covers transport failures, service-reported errors, empty responses, text
    that is not a JSON object and payloads that do not match the stage schema.
    """


class StageError(ScopeShiftError):
    """Raised at a stage boundary with the stage-specific message prefix.

    Attributes:
        stage: Name of the stage that failed.
    """

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(message)


class NormalizationWarning(UserWarning):
    """Recorded when a nested field falls back to its safe default."""
