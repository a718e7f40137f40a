"""Error taxonomy for the synchronisation core.

Validation failures are not errors: they come back as ``ValidationResult``
values. Everything here is raised.
"""

from __future__ import annotations

from collections.abc import Sequence


class PharmaSyncError(RuntimeError):
    """Base class for errors raised by the synchronisation core."""


class NotFoundError(PharmaSyncError):
    """A referenced conflict or quarantine record does not exist for this tenant."""

    def __init__(self, kind: str, identifier: object) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class InvalidInputError(PharmaSyncError):
    """Caller supplied an unsupported strategy/type or data that fails validation."""

    def __init__(self, message: str, *, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.errors = tuple(errors)


class ConflictStateError(InvalidInputError):
    """A conflict is no longer pending (already resolved or resolved concurrently)."""


class QuarantineStateError(InvalidInputError):
    """A quarantined record has already been reviewed."""


class RuleConfigurationError(PharmaSyncError):
    """Validation rule configuration is malformed (system error, not a data failure)."""


class StoreError(PharmaSyncError):
    """A record store or bus collaborator failed."""
