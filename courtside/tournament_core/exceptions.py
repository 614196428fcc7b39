"""
Error taxonomy for the tournament engine.

- ValidationError: an input precondition failed before anything was generated
  (odd or insufficient players, no courts, malformed manual seed order).
- StructuralInconsistency: a validator rejected freshly generated output.
- ProgressionError: a bracket lookup failed while advancing a result. The
  progression engine converts these into failed ``ProgressionResult`` values.
"""

from typing import Iterable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError


class CourtsideError(Exception):
    """Base class for all engine errors."""


class ValidationError(CourtsideError, DjangoValidationError):
    """Raised when engine inputs violate a precondition.

    Subclasses Django's ValidationError so forms and views in a host project
    can surface the message without translating it.
    """


class StructuralInconsistency(CourtsideError):
    """Raised when generated output fails its structural validator."""

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def __str__(self):
        if not self.errors:
            return self.message
        return f"{self.message}: {'; '.join(self.errors)}"


class ProgressionError(CourtsideError):
    """Raised by bracket stores when a position or match cannot be resolved."""
