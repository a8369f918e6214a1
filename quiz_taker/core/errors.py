"""Error taxonomy for the quiz attempt engine.

``LoadFailure`` and ``FinalizationRejected`` never leave the engine: they are
recorded as the reason of the ``Error`` state. ``InvalidTransition`` and its
subclasses are raised to the caller.
"""

from __future__ import annotations


class QuizAttemptError(Exception):
    """Base class for attempt engine errors."""


class CollaboratorError(QuizAttemptError):
    """Raised by repository, eligibility or persistence implementations."""


class LoadFailure(QuizAttemptError):
    """Question, course or package data could not be loaded or was malformed."""


class FinalizationRejected(QuizAttemptError):
    """The persistence collaborator refused the computed result."""


class InvalidTransition(QuizAttemptError):
    """The requested operation is not valid in the attempt's current state."""


class ConfirmationRequired(InvalidTransition):
    """Manual submission was requested without explicit confirmation."""
