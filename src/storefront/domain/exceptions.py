"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class TransitionNotAllowed(ValidationError):
    """An action was requested that the order's status or the actor's role forbids.

    Raised before any network call.  Reaching the dispatcher with such a
    request is a caller bug, so it is never converted into an outcome.
    """


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""
