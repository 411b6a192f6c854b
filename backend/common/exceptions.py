"""
HOS engine error taxonomy.

Every failure the engine reports to a caller is one of these typed
errors. Services raise them; the API layer maps them onto HTTP
responses in ``common.exception_handler``.
"""


class HOSEngineError(Exception):
    """Base class for all errors raised by the HOS compliance engine."""

    code = "HOS_ENGINE_ERROR"
    retryable = False

    def __init__(self, message="", **details):
        self.message = message or self.__class__.__doc__.strip()
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        """Return the error payload used by the API layer."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class InvalidTransition(HOSEngineError):
    """Duty status change is not allowed from the current status."""

    code = "INVALID_TRANSITION"


class OdometerRegression(HOSEngineError):
    """Odometer reading is lower than the previous recorded reading."""

    code = "ODOMETER_REGRESSION"


class NoActiveAssignment(HOSEngineError):
    """Driver has no active vehicle assignment."""

    code = "NO_ACTIVE_ASSIGNMENT"


class InvalidWindow(HOSEngineError):
    """Window end is earlier than window start."""

    code = "INVALID_WINDOW"


class UnknownDutyStatus(HOSEngineError):
    """Duty status code is not one of the known statuses."""

    code = "UNKNOWN_DUTY_STATUS"


class StorageUnavailable(HOSEngineError):
    """Timeline storage could not complete the operation in time."""

    code = "STORAGE_UNAVAILABLE"
    retryable = True


class NotFound(HOSEngineError):
    """Requested record does not exist."""

    code = "NOT_FOUND"


class AlreadyResolved(HOSEngineError):
    """Violation has already been resolved."""

    code = "ALREADY_RESOLVED"


class AggregationCancelled(HOSEngineError):
    """Report aggregation was cancelled by the caller."""

    code = "AGGREGATION_CANCELLED"
