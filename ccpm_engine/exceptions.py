"""Exceptions raised by the critical chain engine."""


class CCPMError(Exception):
    """Base exception for all engine errors."""

    code = "CCPM_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class ValidationError(CCPMError):
    """Raised when a request cannot be processed as given."""

    code = "VALIDATION_ERROR"


class InsufficientDataError(ValidationError):
    """Raised when the project has no tasks."""

    code = "CCPM_INSUFFICIENT_DATA"


class NoDependenciesError(ValidationError):
    """Raised when the project has tasks but no dependency between them."""

    code = "CCPM_NO_DEPENDENCIES"


class InvalidSimulationCountError(ValidationError):
    """Raised when the requested number of Monte Carlo trials is out of range."""

    code = "CCPM_INVALID_SIMULATION_COUNT"


class CyclicGraphError(CCPMError):
    """Raised when the dependency graph contains a cycle.

    Callers are expected to reject cycles before invoking the engine, so this
    signals a broken contract rather than a user error.
    """

    code = "CCPM_CYCLIC_GRAPH"


class BufferNotFoundError(CCPMError):
    """Raised when a buffer id is unknown to the ledger."""

    code = "BUFFER_NOT_FOUND"
