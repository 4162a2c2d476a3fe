"""livecode exception classes."""


class LiveCodeException(Exception):
    """Base exception for all livecode errors."""
    pass


class ExecutionError(LiveCodeException):
    """Raised when the remote execution service cannot produce a run result."""
    pass
