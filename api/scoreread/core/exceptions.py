"""
Custom exceptions for the application.
"""


class ScoreReadException(Exception):
    """Base exception for all ScoreRead application exceptions."""
    pass


class ValidationError(ScoreReadException):
    """Raised when validation fails."""
    pass


class NotFoundError(ScoreReadException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(ScoreReadException):
    """Raised when there's a conflict (e.g., duplicate entry)."""
    pass


class NoProjectFound(NotFoundError):
    """Raised when a project or piece lookup fails and no fallback is possible."""
    pass


class InvalidStateTransition(ConflictError):
    """Raised when a session command is not allowed in the current phase."""
    pass


class SessionBusy(ConflictError):
    """Raised when a session command arrives while another one is still running."""
    pass


class NoCandidatesAvailable(ScoreReadException):
    """
    Raised when a selection produced no spots, so no session can start.
    
    This is a valid outcome rather than a failure: the user has nothing to
    practice yet and should be guided to create spots.
    """
    
    def __init__(self, message: str = "No spots available for practice", session_type: str = None):
        super().__init__(message)
        self.session_type = session_type


class PersistenceFailure(ScoreReadException):
    """
    Raised when the storage layer failed a read or write.
    
    Callers must surface it; state already applied in memory stays visible
    and can be saved again.
    """
    
    def __init__(self, message: str, operation: str = None):
        super().__init__(message)
        self.operation = operation
