# crowdwatch/exceptions.py


class CrowdWatchError(Exception):
    """Base exception for all CrowdWatch errors."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or "An unknown error occurred"


class ValidationError(CrowdWatchError):
    """Raised when a required field is missing or invalid."""
    status_code = 400


class NotFoundError(CrowdWatchError):
    """Raised when an identifier does not resolve to a stored record."""
    status_code = 404


class PersistenceError(CrowdWatchError):
    """Raised when a store read or write fails."""
    status_code = 500


class InferenceError(CrowdWatchError):
    """Raised when the inference provider cannot produce a result."""
    status_code = 500
