"""
Custom exception classes for the Ask Data application.
These allow us to differentiate between user errors (4xx) and system errors (5xx).
"""

class AppException(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: str = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class FileProcessingError(AppException):
    """Raised when file upload or parsing fails."""
    def __init__(self, message: str = "Failed to process the uploaded file.", details: str = None):
        super().__init__(message, status_code=400, details=details)

class DatasetNotFoundError(AppException):
    """Raised when a query references an unknown or expired dataset id."""
    def __init__(self, message: str = "Dataset not found or empty"):
        super().__init__(message, status_code=404)

class InvalidQueryError(AppException):
    """Raised when the user input is ambiguous or invalid."""
    def __init__(self, message: str = "The query is invalid or incomplete."):
        super().__init__(message, status_code=400)

class IntentResolutionError(AppException):
    """Raised when no resolver in the chain produced an intent."""
    def __init__(self, message: str = "Could not interpret the query."):
        super().__init__(message, status_code=500)

