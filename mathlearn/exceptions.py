"""
Application exception hierarchy

Services raise these; the handlers in main.py turn them into error envelopes.
"""


class MathLearnError(Exception):
    """Base exception for all MathLearn errors"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(MathLearnError):
    """Resource not found"""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ValidationError(MathLearnError):
    """Request is well-formed but violates a business rule"""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ConflictError(MathLearnError):
    """Unique constraint would be violated"""

    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class AuthenticationError(MathLearnError):
    """Credentials were rejected"""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, status_code=401)
