"""Engine error kinds.

Every error raised by the entitlement engine carries a machine readable
``code`` (the error kind) and a human message. They are recovered at the
request boundary by the application exception handler.
"""

from fastapi import status


class EngineError(Exception):
    """Base entitlement engine error."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "engine_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(EngineError):
    """Unknown item, leaf, order or progress record."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "not_found")


class DuplicateOrderError(EngineError):
    """A pending or approved order already exists for the same item."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "An active order already exists for this item"):
        super().__init__(message, "duplicate_order")


class InvalidTransitionError(EngineError):
    """Order is not in a state that allows the requested action."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Order is no longer pending"):
        super().__init__(message, "invalid_transition")


class NotEntitledError(EngineError):
    """Caller has no access to the requested content."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied. Item not purchased."):
        super().__init__(message, "not_entitled")


class ValidationError(EngineError):
    """Request is well-formed but violates a business rule."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, "validation_error")


class WriteConflictError(EngineError):
    """Optimistic write kept losing to concurrent writers."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Concurrent update, please retry"):
        super().__init__(message, "write_conflict")
