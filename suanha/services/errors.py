class ServiceError(RuntimeError):
    """Recoverable service error (validation/uniqueness/etc.)."""


class ValidationError(ServiceError):
    """Bad input for a single named field."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict:
        return {self.field: self.reason}


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    """Uniqueness or referential conflict with stored data."""
