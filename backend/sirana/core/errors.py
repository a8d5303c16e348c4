"""
Domain error kinds raised by the repositories, statistics and report services.

Every error carries a machine-readable ``code`` and a ``to_dict()`` payload so
the HTTP layer (or any other caller) can surface it without string parsing.
"""
from typing import Any, Dict, List, Optional


class SiranaError(Exception):
    """Base class for all domain errors."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(SiranaError):
    """Input failed a format, range or required check.

    ``errors`` lists every failing field, not just the first one.
    """

    code = "validation_error"

    def __init__(self, errors: List[Dict[str, str]], message: str = "Invalid input"):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class NotFoundError(SiranaError):
    code = "not_found"

    def __init__(self, entity: str, key: Any, field: str = "id"):
        super().__init__(f"{entity} with {field}={key!r} not found")
        self.entity = entity
        self.key = key
        self.field = field


class ConflictError(SiranaError):
    """Uniqueness violation (identity number, email, employee id)."""

    code = "conflict"

    def __init__(self, entity: str, field: str, value: Optional[Any] = None):
        super().__init__(f"{entity} with this {field} already exists")
        self.entity = entity
        self.field = field
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload


class StorageError(SiranaError):
    """Underlying persistence failure, including a rolled-back transaction."""

    code = "storage_error"


class UnsupportedInputError(SiranaError):
    """A list-valued field was given something that is neither a string nor a list."""

    code = "unsupported_input"

    def __init__(self, field: str, value: Any):
        super().__init__(
            f"Field '{field}' must be a comma-separated string or a list, got {type(value).__name__}"
        )
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload
