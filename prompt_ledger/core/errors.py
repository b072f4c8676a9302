"""Error taxonomy for the version store, protocol and persistence layer.

Every error carries a machine-readable ``code`` and the HTTP ``status_code``
the API layer answers with.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all prompt ledger errors."""

    code = "ledger_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class NotFoundError(LedgerError):
    """Unknown prompt or version id."""

    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity.capitalize()} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidReferenceError(LedgerError):
    """A version was addressed through a prompt that does not own it."""

    code = "invalid_reference"
    status_code = 409

    def __init__(self, version_id: str, prompt_id: str) -> None:
        super().__init__(f"Version '{version_id}' does not belong to prompt '{prompt_id}'")
        self.version_id = version_id
        self.prompt_id = prompt_id


class ValidationError(LedgerError):
    """A required field is missing or blank."""

    code = "validation_error"
    status_code = 422

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"'{field}' must not be empty")
        self.field = field


class TransactionError(LedgerError):
    """The storage collaborator failed while a mutation was in flight.

    Nothing written inside the failed transaction is visible afterwards.
    """

    code = "transaction_failed"
    status_code = 503
