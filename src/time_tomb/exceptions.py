"""Exception hierarchy for the Time Tomb client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .types import TransactionKind


class TimeTombError(Exception):
    """Base exception for all Time Tomb client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NetworkError(TimeTombError):
    """Raised when the RPC endpoint is unreachable or not connected."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class ValidationError(TimeTombError):
    """Raised when configuration or input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class ReadError(TimeTombError):
    """Raised when a batched contract read fails entirely."""

    def __init__(
        self,
        message: str,
        sequence: int | None = None,
        failed_fields: frozenset[str] | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.sequence = sequence
        self.failed_fields = failed_fields or frozenset()


class TransactionError(TimeTombError):
    """Raised when a wallet submission, broadcast or receipt fails."""

    def __init__(
        self,
        message: str,
        kind: TransactionKind | None = None,
        tx_hash: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.kind = kind
        self.tx_hash = tx_hash


class ConfirmationTimeout(TransactionError):
    """Raised when a receipt is not observed within the configured timeout."""

    pass
