"""verifier/errors.py — exception taxonomy for the verification pipeline."""
from typing import Optional


class VerificationError(Exception):
    """Base class for errors surfaced by the verification pipeline."""


class NotFoundError(VerificationError):
    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report not found: {report_id}")


class InvalidStateError(VerificationError):
    def __init__(self, report_id: str, status: str):
        self.report_id = report_id
        self.status = status
        super().__init__(f"Report {report_id} is already '{status}'; only pending reports can be verified")


class PersistenceError(VerificationError):
    def __init__(self, report_id: str, original_error: Optional[Exception] = None):
        self.report_id = report_id
        self.original_error = original_error
        super().__init__(f"Failed to persist verification for {report_id}: {original_error}")


class ProviderError(Exception):
    """Raised inside a signal provider; never leaves the provider boundary."""

    def __init__(self, source: str, message: str, original_error: Optional[Exception] = None):
        self.source = source
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source}: {message}")
