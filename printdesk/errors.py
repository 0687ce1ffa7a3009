"""
Exception taxonomy for the print desk.

Hierarchy:
    PrintDeskError (base)
    ├── ConfigUnavailable   - persisted config missing/corrupt (never surfaced)
    ├── GatewayUnreachable  - destination listing failed (empty list + notice)
    ├── DispatchFailed      - gateway rejected the job or transport failed
    ├── ValidationError     - empty/invalid operator input (inline rejection)
    └── InvalidStateError   - operation not allowed in the current phase
"""

from typing import Any, Optional


class PrintDeskError(Exception):
    """Base class for all print desk errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigUnavailable(PrintDeskError):
    """Persisted configuration is missing or cannot be parsed."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Stored record '{key}' unavailable: {reason}", {"key": key})
        self.key = key
        self.reason = reason


class GatewayUnreachable(PrintDeskError):
    """The print gateway could not be reached or returned garbage."""

    def __init__(self, address: str, reason: str):
        super().__init__(f"Print gateway at {address} unreachable: {reason}", {"address": address})
        self.address = address
        self.reason = reason


class DispatchFailed(PrintDeskError):
    """The gateway did not accept a print job."""

    def __init__(self, job_id: str, reason: str, status_code: Optional[int] = None):
        details: dict[str, Any] = {"job_id": job_id}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(f"Failed to send print job {job_id}: {reason}", details)
        self.job_id = job_id
        self.reason = reason
        self.status_code = status_code


class ValidationError(PrintDeskError):
    """Operator input rejected before any network call."""

    def __init__(self, message: str, field: str = "", error_code: str = "INVALID_INPUT"):
        super().__init__(message)
        self.field = field
        self.error_code = error_code


class InvalidStateError(PrintDeskError):
    """Operation is not allowed in the orchestrator's current phase."""

    def __init__(self, message: str, phase: str):
        super().__init__(message, {"phase": phase})
        self.phase = phase