"""
Print job validation.

Checks a job is fully formed before it enters the orchestrator.
"""

from dataclasses import dataclass
from typing import Optional

from printdesk.gateway.base import PrintJob


@dataclass
class JobValidationResult:
    valid: bool
    error: Optional[str] = None
    error_code: Optional[str] = None


def validate_print_job(job: PrintJob) -> JobValidationResult:
    """
    Validate a print job.

    Rejects empty payloads and missing MIME types. PDF payloads must carry
    the %PDF header.
    """
    if not job.data:
        return JobValidationResult(
            valid=False,
            error="No data provided",
            error_code="EMPTY_DATA"
        )

    if not job.mime_type:
        return JobValidationResult(
            valid=False,
            error="No MIME type provided",
            error_code="MISSING_MIME_TYPE"
        )

    if job.mime_type == "application/pdf" and isinstance(job.data, bytes):
        if not job.data.startswith(b"%PDF"):
            return JobValidationResult(
                valid=False,
                error="Data does not appear to be a PDF",
                error_code="INVALID_FORMAT"
            )

    return JobValidationResult(valid=True)
