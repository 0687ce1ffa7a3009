"""
Validation for the operator dialogs.

Pure checks - nothing here talks to the gateway.
"""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass
class FormValidationResult:
    valid: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    field: Optional[str] = None


def validate_destination_choice(
    selection: Optional[str],
    options: Sequence[str] = ()
) -> FormValidationResult:
    """
    Validate a destination picked in the printer dialog.

    Args:
        selection: Printer name chosen by the operator
        options: Names the dialog offered; membership is only enforced when
                 the list is non-empty

    Returns:
        FormValidationResult with validation details
    """
    if not selection or not selection.strip():
        return FormValidationResult(
            valid=False,
            error="Please select a printer",
            error_code="EMPTY_DESTINATION",
            field="destination"
        )

    if options and selection not in options:
        return FormValidationResult(
            valid=False,
            error=f"Unknown printer: {selection}",
            error_code="UNKNOWN_DESTINATION",
            field="destination"
        )

    return FormValidationResult(valid=True)


def validate_credentials(username: Optional[str], password: Optional[str]) -> FormValidationResult:
    """Both fields are required."""
    if not username:
        return FormValidationResult(
            valid=False,
            error="Please enter both username and password",
            error_code="EMPTY_USERNAME",
            field="username"
        )

    if not password:
        return FormValidationResult(
            valid=False,
            error="Please enter both username and password",
            error_code="EMPTY_PASSWORD",
            field="password"
        )

    return FormValidationResult(valid=True)
