from .forms import FormValidationResult, validate_credentials, validate_destination_choice
from .job import JobValidationResult, validate_print_job

__all__ = [
    "FormValidationResult",
    "JobValidationResult",
    "validate_credentials",
    "validate_destination_choice",
    "validate_print_job",
]
