"""
Presentation models for the destination picker and the credential prompt.

The operator UI renders whatever render_dialogs() reports for the current
orchestrator state. Confirming a dialog validates its fields locally; closing
it any other way is a cancel.
"""

from dataclasses import dataclass, field
from typing import Optional

from printdesk.errors import ValidationError
from printdesk.orchestrator.states import (
    AwaitingCredentials,
    AwaitingDestination,
    Credentials,
    OrchestratorState,
)
from printdesk.validation import validate_credentials, validate_destination_choice


@dataclass
class DestinationPicker:
    options: list[str] = field(default_factory=list)
    suggested: Optional[str] = None
    loading: bool = False
    title: str = "Select Printer"

    def confirm(self, selection: Optional[str]) -> str:
        """Return the chosen printer name or raise ValidationError."""
        result = validate_destination_choice(selection, self.options)
        if not result.valid:
            raise ValidationError(result.error, field=result.field, error_code=result.error_code)
        return selection

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "options": list(self.options),
            "suggested": self.suggested,
            "loading": self.loading,
        }


@dataclass
class CredentialPrompt:
    title: str = "Printer Authentication"

    def confirm(self, username: Optional[str], password: Optional[str]) -> Credentials:
        result = validate_credentials(username, password)
        if not result.valid:
            raise ValidationError(result.error, field=result.field, error_code=result.error_code)
        return Credentials(username=username, password=password)

    def to_dict(self) -> dict:
        return {"title": self.title, "fields": ["username", "password"]}


@dataclass
class DialogView:
    phase: str
    picker: Optional[DestinationPicker] = None
    prompt: Optional[CredentialPrompt] = None

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "destination_picker": self.picker.to_dict() if self.picker else None,
            "credential_prompt": self.prompt.to_dict() if self.prompt else None,
        }


def render_dialogs(state: OrchestratorState) -> DialogView:
    """Decide which dialog, if any, is open for an orchestrator state."""
    view = DialogView(phase=state.phase.value)

    if isinstance(state, AwaitingDestination):
        view.picker = DestinationPicker(
            options=list(state.destinations),
            suggested=state.suggested,
            loading=state.loading,
        )
    elif isinstance(state, AwaitingCredentials):
        view.prompt = CredentialPrompt()

    return view
