"""
Print triggers: the "Print" buttons of the operator UI.

A trigger binds a job template and an auth requirement to the orchestrator.
It holds no state of its own beyond that binding.

Config example:
    triggers:
      package-label: text/plain

Or with details:
    triggers:
      split-label:
        mime_type: application/pdf
        requires_auth: true
        description: "Labels for split packages"
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from printdesk.dialogs import DialogView, render_dialogs
from printdesk.errors import ValidationError
from printdesk.gateway.base import PrintJob
from printdesk.orchestrator import PrintOrchestrator
from printdesk.validation import validate_print_job

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class TriggerConfig:
    trigger_id: str
    mime_type: str = DEFAULT_MIME_TYPE
    requires_auth: bool = False
    description: str = ""
    data: str = ""

    def to_dict(self) -> dict:
        return {
            "mime_type": self.mime_type,
            "requires_auth": self.requires_auth,
            "description": self.description,
        }


class PrintTrigger:
    """Submits jobs built from a template to the orchestrator."""

    def __init__(self, orchestrator: PrintOrchestrator, config: TriggerConfig):
        self._orchestrator = orchestrator
        self.config = config

    def build_job(self, data: Optional[Union[str, bytes]] = None) -> PrintJob:
        return PrintJob(
            data=data if data is not None else self.config.data,
            mime_type=self.config.mime_type,
        )

    async def press(self, data: Optional[Union[str, bytes]] = None) -> DialogView:
        """Submit a fresh job and report which dialog to show next."""
        job = self.build_job(data)

        validation = validate_print_job(job)
        if not validation.valid:
            raise ValidationError(validation.error, field="data", error_code=validation.error_code)

        logger.info(f"Trigger '{self.config.trigger_id}' pressed: job {job.id}")
        await self._orchestrator.submit_job(job, self.config.requires_auth)
        return self.view()

    def view(self) -> DialogView:
        return render_dialogs(self._orchestrator.state)


class TriggerRegistry:
    """Named triggers loaded from configuration."""

    def __init__(self):
        self._triggers: dict[str, TriggerConfig] = {}

    def load_config(self, config: dict) -> None:
        """Load the triggers section."""
        triggers = config.get("triggers") or {}

        for trigger_id, target in triggers.items():
            if isinstance(target, str):
                # Simple format: trigger_id: mime/type
                self._triggers[trigger_id] = TriggerConfig(trigger_id=trigger_id, mime_type=target)
            elif isinstance(target, dict):
                self._triggers[trigger_id] = TriggerConfig(
                    trigger_id=trigger_id,
                    mime_type=target.get("mime_type", DEFAULT_MIME_TYPE),
                    requires_auth=bool(target.get("requires_auth", False)),
                    description=target.get("description", ""),
                    data=target.get("data", ""),
                )
            else:
                logger.warning(f"Ignoring trigger '{trigger_id}': unsupported config {target!r}")

    def add(self, config: TriggerConfig) -> None:
        """Programmatically add a trigger (useful for testing)."""
        self._triggers[config.trigger_id] = config

    def get(self, trigger_id: str) -> Optional[TriggerConfig]:
        return self._triggers.get(trigger_id)

    def bind(self, trigger_id: str, orchestrator: PrintOrchestrator) -> Optional[PrintTrigger]:
        config = self.get(trigger_id)
        return PrintTrigger(orchestrator, config) if config else None

    def list_triggers(self) -> dict[str, dict]:
        return {trigger_id: trigger.to_dict() for trigger_id, trigger in self._triggers.items()}
