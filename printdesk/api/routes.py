"""
Operator API routes.

Base URL: /v1

The operator UI posts dialog actions here and renders whatever /v1/state
reports. Every response carries the resulting state, so the UI never has to
track orchestration state itself.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from printdesk.api.dependencies import get_notices, get_orchestrator, get_triggers
from printdesk.dialogs import render_dialogs
from printdesk.errors import ValidationError
from printdesk.gateway.base import PrintJob
from printdesk.orchestrator import Phase
from printdesk.validation import validate_print_job

router = APIRouter(prefix="/v1")


class PrintRequest(BaseModel):
    data: str
    mime_type: str = "application/octet-stream"
    requires_auth: bool = False


class TriggerRequest(BaseModel):
    data: Optional[str] = None


class DestinationRequest(BaseModel):
    destination: str = ""


class CredentialsRequest(BaseModel):
    username: str = ""
    password: str = ""


def _state_response() -> dict:
    """Current phase, open dialogs and pending notices."""
    orchestrator = get_orchestrator()
    state = orchestrator.state
    config = orchestrator.store.load()

    return {
        **render_dialogs(state).to_dict(),
        "pending_job": state.job.to_dict() if state.job else None,
        "default_destination": config.default_destination,
        "gateway": config.address,
        "notices": [notice.to_dict() for notice in get_notices().drain()],
    }


async def _settle() -> None:
    """Let an opened picker finish loading before answering."""
    orchestrator = get_orchestrator()
    if orchestrator.phase == Phase.AWAITING_DESTINATION:
        await orchestrator.destinations_ready()


@router.get("/health")
async def health_check():
    return {"status": "ok"}


@router.get("/state")
async def get_state():
    """Which dialog to render, plus notices since the last call."""
    return _state_response()


@router.get("/config")
async def get_config():
    """Stored printer settings (or the defaults in use)."""
    store = get_orchestrator().store
    saved = store.load_saved()
    config = saved or store.load()
    return {
        "address": config.address,
        "default_destination": config.default_destination,
        "persisted": saved is not None,
    }


@router.get("/triggers")
async def list_triggers():
    """List configured print triggers."""
    return {"triggers": get_triggers().list_triggers()}


@router.post("/print")
async def print_job(request: PrintRequest):
    """
    Submit an ad-hoc print job.

    Depending on stored settings and requires_auth, the job is sent at once
    or waits for the destination picker / credential prompt.
    """
    job = PrintJob(data=request.data, mime_type=request.mime_type)

    validation = validate_print_job(job)
    if not validation.valid:
        raise ValidationError(validation.error, field="data", error_code=validation.error_code)

    await get_orchestrator().submit_job(job, request.requires_auth)
    await _settle()
    return {"job_id": job.id, **_state_response()}


@router.post("/triggers/{trigger_id}")
async def press_trigger(trigger_id: str, request: Optional[TriggerRequest] = None):
    """Press a configured print trigger."""
    trigger = get_triggers().bind(trigger_id, get_orchestrator())
    if not trigger:
        available = list(get_triggers().list_triggers().keys())
        raise HTTPException(
            status_code=404,
            detail=f"Unknown trigger: '{trigger_id}'. Available: {available}"
        )

    await trigger.press(request.data if request else None)
    await _settle()
    return {"trigger": trigger_id, **_state_response()}


@router.post("/destinations/open")
async def open_destination_picker():
    """Open the printer picker and list the gateway's printers."""
    await get_orchestrator().open_destination_picker()
    await _settle()
    return _state_response()


@router.post("/destinations/select")
async def select_destination(request: DestinationRequest):
    """Confirm the printer picker."""
    orchestrator = get_orchestrator()

    picker = render_dialogs(orchestrator.state).picker
    if picker is not None:
        picker.confirm(request.destination)

    await orchestrator.select_destination(request.destination)
    await _settle()
    return _state_response()


@router.post("/credentials")
async def submit_credentials(request: CredentialsRequest):
    """Confirm the credential prompt."""
    await get_orchestrator().submit_credentials(request.username, request.password)
    await _settle()
    return _state_response()


@router.post("/cancel")
async def cancel():
    """Close the open dialog without printing."""
    cancelled = get_orchestrator().cancel()
    return {"cancelled": cancelled, **_state_response()}
