import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fastapi import Body, FastAPI, HTTPException

logger = logging.getLogger(__name__)


@dataclass
class ReceivedJob:
    data: str
    mime_type: str
    destination: str
    received_at: datetime = field(default_factory=datetime.now)


class MockGateway:
    """In-memory print gateway for development and tests without hardware."""

    def __init__(self, destinations: Optional[list[str]] = None, default: Optional[str] = None):
        self.destinations = list(destinations) if destinations is not None else ["Mock-Label", "Mock-Document"]
        self.default = default
        self.received: list[ReceivedJob] = []
        self.fail_dispatch = False  # For testing error handling
        self.fail_listing = False

    def accept(self, payload: dict) -> ReceivedJob:
        settings = payload.get("settings") or {}
        job = ReceivedJob(
            data=str(payload.get("data", "")),
            mime_type=str(payload.get("mimeType", "")),
            destination=str(settings.get("destination", "")),
        )
        self.received.append(job)
        logger.info(f"[MOCK] Printed {job.mime_type} job on {job.destination or '<default>'} ({len(job.data)} chars)")
        return job


def create_mock_gateway_app(gateway: Optional[MockGateway] = None) -> FastAPI:
    """Serve the gateway HTTP surface backed by a MockGateway."""
    gateway = gateway or MockGateway()
    app = FastAPI(title="Mock Print Gateway", version="1.0.0")
    app.state.gateway = gateway

    @app.get("/print/all")
    async def list_printers():
        if gateway.fail_listing:
            raise HTTPException(status_code=503, detail="Printer spooler unavailable")
        return gateway.destinations

    @app.get("/print")
    async def default_printer():
        if gateway.default is None:
            return None
        return {"name": gateway.default}

    @app.post("/print")
    async def print_job(payload: dict = Body(...)):
        if gateway.fail_dispatch:
            raise HTTPException(status_code=500, detail="Print failed (mock)")

        destination = (payload.get("settings") or {}).get("destination", "")
        if destination and destination not in gateway.destinations:
            raise HTTPException(status_code=404, detail=f"Unknown printer: {destination}")

        job = gateway.accept(payload)
        return {"status": "printed", "destination": job.destination}

    return app
