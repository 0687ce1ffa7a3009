"""
HTTP client for the local print gateway.

Gateway surface:
    GET  {address}/print/all  -> ["Printer A", "Printer B"]
    GET  {address}/print      -> current default destination (or empty)
    POST {address}/print      -> {data, mimeType, settings: {destination}}

Every call is single-shot with a bounded timeout. Retrying is the caller's
decision.
"""

import logging
from typing import Any, Optional

import httpx

from printdesk.errors import DispatchFailed, GatewayUnreachable

from .base import PrintJob

logger = logging.getLogger(__name__)


def _destination_name(entry: Any) -> Optional[str]:
    """Extract a printer name from a string or {"name": ...} entry."""
    if isinstance(entry, str):
        return entry or None
    if isinstance(entry, dict):
        for key in ("name", "destination", "printer"):
            value = entry.get(key)
            if isinstance(value, str) and value:
                return value
    return None


class GatewayClient:
    """
    Stateless transport to the print gateway.

    The gateway address is passed per call since it comes from the operator's
    persisted settings, which may change between calls.
    """

    def __init__(
        self,
        timeout_sec: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout_sec = timeout_sec
        self._transport = transport

    def _client(self, address: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=address,
            timeout=self.timeout_sec,
            transport=self._transport,
        )

    async def list_destinations(self, address: str) -> list[str]:
        """
        List printers known to the gateway.

        Raises:
            GatewayUnreachable: on transport error, timeout, non-2xx status,
                or a payload that is not a list
        """
        try:
            async with self._client(address) as client:
                response = await client.get("/print/all")
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise GatewayUnreachable(address, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise GatewayUnreachable(address, f"invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise GatewayUnreachable(address, f"unexpected payload: {type(payload).__name__}")

        destinations = []
        for entry in payload:
            name = _destination_name(entry)
            if name and name not in destinations:
                destinations.append(name)

        logger.debug(f"Gateway {address} lists {len(destinations)} destination(s)")
        return destinations

    async def dispatch(self, job: PrintJob, address: str) -> None:
        """
        Submit a job to the gateway.

        Raises:
            DispatchFailed: on transport error or non-success response
        """
        try:
            async with self._client(address) as client:
                response = await client.post("/print", json=job.to_payload())
        except httpx.HTTPError as e:
            raise DispatchFailed(job.id, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise DispatchFailed(
                job.id,
                f"gateway responded {response.status_code}",
                status_code=response.status_code
            )

        logger.info(
            f"[JOB_DISPATCHED] Job {job.id} sent to {job.destination or '<gateway default>'} "
            f"via {address} ({job.size} bytes, {job.mime_type})"
        )

    async def get_default(self, address: str) -> Optional[str]:
        """Fetch the gateway's current default printer. Best effort."""
        try:
            async with self._client(address) as client:
                response = await client.get("/print")
                response.raise_for_status()
                if not response.content:
                    return None
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Could not get default destination from {address}: {e}")
            return None

        return _destination_name(payload)
