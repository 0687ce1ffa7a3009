"""
Client boundary for the remote record API.

The bearer token lives in an explicit TokenHolder handed to the client at
construction, so whoever logs in and whoever calls the API share it openly.
Failures come back as ApiResponse(succeeded=False), never as exceptions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class TokenHolder:
    """Holds the current auth token for the record API."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token or None

    def clear_token(self) -> None:
        self._token = None

    def auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}


@dataclass
class ApiResponse:
    succeeded: bool
    data: Any = None
    error: Optional[str] = None
    error_details: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiResponse":
        """Parse the {succeeded, data, error, errorDetails} envelope."""
        if not isinstance(payload, dict):
            return cls(succeeded=True, data=payload)
        return cls(
            succeeded=bool(payload.get("succeeded", True)),
            data=payload.get("data"),
            error=payload.get("error"),
            error_details=list(payload.get("errorDetails") or []),
        )


def _error_response(error: Exception) -> ApiResponse:
    """Build a failed ApiResponse from an httpx error."""
    if isinstance(error, httpx.HTTPStatusError):
        try:
            body = error.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            errors = body.get("errors")
            return ApiResponse(
                succeeded=False,
                error=body.get("message") or str(error),
                error_details=list(errors) if isinstance(errors, list) else [],
            )
        return ApiResponse(succeeded=False, error=str(error))

    return ApiResponse(
        succeeded=False,
        error=str(error) or "Network error or server unavailable",
    )


class RecordApiClient:
    """Async client for the record API with bearer-token auth."""

    def __init__(
        self,
        base_url: str,
        tokens: TokenHolder,
        timeout_sec: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.tokens = tokens
        self.timeout_sec = timeout_sec
        self._transport = transport

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None
    ) -> ApiResponse:
        headers = {"Content-Type": "application/json", **self.tokens.auth_headers()}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_sec,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, params=params)
                response.raise_for_status()
                return ApiResponse.from_payload(response.json())
        except httpx.HTTPError as e:
            logger.warning(f"Record API {method} {path} failed: {e}")
            return _error_response(e)
        except ValueError as e:
            logger.warning(f"Record API {method} {path} returned invalid JSON: {e}")
            return ApiResponse(succeeded=False, error="Unexpected error occurred")

    async def login(self, username: str, password: str, app_name: str) -> ApiResponse:
        """Log in and keep the returned token on success."""
        response = await self.request(
            "POST",
            "/Auth/Login",
            json={"appName": app_name, "username": username, "password": password},
        )

        token = response.data.get("token") if isinstance(response.data, dict) else None
        if response.succeeded and token:
            self.tokens.set_token(token)
            logger.info(f"Logged in to record API as {username}")
        elif response.succeeded:
            response = ApiResponse(succeeded=False, error="Invalid credentials")

        return response

    def logout(self) -> None:
        self.tokens.clear_token()
        logger.info("Logged out of record API")
