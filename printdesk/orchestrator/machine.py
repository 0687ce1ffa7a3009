"""
Print orchestration state machine.

Decides, for every print request, whether a destination must be picked and
whether credentials must be collected before the job goes to the gateway.

    Idle --submit_job--> AwaitingDestination   (nothing persisted yet)
                     --> AwaitingCredentials   (requires_auth)
                     --> Dispatching --> Idle  (otherwise)

    AwaitingDestination --select_destination--> Dispatching | AwaitingCredentials | Idle
    AwaitingCredentials --submit_credentials--> Dispatching | AwaitingDestination
    AwaitingDestination | AwaitingCredentials --cancel--> Idle

Only one pending job exists at a time; a new submission replaces it.
A job is dispatched at most once.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

from printdesk.errors import DispatchFailed, GatewayUnreachable, InvalidStateError, ValidationError
from printdesk.gateway.base import PrintJob
from printdesk.gateway.client import GatewayClient
from printdesk.storage import ConfigStore
from printdesk.validation import validate_credentials

from .notices import Notice, NoticeCallback, NoticeLevel
from .states import (
    IDLE,
    AwaitingCredentials,
    AwaitingDestination,
    Credentials,
    Dispatching,
    Idle,
    OrchestratorState,
    Phase,
)

logger = logging.getLogger(__name__)


class PrintOrchestrator:
    """
    Owns the pending print job and sequences the operator dialogs.

    All methods must be called from the same event loop.
    """

    def __init__(
        self,
        store: ConfigStore,
        gateway: GatewayClient,
        on_notice: Optional[NoticeCallback] = None
    ):
        self._store = store
        self._gateway = gateway
        self._on_notice = on_notice

        self._state: OrchestratorState = IDLE
        self._listing_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def store(self) -> ConfigStore:
        return self._store

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> OrchestratorState:
        """Open the destination picker if no printer has been chosen yet."""
        config = self._store.load()
        if not config.default_destination and isinstance(self._state, Idle):
            logger.info("No default printer configured, opening destination picker")
            self._await_destination(AwaitingDestination(), config.address)
        return self._state

    async def submit_job(self, job: PrintJob, requires_auth: bool = False) -> OrchestratorState:
        """
        Start a print cycle for a job.

        Replaces any pending job. Raises InvalidStateError while a dispatch
        is in progress.
        """
        self._ensure_not_dispatching("submit a print job")
        self._discard_pending(reason=f"replaced by job {job.id}")

        saved = self._store.load_saved()

        if saved is None:
            logger.info(f"Job {job.id}: no printer configured yet, awaiting destination")
            self._await_destination(
                AwaitingDestination(job=job, requires_auth=requires_auth),
                self._store.default_address
            )
            return self._state

        if requires_auth:
            logger.info(f"Job {job.id}: awaiting credentials")
            self._state = AwaitingCredentials(job=job, destination=saved.default_destination)
            return self._state

        job.destination = saved.default_destination or ""
        await self._dispatch(job, saved.address)
        return self._state

    async def select_destination(self, name: str) -> OrchestratorState:
        """
        Record the operator's printer choice and advance a pending job.

        The choice is persisted whatever the current phase. A pending job is
        dispatched only once its auth requirement is met.
        """
        if not name or not name.strip():
            raise ValidationError("Please select a printer", field="destination", error_code="EMPTY_DESTINATION")

        config = self._store.load()
        config.default_destination = name
        self._store.save(config)
        self._notify(NoticeLevel.SUCCESS, "Printer configured successfully")

        state = self._state

        if isinstance(state, AwaitingDestination):
            self._stop_listing()

            if state.job is None:
                self._state = IDLE
                return self._state

            job = state.job
            job.destination = name

            if state.credentials is not None or not state.requires_auth:
                await self._dispatch(job, config.address)
            else:
                logger.info(f"Job {job.id}: destination set to {name}, awaiting credentials")
                self._state = AwaitingCredentials(job=job, destination=name)

        elif isinstance(state, AwaitingCredentials):
            logger.info(f"Job {state.job.id}: destination set to {name} while awaiting credentials")
            self._state = replace(state, destination=name)

        return self._state

    async def submit_credentials(self, username: str, password: str) -> OrchestratorState:
        """
        Accept operator credentials for the pending job.

        Dispatches if the destination is already known, otherwise opens the
        destination picker and keeps the credentials until a printer is chosen.
        """
        validation = validate_credentials(username, password)
        if not validation.valid:
            raise ValidationError(validation.error, field=validation.field, error_code=validation.error_code)

        state = self._state
        credentials = Credentials(username=username, password=password)

        if isinstance(state, AwaitingCredentials):
            job = state.job
            if state.destination:
                job.destination = state.destination
                await self._dispatch(job, self._store.load().address)
            else:
                logger.info(f"Job {job.id}: credentials accepted, awaiting destination")
                self._await_destination(
                    AwaitingDestination(job=job, requires_auth=True, credentials=credentials),
                    self._store.load().address
                )
            return self._state

        if isinstance(state, AwaitingDestination) and state.job is not None:
            logger.info(f"Job {state.job.id}: credentials accepted before destination")
            self._state = replace(state, credentials=credentials)
            return self._state

        raise InvalidStateError("No print job is waiting for credentials", self.phase.value)

    async def open_destination_picker(self) -> OrchestratorState:
        """Open the printer picker on operator request."""
        self._ensure_not_dispatching("change printers")

        state = self._state
        address = self._store.load().address

        if isinstance(state, AwaitingDestination):
            self._await_destination(
                replace(state, destinations=(), suggested=None, loading=True),
                address
            )
        elif isinstance(state, AwaitingCredentials):
            self._await_destination(AwaitingDestination(job=state.job, requires_auth=True), address)
        else:
            self._await_destination(AwaitingDestination(), address)

        return self._state

    def cancel(self) -> bool:
        """
        Close whichever dialog is open and drop the pending job.

        Returns False when there was nothing to cancel. An in-flight dispatch
        cannot be cancelled.
        """
        state = self._state
        if not isinstance(state, (AwaitingDestination, AwaitingCredentials)):
            logger.debug(f"Nothing to cancel in phase {state.phase.value}")
            return False

        self._stop_listing()
        self._state = IDLE
        if state.job is not None:
            logger.info(f"Job {state.job.id} cancelled by operator")
        return True

    async def destinations_ready(self) -> tuple[str, ...]:
        """Wait for the destination listing in flight, if any."""
        task = self._listing_task
        if task is not None and not task.done():
            await asyncio.wait({task})

        state = self._state
        if isinstance(state, AwaitingDestination):
            return state.destinations
        return ()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_not_dispatching(self, action: str) -> None:
        if isinstance(self._state, Dispatching):
            raise InvalidStateError(
                f"Cannot {action} while job {self._state.job.id} is being sent",
                self.phase.value
            )

    def _discard_pending(self, reason: str) -> None:
        state = self._state
        self._stop_listing()
        if state.job is not None:
            logger.info(f"[JOB_REPLACED] Pending job {state.job.id} discarded: {reason}")
        self._state = IDLE

    def _await_destination(self, state: AwaitingDestination, address: str) -> None:
        self._stop_listing()
        self._state = state
        self._listing_task = asyncio.create_task(self._load_destinations(address))

    def _stop_listing(self) -> None:
        task = self._listing_task
        self._listing_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _load_destinations(self, address: str) -> None:
        """Fetch destinations for the open picker."""
        try:
            destinations = await self._gateway.list_destinations(address)
        except GatewayUnreachable as e:
            logger.warning(f"Failed to load printers: {e}")
            self._notify(NoticeLevel.WARNING, "Failed to load printers")
            destinations = []

        suggested = await self._gateway.get_default(address) if destinations else None

        # A newer listing or a state change makes this result stale
        if self._listing_task is not asyncio.current_task():
            return
        self._listing_task = None

        state = self._state
        if isinstance(state, AwaitingDestination):
            self._state = replace(
                state,
                destinations=tuple(destinations),
                suggested=suggested if suggested in destinations else None,
                loading=False
            )

    async def _dispatch(self, job: PrintJob, address: str) -> bool:
        self._state = Dispatching(job=job)
        try:
            await self._gateway.dispatch(job, address)
            sent = True
        except DispatchFailed as e:
            logger.error(f"[JOB_FAILED] {e}")
            sent = False
        finally:
            self._state = IDLE

        if sent:
            self._notify(NoticeLevel.SUCCESS, "Print job sent successfully")
        else:
            self._notify(NoticeLevel.ERROR, "Failed to send print job")
        return sent

    def _notify(self, level: NoticeLevel, message: str) -> None:
        if self._on_notice is None:
            return
        try:
            self._on_notice(Notice(level=level, message=message))
        except Exception as e:
            logger.error(f"Notice callback failed: {e}")
