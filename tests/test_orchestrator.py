"""Tests for the print orchestration state machine."""

import asyncio
from typing import Optional

import pytest

from printdesk.errors import DispatchFailed, GatewayUnreachable, InvalidStateError, ValidationError
from printdesk.gateway.base import PrintJob
from printdesk.orchestrator import (
    AwaitingCredentials,
    AwaitingDestination,
    Credentials,
    Dispatching,
    NoticeBoard,
    NoticeLevel,
    Phase,
    PrintOrchestrator,
)
from printdesk.storage import ConfigStore, GatewayConfig, LocalStorage

ADDRESS = "http://localhost:9090"


class FakeGateway:
    """Records gateway calls; behaviour is set per test."""

    def __init__(self, destinations=None, default: Optional[str] = None):
        self.destinations = destinations if destinations is not None else ["A", "B"]
        self.default = default
        self.unreachable = False
        self.fail_dispatch = False
        self.dispatch_gate: Optional[asyncio.Event] = None
        self.listed: list[str] = []
        self.dispatched: list[tuple[str, str, str]] = []

    async def list_destinations(self, address: str) -> list[str]:
        self.listed.append(address)
        if self.unreachable:
            raise GatewayUnreachable(address, "connection refused")
        return list(self.destinations)

    async def get_default(self, address: str) -> Optional[str]:
        return self.default

    async def dispatch(self, job: PrintJob, address: str) -> None:
        if self.dispatch_gate is not None:
            await self.dispatch_gate.wait()
        if self.fail_dispatch:
            raise DispatchFailed(job.id, "gateway responded 500", status_code=500)
        self.dispatched.append((job.id, job.destination, address))


@pytest.fixture
def store(tmp_path):
    return ConfigStore(LocalStorage(tmp_path))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def orchestrator(store, gateway, notices):
    return PrintOrchestrator(store, gateway, on_notice=notices.post)


def make_job(data: str = "X") -> PrintJob:
    return PrintJob(data=data, mime_type="text/plain")


def configure(store: ConfigStore, destination: Optional[str] = "HP-Label-1") -> None:
    store.save(GatewayConfig(address=ADDRESS, default_destination=destination))


def levels(board: NoticeBoard) -> list[NoticeLevel]:
    return [notice.level for notice in board.drain()]


class TestConfiguredPrinting:
    @pytest.mark.asyncio
    async def test_dispatches_to_persisted_default(self, orchestrator, store, gateway, notices):
        """With a saved printer, a job without auth goes straight out."""
        configure(store)
        job = make_job()

        state = await orchestrator.submit_job(job, False)

        assert state.phase == Phase.IDLE
        assert gateway.dispatched == [(job.id, "HP-Label-1", ADDRESS)]
        assert gateway.listed == []
        assert levels(notices) == [NoticeLevel.SUCCESS]

    @pytest.mark.asyncio
    async def test_persisted_without_destination_dispatches_empty(self, orchestrator, store, gateway):
        """A saved address without a printer sends to the gateway default."""
        store.save(GatewayConfig(address="http://printhost:9090"))
        job = make_job()

        await orchestrator.submit_job(job, False)

        assert gateway.dispatched == [(job.id, "", "http://printhost:9090")]

    @pytest.mark.asyncio
    async def test_dispatch_failure_returns_to_idle(self, orchestrator, store, gateway, notices):
        """A rejected job is dropped and reported once."""
        configure(store)
        gateway.fail_dispatch = True

        state = await orchestrator.submit_job(make_job(), False)

        assert state.phase == Phase.IDLE
        assert gateway.dispatched == []
        assert levels(notices) == [NoticeLevel.ERROR]

    @pytest.mark.asyncio
    async def test_no_retry_after_failure(self, orchestrator, store, gateway):
        """A fresh submit is needed after a failure."""
        configure(store)
        gateway.fail_dispatch = True
        await orchestrator.submit_job(make_job(), False)

        gateway.fail_dispatch = False
        await asyncio.sleep(0)
        assert gateway.dispatched == []

        job = make_job()
        await orchestrator.submit_job(job, False)
        assert [d[0] for d in gateway.dispatched] == [job.id]


class TestFirstRun:
    @pytest.mark.asyncio
    async def test_awaits_destination_then_dispatches_once(self, orchestrator, store, gateway):
        """Nothing persisted: pick a printer first, then exactly one dispatch."""
        job = make_job()

        state = await orchestrator.submit_job(job, False)
        assert isinstance(state, AwaitingDestination)
        assert state.job is job

        assert await orchestrator.destinations_ready() == ("A", "B")
        assert gateway.dispatched == []

        state = await orchestrator.select_destination("B")

        assert state.phase == Phase.IDLE
        assert store.load_saved() == GatewayConfig(address=ADDRESS, default_destination="B")
        assert gateway.dispatched == [(job.id, "B", ADDRESS)]

    @pytest.mark.asyncio
    async def test_lists_from_default_address(self, tmp_path, gateway):
        store = ConfigStore(LocalStorage(tmp_path), default_address="http://printhost:8080")
        orchestrator = PrintOrchestrator(store, gateway)

        await orchestrator.submit_job(make_job(), False)
        await orchestrator.destinations_ready()

        assert gateway.listed == ["http://printhost:8080"]

    @pytest.mark.asyncio
    async def test_suggests_gateway_default(self, orchestrator, gateway):
        gateway.default = "B"
        await orchestrator.submit_job(make_job(), False)
        await orchestrator.destinations_ready()

        assert orchestrator.state.suggested == "B"
        assert orchestrator.state.loading is False

    @pytest.mark.asyncio
    async def test_unreachable_gateway_shows_empty_list(self, orchestrator, gateway, notices):
        """Listing failure: empty picker plus one warning, job still pending."""
        gateway.unreachable = True
        job = make_job()

        await orchestrator.submit_job(job, False)
        assert await orchestrator.destinations_ready() == ()

        state = orchestrator.state
        assert isinstance(state, AwaitingDestination)
        assert state.job is job
        assert state.loading is False
        assert levels(notices) == [NoticeLevel.WARNING]

    @pytest.mark.asyncio
    async def test_first_run_with_auth_collects_credentials_after_destination(self, orchestrator, store, gateway):
        job = make_job()
        await orchestrator.submit_job(job, True)
        await orchestrator.destinations_ready()

        state = await orchestrator.select_destination("A")
        assert isinstance(state, AwaitingCredentials)
        assert state.destination == "A"
        assert gateway.dispatched == []

        state = await orchestrator.submit_credentials("operator", "secret")
        assert state.phase == Phase.IDLE
        assert gateway.dispatched == [(job.id, "A", ADDRESS)]


class TestAuthRequired:
    @pytest.mark.asyncio
    async def test_goes_straight_to_credentials(self, orchestrator, store, gateway):
        """Persisted printer + auth: prompt first, no listing, then dispatch."""
        configure(store)
        job = make_job()

        state = await orchestrator.submit_job(job, True)

        assert isinstance(state, AwaitingCredentials)
        assert state.destination == "HP-Label-1"
        assert gateway.listed == []
        assert gateway.dispatched == []

        state = await orchestrator.submit_credentials("operator", "secret")

        assert state.phase == Phase.IDLE
        assert gateway.dispatched == [(job.id, "HP-Label-1", ADDRESS)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [("", "secret"), ("operator", ""), ("", "")])
    async def test_empty_credentials_rejected(self, orchestrator, store, gateway, username, password):
        """Empty fields are rejected inline; the prompt stays open."""
        configure(store)
        await orchestrator.submit_job(make_job(), True)
        before = orchestrator.state

        with pytest.raises(ValidationError):
            await orchestrator.submit_credentials(username, password)

        assert orchestrator.state is before
        assert gateway.dispatched == []

    @pytest.mark.asyncio
    async def test_credentials_without_destination_open_picker(self, orchestrator, store, gateway):
        """Credentials confirmed but no printer known: wait for a destination."""
        store.save(GatewayConfig(address=ADDRESS))
        job = make_job()
        await orchestrator.submit_job(job, True)

        state = await orchestrator.submit_credentials("operator", "secret")

        assert isinstance(state, AwaitingDestination)
        assert state.credentials == Credentials("operator", "secret")
        assert gateway.dispatched == []

        await orchestrator.destinations_ready()
        await orchestrator.select_destination("A")

        assert gateway.dispatched == [(job.id, "A", ADDRESS)]

    @pytest.mark.asyncio
    async def test_credentials_before_destination_on_first_run(self, orchestrator, gateway):
        """Credentials may arrive first; dispatch waits for the destination."""
        job = make_job()
        await orchestrator.submit_job(job, True)

        state = await orchestrator.submit_credentials("operator", "secret")
        assert isinstance(state, AwaitingDestination)
        assert state.credentials is not None
        assert gateway.dispatched == []

        await orchestrator.select_destination("B")
        assert gateway.dispatched == [(job.id, "B", ADDRESS)]

    @pytest.mark.asyncio
    async def test_selecting_destination_while_awaiting_credentials_never_dispatches(self, orchestrator, store, gateway):
        configure(store)
        job = make_job()
        await orchestrator.submit_job(job, True)

        state = await orchestrator.select_destination("Zebra")

        assert isinstance(state, AwaitingCredentials)
        assert state.destination == "Zebra"
        assert gateway.dispatched == []

        await orchestrator.submit_credentials("operator", "secret")
        assert gateway.dispatched == [(job.id, "Zebra", ADDRESS)]

    @pytest.mark.asyncio
    async def test_credentials_rejected_when_nothing_pending(self, orchestrator):
        with pytest.raises(InvalidStateError):
            await orchestrator.submit_credentials("operator", "secret")

    def test_password_not_in_repr(self):
        assert "secret" not in repr(Credentials("operator", "secret"))


class TestDestinationSelection:
    @pytest.mark.asyncio
    async def test_empty_selection_rejected(self, orchestrator, store):
        await orchestrator.submit_job(make_job(), False)

        with pytest.raises(ValidationError):
            await orchestrator.select_destination("")

        assert store.load_saved() is None
        assert isinstance(orchestrator.state, AwaitingDestination)

    @pytest.mark.asyncio
    async def test_repeat_selection_is_idempotent(self, orchestrator, store, gateway):
        """Selecting the same printer twice persists once more but sends once."""
        job = make_job()
        await orchestrator.submit_job(job, False)

        await orchestrator.select_destination("B")
        first = store.load_saved()
        await orchestrator.select_destination("B")

        assert store.load_saved() == first
        assert gateway.dispatched == [(job.id, "B", ADDRESS)]

    @pytest.mark.asyncio
    async def test_destination_only_flow(self, orchestrator, store, gateway):
        """Opening the picker with no job only saves the printer."""
        state = await orchestrator.open_destination_picker()
        assert isinstance(state, AwaitingDestination)
        assert state.job is None
        assert await orchestrator.destinations_ready() == ("A", "B")

        state = await orchestrator.select_destination("A")

        assert state.phase == Phase.IDLE
        assert store.load().default_destination == "A"
        assert gateway.dispatched == []

    @pytest.mark.asyncio
    async def test_open_picker_from_credentials_keeps_job(self, orchestrator, store, gateway):
        configure(store)
        job = make_job()
        await orchestrator.submit_job(job, True)

        state = await orchestrator.open_destination_picker()
        assert isinstance(state, AwaitingDestination)
        assert state.job is job
        assert state.requires_auth is True

        state = await orchestrator.select_destination("B")
        assert isinstance(state, AwaitingCredentials)
        assert gateway.dispatched == []

    @pytest.mark.asyncio
    async def test_start_opens_picker_without_default(self, orchestrator):
        state = await orchestrator.start()
        assert isinstance(state, AwaitingDestination)
        assert state.job is None

    @pytest.mark.asyncio
    async def test_start_stays_idle_with_default(self, orchestrator, store):
        configure(store)
        state = await orchestrator.start()
        assert state.phase == Phase.IDLE


class TestPendingJobReplacement:
    @pytest.mark.asyncio
    async def test_new_submission_replaces_pending_and_drops_credentials(self, orchestrator, gateway):
        """Last submission wins; earlier credentials are discarded."""
        first = make_job("first")
        await orchestrator.submit_job(first, True)
        await orchestrator.submit_credentials("operator", "secret")

        second = make_job("second")
        state = await orchestrator.submit_job(second, True)

        assert isinstance(state, AwaitingDestination)
        assert state.job is second
        assert state.credentials is None

        await orchestrator.destinations_ready()
        state = await orchestrator.select_destination("A")

        # Credentials from the first job must not satisfy the second
        assert isinstance(state, AwaitingCredentials)
        assert gateway.dispatched == []

        await orchestrator.submit_credentials("operator", "secret")
        assert gateway.dispatched == [(second.id, "A", ADDRESS)]

    @pytest.mark.asyncio
    async def test_replacement_while_listing_applies_latest_listing(self, orchestrator, gateway):
        await orchestrator.submit_job(make_job("first"), False)
        gateway.destinations = ["C"]
        second = make_job("second")
        await orchestrator.submit_job(second, False)

        assert await orchestrator.destinations_ready() == ("C",)
        assert orchestrator.state.job is second

    @pytest.mark.asyncio
    async def test_submit_during_dispatch_rejected(self, orchestrator, store, gateway):
        """A dispatch in flight cannot be overlapped or aborted."""
        configure(store)
        gateway.dispatch_gate = asyncio.Event()
        job = make_job()

        task = asyncio.create_task(orchestrator.submit_job(job, False))
        await asyncio.sleep(0)
        assert isinstance(orchestrator.state, Dispatching)

        with pytest.raises(InvalidStateError):
            await orchestrator.submit_job(make_job(), False)
        assert orchestrator.cancel() is False

        gateway.dispatch_gate.set()
        await task

        assert orchestrator.phase == Phase.IDLE
        assert gateway.dispatched == [(job.id, "HP-Label-1", ADDRESS)]


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_from_destination_picker(self, orchestrator, store, gateway):
        await orchestrator.submit_job(make_job(), False)

        assert orchestrator.cancel() is True

        assert orchestrator.phase == Phase.IDLE
        assert orchestrator.state.job is None
        assert store.load_saved() is None
        assert await orchestrator.destinations_ready() == ()

    @pytest.mark.asyncio
    async def test_cancel_from_credentials(self, orchestrator, store, gateway):
        configure(store)
        await orchestrator.submit_job(make_job(), True)

        assert orchestrator.cancel() is True
        assert orchestrator.phase == Phase.IDLE
        assert store.load_saved() == GatewayConfig(address=ADDRESS, default_destination="HP-Label-1")

    @pytest.mark.asyncio
    async def test_cancel_clears_held_credentials(self, orchestrator, store, gateway):
        """After cancel, the next submission behaves as if nothing happened."""
        store.save(GatewayConfig(address=ADDRESS))
        await orchestrator.submit_job(make_job(), True)
        await orchestrator.submit_credentials("operator", "secret")
        orchestrator.cancel()

        configure(store)
        job = make_job()
        state = await orchestrator.submit_job(job, True)

        assert isinstance(state, AwaitingCredentials)
        assert gateway.dispatched == []

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_noop(self, orchestrator):
        assert orchestrator.cancel() is False
        assert orchestrator.phase == Phase.IDLE


class TestStates:
    def test_credentials_require_a_job(self):
        """States that would hold credentials without a job cannot be built."""
        with pytest.raises(ValueError):
            AwaitingDestination(job=None, credentials=Credentials("operator", "secret"))

    def test_phase_values(self):
        assert [p.value for p in Phase] == [
            "idle",
            "awaiting_destination",
            "awaiting_credentials",
            "dispatching",
        ]
