"""
Orchestrator states.

Each state carries only the data valid for it, so combinations like
"credentials held but no job pending" cannot be built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Union

from printdesk.gateway.base import PrintJob


class Phase(Enum):
    IDLE = "idle"
    AWAITING_DESTINATION = "awaiting_destination"
    AWAITING_CREDENTIALS = "awaiting_credentials"
    DISPATCHING = "dispatching"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[Phase] = Phase.IDLE

    @property
    def job(self) -> Optional[PrintJob]:
        return None


@dataclass(frozen=True)
class AwaitingDestination:
    """
    Destination picker is open.

    job is None when the operator opened the picker only to configure a
    printer. credentials may be held when they were confirmed before the
    destination was known.
    """

    job: Optional[PrintJob] = None
    requires_auth: bool = False
    credentials: Optional[Credentials] = None
    destinations: tuple[str, ...] = ()
    suggested: Optional[str] = None
    loading: bool = True

    phase: ClassVar[Phase] = Phase.AWAITING_DESTINATION

    def __post_init__(self):
        if self.job is None and (self.credentials is not None or self.requires_auth):
            raise ValueError("Credentials and auth requirements need a pending job")


@dataclass(frozen=True)
class AwaitingCredentials:
    """Credential prompt is open. destination is None until one is known."""

    job: PrintJob
    destination: Optional[str] = None

    phase: ClassVar[Phase] = Phase.AWAITING_CREDENTIALS


@dataclass(frozen=True)
class Dispatching:
    job: PrintJob

    phase: ClassVar[Phase] = Phase.DISPATCHING


OrchestratorState = Union[Idle, AwaitingDestination, AwaitingCredentials, Dispatching]

IDLE = Idle()
