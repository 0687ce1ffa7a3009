from .machine import PrintOrchestrator
from .notices import Notice, NoticeBoard, NoticeLevel
from .states import (
    AwaitingCredentials,
    AwaitingDestination,
    Credentials,
    Dispatching,
    Idle,
    OrchestratorState,
    Phase,
)

__all__ = [
    "PrintOrchestrator",
    "Notice",
    "NoticeBoard",
    "NoticeLevel",
    "AwaitingCredentials",
    "AwaitingDestination",
    "Credentials",
    "Dispatching",
    "Idle",
    "OrchestratorState",
    "Phase",
]
