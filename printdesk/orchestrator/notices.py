from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable


class NoticeLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }


NoticeCallback = Callable[[Notice], None]


class NoticeBoard:
    """Collects notices until the operator UI picks them up."""

    def __init__(self, maxlen: int = 50):
        self._notices: deque[Notice] = deque(maxlen=maxlen)

    def post(self, notice: Notice) -> None:
        self._notices.append(notice)

    def drain(self) -> list[Notice]:
        """Return pending notices and forget them, so each is shown once."""
        notices = list(self._notices)
        self._notices.clear()
        return notices

    def __len__(self) -> int:
        return len(self._notices)
