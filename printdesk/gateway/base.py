import base64
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass
class PrintJob:
    data: Union[str, bytes] = ""
    mime_type: str = "application/octet-stream"
    destination: str = ""  # Filled in by the orchestrator before dispatch
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def size(self) -> int:
        if isinstance(self.data, bytes):
            return len(self.data)
        return len(self.data.encode("utf-8"))

    def to_payload(self) -> dict:
        """Body for POST {address}/print."""
        if isinstance(self.data, bytes):
            data = base64.b64encode(self.data).decode("ascii")
        else:
            data = self.data

        return {
            "data": data,
            "mimeType": self.mime_type,
            "settings": {"destination": self.destination},
        }

    def to_dict(self) -> dict:
        """Summary for API responses (payload omitted)."""
        return {
            "id": self.id,
            "mime_type": self.mime_type,
            "destination": self.destination,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
        }
