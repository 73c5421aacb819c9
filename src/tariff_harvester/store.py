"""In-memory store of cors-execute request records."""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

STATUS_PENDING = "pending"
STATUS_FETCHING_COOKIES = "fetching_cookies"
STATUS_MAKING_API_CALL = "making_api_call"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

STATUSES = (STATUS_PENDING, STATUS_FETCHING_COOKIES, STATUS_MAKING_API_CALL, STATUS_SUCCESS, STATUS_ERROR)


@dataclass
class BootstrapRequestRecord:
    """One cors-execute call and what became of it."""

    id: int
    main_url: str
    api_url: str
    journey_url: str | None = None
    cookies: dict[str, str] | None = None
    response: Any = None
    status: str = STATUS_PENDING
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """JSON shape returned by the API."""
        return {
            "id": self.id,
            "mainUrl": self.main_url,
            "apiUrl": self.api_url,
            "journeyUrl": self.journey_url,
            "cookies": self.cookies,
            "response": self.response,
            "status": self.status,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
        }


class RequestStore:
    """Create, get and update records by id.

    Ids start at 1. Records are replaced, never mutated in place, so a reader
    always sees a whole record.
    """

    def __init__(self):
        self._records: dict[int, BootstrapRequestRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, main_url: str, api_url: str, journey_url: str | None = None) -> BootstrapRequestRecord:
        with self._lock:
            record = BootstrapRequestRecord(
                id=self._next_id, main_url=main_url, api_url=api_url, journey_url=journey_url
            )
            self._next_id += 1
            self._records[record.id] = record
        return record

    def get(self, record_id: int) -> BootstrapRequestRecord | None:
        return self._records.get(record_id)

    def update(self, record_id: int, **changes: Any) -> BootstrapRequestRecord | None:
        """Apply field changes to a record.

        Returns:
            The updated record, or None if the id is unknown.
        """
        if "status" in changes and changes["status"] not in STATUSES:
            raise ValueError(f"Unknown status: {changes['status']}")
        with self._lock:
            existing = self._records.get(record_id)
            if existing is None:
                return None
            updated = replace(existing, **changes)
            self._records[record_id] = updated
        return updated

    def __len__(self) -> int:
        return len(self._records)
