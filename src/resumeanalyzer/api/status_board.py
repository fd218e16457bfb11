from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from resumeanalyzer.core.events import Stage, StatusEvent, StatusSink, utc_now_iso


class TicketStatus(BaseModel):
    """
    Description: Latest known progress of one upload, polled by the UI.
    Layer: L1
    Input: StatusEvents from the pipeline
    Output: status payload for /resume/upload/{ticket}/status
    """

    ticket: str
    stage: Stage = Stage.IDLE
    message: str = ""
    processing: bool = True
    record_id: Optional[str] = None
    ok: Optional[bool] = None
    history: List[str] = Field(default_factory=list)
    created_at_utc: str = Field(default_factory=utc_now_iso)
    updated_at_utc: str = Field(default_factory=utc_now_iso)


class StatusBoard:
    """
    In-process registry of upload tickets (replace with Redis/DB for multi-worker).
    Finished tickets are dropped `ttl_seconds` after they finish.
    """

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._tickets: Dict[str, TicketStatus] = {}
        self._finished_at: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _prune(self) -> None:
        # caller holds the lock
        cutoff = self._clock() - self.ttl_seconds
        for ticket in [t for t, at in self._finished_at.items() if at <= cutoff]:
            self._tickets.pop(ticket, None)
            del self._finished_at[ticket]

    def _finish(self, ticket: str) -> None:
        self._finished_at.setdefault(ticket, self._clock())

    def open(self, ticket: str) -> TicketStatus:
        with self._lock:
            self._prune()
            st = TicketStatus(ticket=ticket)
            self._tickets[ticket] = st
            self._finished_at.pop(ticket, None)
            return st

    def try_open(self, ticket: str) -> Optional[TicketStatus]:
        """Open `ticket` unless another one is still processing (check and open under one lock)."""
        with self._lock:
            self._prune()
            if any(t.processing for t in self._tickets.values()):
                return None
            st = TicketStatus(ticket=ticket)
            self._tickets[ticket] = st
            return st

    def discard(self, ticket: str) -> None:
        """Forget a ticket whose upload was rejected before the pipeline started."""
        with self._lock:
            self._tickets.pop(ticket, None)
            self._finished_at.pop(ticket, None)

    def get(self, ticket: str) -> Optional[TicketStatus]:
        with self._lock:
            self._prune()
            return self._tickets.get(ticket)

    def any_processing(self) -> bool:
        with self._lock:
            return any(t.processing for t in self._tickets.values())

    def record(self, ticket: str, event: StatusEvent) -> None:
        with self._lock:
            st = self._tickets.setdefault(ticket, TicketStatus(ticket=ticket))
            st.stage = event.stage
            st.message = event.message
            st.processing = event.processing
            st.record_id = event.record_id or st.record_id
            st.history.append(event.message)
            st.updated_at_utc = event.ts_utc
            if event.stage.terminal:
                st.ok = event.stage is Stage.SUCCEEDED
            if not st.processing:
                self._finish(ticket)

    def close(self, ticket: str, message: str) -> None:
        """Force a ticket out of the processing state."""
        with self._lock:
            st = self._tickets.get(ticket)
            if st is None or not st.processing:
                return
            st.stage = Stage.FAILED
            st.message = message
            st.processing = False
            st.ok = False
            st.updated_at_utc = utc_now_iso()
            self._finish(ticket)

    def sink_for(self, ticket: str) -> StatusSink:
        def _sink(event: StatusEvent) -> None:
            self.record(ticket, event)

        return _sink
