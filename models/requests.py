"""Most-recent-wins request coordination.

Screens issue simulated asynchronous requests (connect, search, lookups)
whose answers arrive later on the virtual timeline. When a screen issues a
new request of the same kind, the older one is superseded: its pending
callbacks are cancelled and any answer it would have produced is dropped,
so results are never applied out of order.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field

from models.errors import RequestFailedError, RequestTimeoutError, ScreenError
from models.observable import CallbackSet
from models.scheduler import Scheduler

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


class RequestStatus(str, Enum):
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SUPERSEDED = "superseded"
    CANCELLED = "cancelled"


class RequestTicket(BaseModel):
    """Handle for one issued request.

    Args:
        request_id: Unique identifier.
        label: Request kind (e.g. "chat.connect").
        issued_at: Virtual time the request was issued.
        status: Where the request is in its lifecycle.
        settled_at: Virtual time the request left IN_FLIGHT.
        callback_ids: Scheduled callbacks backing this request.
    """

    request_id: str = Field(default_factory=lambda: str(uuid4()))
    label: str
    issued_at: datetime
    status: RequestStatus = RequestStatus.IN_FLIGHT
    settled_at: Optional[datetime] = None
    callback_ids: list[str] = Field(default_factory=list)

    @property
    def in_flight(self) -> bool:
        return self.status == RequestStatus.IN_FLIGHT


class LatestRequestGate(Generic[ResultT]):
    """Keeps at most one request of a given kind in flight.

    Args:
        scheduler: Timeline the simulated latency runs on.
        label: Request kind, used for callback labels and logs.
        owner: Screen manager owning the scheduled callbacks.
    """

    def __init__(self, scheduler: Scheduler, label: str, owner: str = "scheduler") -> None:
        self.scheduler = scheduler
        self.label = label
        self.owner = owner
        self.current: Optional[RequestTicket] = None
        self.history: list[RequestTicket] = []

    def issue(
        self,
        latency: float,
        produce: Callable[[], ResultT],
        callbacks: Optional[CallbackSet[ResultT]] = None,
        timeout: Optional[float] = None,
    ) -> RequestTicket:
        """Issue a request that answers after ``latency`` virtual seconds.

        Any request still in flight is superseded first.

        Args:
            latency: Simulated round-trip time in seconds.
            produce: Computes the answer at fire time; may raise ScreenError.
            callbacks: Receives the result or the error.
            timeout: Optional deadline; if it passes first the request is
                rejected with RequestTimeoutError.

        Returns:
            The new ticket.
        """
        callbacks = callbacks or CallbackSet()

        with self.scheduler.lock:
            self.supersede("newer request issued")

            ticket = RequestTicket(label=self.label, issued_at=self.scheduler.now())
            self.current = ticket
            self.history.append(ticket)

            def complete() -> None:
                if not self._still_current(ticket):
                    return
                try:
                    result = produce()
                except ScreenError as e:
                    self._settle(ticket, RequestStatus.FAILED)
                    self._cancel_callbacks(ticket, "failed")
                    callbacks.reject(e)
                    return
                except Exception as e:
                    self._settle(ticket, RequestStatus.FAILED)
                    self._cancel_callbacks(ticket, "failed")
                    callbacks.reject(RequestFailedError(f"{self.label} failed: {e}"))
                    return
                self._settle(ticket, RequestStatus.COMPLETED)
                self._cancel_callbacks(ticket, "answered")
                callbacks.resolve(result)

            answer = self.scheduler.schedule(
                latency, complete, label=f"{self.label}.complete", owner=self.owner
            )
            ticket.callback_ids.append(answer.callback_id)

            if timeout is not None:

                def expire() -> None:
                    if not self._still_current(ticket):
                        return
                    self._settle(ticket, RequestStatus.TIMED_OUT)
                    self._cancel_callbacks(ticket, "timed out")
                    callbacks.reject(RequestTimeoutError(self.label, timeout))

                deadline = self.scheduler.schedule(
                    timeout,
                    expire,
                    label=f"{self.label}.timeout",
                    owner=self.owner,
                    priority=1,
                )
                ticket.callback_ids.append(deadline.callback_id)

        logger.debug(f"Issued {self.label} request {ticket.request_id}")
        return ticket

    def supersede(self, reason: str) -> bool:
        """Mark the in-flight request (if any) superseded and drop its answer."""
        return self._retire(RequestStatus.SUPERSEDED, reason)

    def cancel(self, reason: str = "cancelled") -> bool:
        """Cancel the in-flight request (if any) without issuing a new one."""
        return self._retire(RequestStatus.CANCELLED, reason)

    def is_current(self, ticket: RequestTicket) -> bool:
        return self.current is not None and self.current.request_id == ticket.request_id

    def _still_current(self, ticket: RequestTicket) -> bool:
        return self.is_current(ticket) and ticket.in_flight

    def _retire(self, status: RequestStatus, reason: str) -> bool:
        with self.scheduler.lock:
            ticket = self.current
            if ticket is None or not ticket.in_flight:
                return False
            self._settle(ticket, status)
            self._cancel_callbacks(ticket, reason)
        logger.debug(f"{self.label} request {ticket.request_id} {status.value}: {reason}")
        return True

    def _settle(self, ticket: RequestTicket, status: RequestStatus) -> None:
        ticket.status = status
        ticket.settled_at = self.scheduler.now()

    def _cancel_callbacks(self, ticket: RequestTicket, reason: str) -> None:
        for callback_id in ticket.callback_ids:
            self.scheduler.cancel(callback_id, reason)
