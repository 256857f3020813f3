"""Main ChatSim client classes.

This module provides the main entry points for interacting with the ChatSim API:
- ChatSimClient: Synchronous client
- AsyncChatSimClient: Asynchronous client

Both expose the API through sub-client properties: ``chat``, ``time`` and
``scheduler``.
"""

from typing import Any

from client._chat import AsyncChatClient, ChatClient
from client._http import AsyncHTTPClient, HTTPClient
from client._scheduler import AsyncSchedulerClient, SchedulerClient
from client._time import AsyncTimeClient, TimeClient
from client.models import HealthResponse, RootResponse


class ChatSimClient:
    """Synchronous client for the ChatSim REST API.

    Attributes:
        base_url: The base URL of the ChatSim server.
        timeout: Request timeout in seconds.
        retry_enabled: Whether automatic retry is enabled.
        max_retries: Maximum number of retry attempts.

    Example:
        Basic usage with context manager::

            with ChatSimClient(base_url="http://localhost:8000") as client:
                client.scheduler.start()
                client.chat.send("How's it going?")

                # Delivery receipt after 0.5s, scripted reply after 2s
                result = client.time.advance(seconds=2)
                print(f"Fired {result.callbacks_fired} callbacks")

                state = client.chat.get_state()
                print(state.messages[-1].content)

        Manual lifecycle management::

            client = ChatSimClient()
            try:
                client.scheduler.start()
                # ... do work ...
            finally:
                client.close()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: The base URL of the ChatSim server.
            timeout: Request timeout in seconds.
            retry_enabled: Retry on connection errors, timeouts and HTTP
                502/503/504 with exponential backoff.
            max_retries: Maximum number of retry attempts when retry is enabled.
            transport: Custom HTTP transport (e.g., MockTransport for testing).
        """
        self.base_url = base_url
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._chat: ChatClient | None = None
        self._time: TimeClient | None = None
        self._scheduler: SchedulerClient | None = None

    def __enter__(self) -> "ChatSimClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    def root(self) -> RootResponse:
        return RootResponse(**self._http.get("/"))

    def health(self) -> HealthResponse:
        return HealthResponse(**self._http.get("/health"))

    # Sub-client properties (lazy initialization)

    @property
    def chat(self) -> ChatClient:
        """Chat screen endpoints (/chat/*): messages, typing, reactions, connection."""
        if self._chat is None:
            self._chat = ChatClient(self._http)
        return self._chat

    @property
    def time(self) -> TimeClient:
        """Virtual time control (/scheduler/time/*): advance, skip, pause, resume."""
        if self._time is None:
            self._time = TimeClient(self._http)
        return self._time

    @property
    def scheduler(self) -> SchedulerClient:
        """Scheduler lifecycle (/scheduler/*): start, stop, status, callbacks."""
        if self._scheduler is None:
            self._scheduler = SchedulerClient(self._http)
        return self._scheduler


class AsyncChatSimClient:
    """Asynchronous client for the ChatSim REST API.

    Example::

        async with AsyncChatSimClient() as client:
            await client.scheduler.start()
            await client.chat.send("hi")
            await client.time.advance(seconds=0.5)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

        self._http = AsyncHTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._chat: AsyncChatClient | None = None
        self._time: AsyncTimeClient | None = None
        self._scheduler: AsyncSchedulerClient | None = None

    async def __aenter__(self) -> "AsyncChatSimClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    async def root(self) -> RootResponse:
        return RootResponse(**await self._http.get("/"))

    async def health(self) -> HealthResponse:
        return HealthResponse(**await self._http.get("/health"))

    @property
    def chat(self) -> AsyncChatClient:
        if self._chat is None:
            self._chat = AsyncChatClient(self._http)
        return self._chat

    @property
    def time(self) -> AsyncTimeClient:
        if self._time is None:
            self._time = AsyncTimeClient(self._http)
        return self._time

    @property
    def scheduler(self) -> AsyncSchedulerClient:
        if self._scheduler is None:
            self._scheduler = AsyncSchedulerClient(self._http)
        return self._scheduler
