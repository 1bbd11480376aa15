"""Poll supervisor: the top-level sync loop.

    AWAITING_DATA --(full/incremental set received)--> DISPATCHING
    AWAITING_DATA --(full/incremental fetch failed)--> RACING
    AWAITING_DATA --(user logged out)----------------> TERMINATED
    DISPATCHING   --(all queue drains finished)------> RACING
    RACING        --(poll wait elapsed)--------------> AWAITING_DATA
    RACING        --(user logged out)----------------> TERMINATED
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, Optional

from notifsync.core.clock import Clock
from notifsync.core.dispatcher import UpdateDispatcher
from notifsync.core.events import (
    Emit,
    EventBus,
    FullSetFetchFailed,
    FullSetReceived,
    IncrementalSetFetchFailed,
    IncrementalSetReceived,
)
from notifsync.core.poll import PollOutcome, poll_cycle
from notifsync.utils.constants import POLL_WAIT_MS
from notifsync.utils.debug import debug_poll
from notifsync.utils.exceptions import SupervisorError

FETCH_FAILURES = (FullSetFetchFailed, IncrementalSetFetchFailed)


class SupervisorState(Enum):
    AWAITING_DATA = "awaiting_data"
    DISPATCHING = "dispatching"
    RACING = "racing"
    TERMINATED = "terminated"


class PollSupervisor:
    """Drains queues after each received batch, then polls or stops.

    The logout signal is an ``asyncio.Event``. Every wait races against it
    without clearing it, so a logout is seen whether it lands while waiting
    for data or during a poll wait. A failed fetch skips the drains and goes
    straight to the next poll. Only one poll cycle is ever in flight.

    Example:
        supervisor = PollSupervisor(bus, dispatcher, logged_out)
        supervisor.start()
        ...
        logged_out.set()
        await supervisor.wait_closed()
    """

    def __init__(
        self,
        bus: EventBus,
        dispatcher: UpdateDispatcher,
        logged_out: asyncio.Event,
        clock: Optional[Clock] = None,
        interval_ms: int = POLL_WAIT_MS,
        emit: Optional[Emit] = None,
        before_cycle: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.logged_out = logged_out
        self.clock = clock or Clock()
        self.interval_ms = interval_ms
        self.emit = emit or bus.emit
        self.before_cycle = before_cycle
        self.state = SupervisorState.AWAITING_DATA
        self.cycles = 0
        # Subscribe up front so a batch landing mid-cycle is not missed
        self._data = bus.subscribe(
            FullSetReceived, IncrementalSetReceived, *FETCH_FAILURES
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Run the loop as a background task."""
        if self.running:
            raise SupervisorError("Poll supervisor already running")
        if self.state is SupervisorState.TERMINATED:
            raise SupervisorError("Poll supervisor already terminated")
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to unwind."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self._terminate()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def run(self) -> None:
        """Loop until the user logs out."""
        try:
            while self.state is not SupervisorState.TERMINATED:
                await self.step()
        finally:
            if self.state is not SupervisorState.TERMINATED:
                self._terminate()

    async def step(self) -> SupervisorState:
        """Run one full cycle and return the state it ends in."""
        self.state = SupervisorState.AWAITING_DATA
        event = await self._until_logout(self._data.get())
        if event is None:
            debug_poll("Logout while awaiting data")
            self._terminate()
            return self.state

        if self.before_cycle is not None:
            await self.before_cycle()

        if isinstance(event, FETCH_FAILURES):
            debug_poll("Fetch failed, polling again", error=event.message)
        else:
            debug_poll("Data received", event=type(event).__name__)
            self.state = SupervisorState.DISPATCHING
            await self.dispatcher.dispatch()
            self.cycles += 1

        self.state = SupervisorState.RACING
        outcome: Optional[PollOutcome] = await self._until_logout(
            poll_cycle(self.clock, self.emit, self.interval_ms)
        )
        if outcome is None:
            debug_poll("Logout won the race")
            self._terminate()
        else:
            debug_poll("Poll won the race", requested=outcome.requested)
            self.state = SupervisorState.AWAITING_DATA
        return self.state

    async def _until_logout(self, coro: Coroutine[Any, Any, Any]) -> Any:
        """Race ``coro`` against logout.

        Returns the coroutine's result, or None when logout wins (also when
        both finish together). The loser is cancelled and awaited before
        returning.
        """
        if self.logged_out.is_set():
            coro.close()
            return None

        work = asyncio.create_task(coro)
        logout = asyncio.create_task(self.logged_out.wait())
        try:
            done, _ = await asyncio.wait(
                {work, logout}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (work, logout):
                if not task.done():
                    task.cancel()
            await asyncio.gather(work, logout, return_exceptions=True)

        if logout in done:
            return None
        return work.result()

    def _terminate(self) -> None:
        self.state = SupervisorState.TERMINATED
        self._data.close()
