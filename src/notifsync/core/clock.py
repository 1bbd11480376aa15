"""Suspend-for-duration primitive used to pace polling."""

import asyncio


class Clock:
    """Cancellable wait.

    ``wait`` resumes exactly once after the duration. Cancelling the task
    that awaits it raises ``asyncio.CancelledError`` out of the sleep, so no
    timer survives the task and a cancelled wait never reports success.
    """

    async def wait(self, duration_ms: int) -> bool:
        await asyncio.sleep(duration_ms / 1000)
        return True
