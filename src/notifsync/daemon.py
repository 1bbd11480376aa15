"""Foreground runner for continuous notification sync."""

import asyncio
import os
import signal
import time
from pathlib import Path
from typing import Optional

from notifsync.core.manager import SyncManager
from notifsync.utils.config import Config, get_notifsync_dir


def get_pid_file(notifsync_dir: Optional[Path] = None) -> Path:
    """Get path to runner PID file."""
    if notifsync_dir is None:
        notifsync_dir = get_notifsync_dir()
    return notifsync_dir / "sync.pid"


def get_runner_pid(notifsync_dir: Optional[Path] = None) -> Optional[int]:
    """Get runner PID if running."""
    pid_file = get_pid_file(notifsync_dir)
    if not pid_file.exists():
        return None

    try:
        pid = int(pid_file.read_text().strip())
        os.kill(pid, 0)  # Check if process exists
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        pid_file.unlink(missing_ok=True)
        return None


async def sync_main(
    notifsync_dir: Path,
    stop_event: Optional[asyncio.Event] = None,
    manager: Optional[SyncManager] = None,
) -> None:
    """Run sync until stopped or the user logs out.

    A stop request (SIGINT/SIGTERM or ``stop_event``) is turned into a
    logout so the supervisor ends at its next race, then everything is
    closed.
    """
    if stop_event is None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

    if manager is None:
        manager = SyncManager(notifsync_dir, Config(notifsync_dir))

    try:
        await manager.start()

        stop_wait = asyncio.create_task(stop_event.wait())
        closed_wait = asyncio.create_task(manager.wait_closed())
        try:
            await asyncio.wait(
                {stop_wait, closed_wait}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if stop_event.is_set():
                manager.logout()
            for task in (stop_wait, closed_wait):
                task.cancel()
            await asyncio.gather(stop_wait, closed_wait, return_exceptions=True)
    finally:
        await manager.close()


def run_foreground(notifsync_dir: Optional[Path] = None) -> None:
    """Run sync in the foreground with a PID file."""
    if notifsync_dir is None:
        notifsync_dir = get_notifsync_dir()
    notifsync_dir.mkdir(parents=True, exist_ok=True)

    pid_file = get_pid_file(notifsync_dir)
    pid_file.write_text(str(os.getpid()))
    log_file = notifsync_dir / "sync.log"
    try:
        asyncio.run(sync_main(notifsync_dir))
    except Exception as e:
        with open(log_file, "a") as f:
            import traceback

            f.write(f"{time.strftime('%Y-%m-%d %H:%M:%S')} CRASH: {e}\n")
            f.write(traceback.format_exc())
        raise
    finally:
        pid_file.unlink(missing_ok=True)
