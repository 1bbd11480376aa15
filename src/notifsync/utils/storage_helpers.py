"""Storage helper utilities."""

from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from notifsync.core.storage import Storage
from notifsync.utils.config import Config

T = TypeVar("T")


async def with_storage(
    notifsync_dir: Path,
    operation: Callable[[Storage], Awaitable[T]],
) -> T:
    """Execute an async operation with a managed storage connection.

    The storage is closed even if the operation raises.

    Example:
        async def counts(storage):
            return await storage.pending_counts()

        result = await with_storage(notifsync_dir, counts)
    """
    config = Config(notifsync_dir)
    storage = Storage(config.db_path)
    await storage.connect()
    try:
        return await operation(storage)
    finally:
        await storage.close()
