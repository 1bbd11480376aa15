"""Helper functions for CLI - database operations."""

import asyncio
from pathlib import Path

from notifsync.utils.constants import QueueName
from notifsync.utils.storage_helpers import with_storage

# Queueing into one of these drops the id from the other
_OPPOSITE = {QueueName.READ: QueueName.UNREAD, QueueName.UNREAD: QueueName.READ}


def queue_ids(notifsync_dir: Path, queue: str, ids: list[str]):
    """Persist ids into a pending queue for the next sync run."""

    async def operation(storage):
        await storage.add_pending(queue, ids)
        if queue in _OPPOSITE:
            await storage.remove_pending(_OPPOSITE[queue], ids)
        await storage.log_audit("queued", queue, {"count": len(ids), "source": "cli"})

    return asyncio.run(with_storage(notifsync_dir, operation))


def get_pending(notifsync_dir: Path) -> dict[str, list[str]]:
    """Get pending ids of every queue."""

    async def operation(storage):
        return {name: await storage.get_pending(name) for name in QueueName.ALL}

    return asyncio.run(with_storage(notifsync_dir, operation))


def clear_pending(notifsync_dir: Path, queue: str = None):
    """Drop pending ids."""

    async def operation(storage):
        await storage.clear_pending(queue)

    return asyncio.run(with_storage(notifsync_dir, operation))


def get_audit_log(notifsync_dir: Path, limit: int):
    """Get recent audit entries."""

    async def operation(storage):
        return await storage.get_audit_log(limit)

    return asyncio.run(with_storage(notifsync_dir, operation))
