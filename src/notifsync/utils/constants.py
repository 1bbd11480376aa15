"""Constants used throughout notifsync."""

# Wait between poll cycles (in milliseconds)
POLL_WAIT_MS = 5000

# HTTP client defaults
HTTP_CLIENT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
RETRY_BASE_DELAY = 0.5

# SQLite busy timeout (in milliseconds)
SQLITE_BUSY_TIMEOUT_MS = 5000

POLL_CANCELLED_MSG = "poll cancelled"


class Direction:
    """Cursor directions for incremental fetches."""

    BEFORE = "before"
    AFTER = "after"

    ALL = (BEFORE, AFTER)


class QueueName:
    """Pending-update queue names."""

    READ = "read"
    UNREAD = "unread"
    SHOWN = "shown"

    ALL = (READ, UNREAD, SHOWN)
