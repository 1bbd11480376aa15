"""Category logging for the sync loops.

Every line reads ``[notifsync:<category>] <time> <message> | k=v`` and is
appended to ``debug.log`` in the notifsync directory. Lines are echoed to
stderr while ``log_stderr`` is on, which it is by default.
Debug lines are written only with ``debug`` on; errors always are.
"""

import sys
import traceback
from datetime import datetime
from functools import partial
from typing import Optional

from notifsync.utils.config import Config, get_notifsync_dir

LOG_FILE = "debug.log"

# poll: supervisor and poll cycle, queue: pending queues and drains,
# fetch: fetch controllers, api: HTTP client, event: event bus
CATEGORIES = ("poll", "queue", "fetch", "api", "event")

_config: Optional[Config] = None


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = Config(get_notifsync_dir())
    return _config


def reload_config():
    """Drop the cached config (call after `debug` or `log_stderr` changes)."""
    global _config
    _config = None


def _format(category: str, message: str, fields: dict) -> str:
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    line = f"[notifsync:{category}] {timestamp} {message}"
    if fields:
        line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
    return line


def _write(config: Config, line: str):
    try:
        config.notifsync_dir.mkdir(parents=True, exist_ok=True)
        with open(config.notifsync_dir / LOG_FILE, "a") as f:
            f.write(line + "\n")
    except OSError:
        pass

    if config.log_stderr:
        try:
            print(line, file=sys.stderr)
        except BrokenPipeError:
            pass


def debug(category: str, message: str, **fields):
    """Log a debug line if debug mode is on.

    Args:
        category: One of ``CATEGORIES``
        message: What happened
        **fields: Extra key=value pairs
    """
    config = _get_config()
    if config.debug:
        _write(config, _format(category, message, fields))


debug_poll = partial(debug, "poll")
debug_queue = partial(debug, "queue")
debug_fetch = partial(debug, "fetch")
debug_api = partial(debug, "api")
debug_event = partial(debug, "event")


def log_error(category: str, message: str, exc: Optional[BaseException] = None):
    """Log an error regardless of debug mode, with traceback if given."""
    line = _format(category, f"ERROR: {message}", {})
    if exc is not None:
        line += "\n" + "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    _write(_get_config(), line)
