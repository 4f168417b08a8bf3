"""Process-wide progress spinner.

Helpers report what they are doing (fetching a commit, hashing a checkout)
into the spinner if one is active. Without an active spinner the reports are
dropped, so helpers can run the same way from tests or library code.
"""

import logging
import threading
from typing import Callable, Optional

from rich.console import Console
from rich.status import Status

logger = logging.getLogger(__name__)

EMOJI_FETCH = "📥 "
EMOJI_HASH = "🔑 "

_global_status: Optional[Status] = None
_global_status_lock = threading.Lock()


def new_global_progress(console: Console, message: str = "Rendering template...") -> Status:
    """Starts a spinner on ``console`` and makes it the global one.

    A previously active spinner is stopped first.
    """
    global _global_status
    with _global_status_lock:
        if _global_status is not None:
            _global_status.stop()
        status = console.status(message, spinner="dots")
        status.start()
        _global_status = status
    return status


def with_global_progress(func: Callable[[Status], None]) -> None:
    """Calls ``func`` with the active spinner, if any."""
    with _global_status_lock:
        status = _global_status
    if status is not None:
        func(status)


def report_progress(message: str) -> None:
    """Shows ``message`` on the active spinner and logs it."""
    logger.info(message.strip())
    with_global_progress(lambda status: status.update(message))


def delete_global_progress() -> None:
    """Stops and forgets the active spinner (no-op if none)."""
    global _global_status
    with _global_status_lock:
        status, _global_status = _global_status, None
    if status is not None:
        status.stop()
