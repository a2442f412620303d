"""Cancellation checks for preparation passes and the waits inside them."""

import threading
import time

from acmeprep.exceptions import PrepareCancelled


def check_cancelled(cancel: threading.Event | None) -> None:
    """Raise PrepareCancelled once ``cancel`` is set."""
    if cancel is not None and cancel.is_set():
        raise PrepareCancelled("preparation cancelled")


def sleep(seconds: float, cancel: threading.Event | None = None) -> None:
    """Sleep for ``seconds``, waking early if ``cancel`` is set.

    Raises:
        PrepareCancelled: If ``cancel`` is set before or during the sleep.
    """
    if cancel is None:
        time.sleep(seconds)
        return
    if cancel.wait(seconds):
        raise PrepareCancelled("preparation cancelled")
