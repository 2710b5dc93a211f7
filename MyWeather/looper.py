"""Main-thread callback queue used to deliver asynchronous results."""
import logging
from collections import deque
from typing import Any, Callable, Deque, Tuple


class MainLooper:
    """
    FIFO of callbacks run one at a time on the thread that drains it.

    Location fixes and HTTP results are posted here instead of being
    delivered inline, so every UI mutation happens from the loop.
    """

    def __init__(self):
        self._queue: Deque[Tuple[Callable[..., Any], tuple]] = deque()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.append((callback, args))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_pending(self) -> int:
        """
        Run queued callbacks, including any posted while draining.

        Returns:
            Number of callbacks executed
        """
        executed = 0
        while self._queue:
            callback, args = self._queue.popleft()
            logging.debug(f"Looper: running {getattr(callback, '__name__', callback)!r}")
            callback(*args)
            executed += 1
        return executed
