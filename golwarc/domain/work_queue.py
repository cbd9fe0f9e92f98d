import threading
from collections import deque
from typing import Deque, Iterable, NamedTuple, Optional


class CrawlTask(NamedTuple):
    """A URL waiting to be crawled and its distance from the seed URLs."""
    url: str
    depth: int = 0


class WorkQueue:
    """FIFO of pending crawl tasks.

    Guarded by its own lock, independent of the visited set. Pushing never
    blocks; workers may append while the driver loop is popping.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: Deque[CrawlTask] = deque()

    def push(self, url: str, depth: int = 0) -> None:
        with self._lock:
            self._tasks.append(CrawlTask(url, depth))

    def extend(self, urls: Iterable[str], depth: int = 0) -> int:
        tasks = [CrawlTask(u, depth) for u in urls]
        with self._lock:
            self._tasks.extend(tasks)
        return len(tasks)

    def pop_front(self) -> Optional[CrawlTask]:
        """Remove and return the oldest task, or None when the queue is empty."""
        with self._lock:
            if not self._tasks:
                return None
            return self._tasks.popleft()

    def is_empty(self) -> bool:
        with self._lock:
            return not self._tasks

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)
