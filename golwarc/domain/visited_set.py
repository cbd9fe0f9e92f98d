import threading
from typing import Set


class VisitedSet:
    """
    Thread-safe set of URLs already processed during a crawl session.

    Claiming is a single critical section: membership test and insert happen
    under one lock acquisition, so exactly one of several concurrent callers
    claiming the same URL gets True.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._visited: Set[str] = set()

    def try_claim(self, url: str) -> bool:
        """Mark `url` as visited. Returns True only for the first claim."""
        with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            return True

    def contains(self, url: str) -> bool:
        with self._lock:
            return url in self._visited

    def clear(self) -> None:
        """Forget every claimed URL so they can be claimed again."""
        with self._lock:
            self._visited.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._visited)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, url: str) -> bool:
        return self.contains(url)
