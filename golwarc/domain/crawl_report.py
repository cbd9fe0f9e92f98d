"""Per-URL outcomes of a spider run."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Optional

REJECTED = "rejected"
TRANSPORT = "transport"
STATUS = "status"
PARSE = "parse"
HANDLER = "handler"
CANCELLED = "cancelled"
INTERNAL = "internal"


@dataclass(frozen=True)
class CrawlFailure:
    url: str
    kind: str
    message: str
    status_code: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class CrawlReport:
    """Thread-safe aggregate of what happened during one `Spider.run()`.

    Workers record into it concurrently; the spider returns it once the queue
    drains. Failures never abort the run, so this is where callers learn about
    them.
    """

    pages_crawled: int = 0
    skipped: int = 0
    stopped: bool = False
    failures: List[CrawlFailure] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def record_success(self) -> None:
        with self._lock:
            self.pages_crawled += 1

    def record_skip(self) -> None:
        with self._lock:
            self.skipped += 1

    def record_failure(self, failure: CrawlFailure) -> None:
        with self._lock:
            self.failures.append(failure)

    def mark_stopped(self) -> None:
        with self._lock:
            self.stopped = True

    def failures_of(self, kind: str) -> List[CrawlFailure]:
        with self._lock:
            return [f for f in self.failures if f.kind == kind]

    @property
    def ok(self) -> bool:
        with self._lock:
            return not self.failures

    def summary(self) -> str:
        with self._lock:
            return (
                f"pages={self.pages_crawled} skipped={self.skipped} "
                f"failures={len(self.failures)} stopped={self.stopped}"
            )
