import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Optional, Set
from urllib.parse import urldefrag, urlsplit

import requests
from bs4 import BeautifulSoup

from golwarc.domain import crawl_report
from golwarc.domain.crawl_report import CrawlFailure, CrawlReport
from golwarc.domain.spider_config import SpiderConfig
from golwarc.domain.visited_set import VisitedSet
from golwarc.domain.work_queue import CrawlTask, WorkQueue
from golwarc.exceptions import FetchCancelledError, HttpFetchError, SpiderAlreadyRunningError, UrlResolveError
from golwarc.services.crawl_metrics import SUCCESS, CrawlMetrics
from golwarc.services.http_service import HttpService
from golwarc.services.link_extractor import DEFAULT_LINK_SELECTOR, extract_links, parse_document, resolve_url
from golwarc.services.rate_limiter import RateLimiter
from golwarc.services.url_validator import ALLOWED_SCHEMES, UrlValidator

DocumentHandler = Callable[[BeautifulSoup, str], Any]


class Spider:
    """Bounded concurrent crawler.

    The driver loop in `run()` pops tasks from the work queue on the calling
    thread, claims each URL in the visited set, and hands it to a worker thread
    once a concurrency slot is free. Workers validate the URL against SSRF
    rules, fetch it, parse the body and pass the document to the registered
    handler. Per-URL failures are logged and collected in the returned
    `CrawlReport`; they never abort the run.

    Handlers feed the crawl by pushing URLs back, usually via `follow_links()`.
    Anything pushed before a handler returns is crawled in the same run: the
    loop only ends when the queue is empty and no worker is in flight.
    """

    def __init__(
        self,
        config: Optional[SpiderConfig] = None,
        *,
        validator: Optional[UrlValidator] = None,
        http_service: Optional[HttpService] = None,
        rate_limiter: Optional[RateLimiter] = None,
        metrics: Optional[CrawlMetrics] = None,
        logger: Optional[logging.Logger] = None,
        handler: Optional[DocumentHandler] = None,
        visited: Optional[VisitedSet] = None,
        queue: Optional[WorkQueue] = None,
    ):
        self.config = config if config is not None else SpiderConfig()
        self.validator = validator if validator is not None else UrlValidator()
        # a session created here is ours to close; an injected service is not
        self._session: Optional[requests.Session] = None
        if http_service is None:
            self._session = requests.Session()
            http_service = HttpService(self.config.user_agent, http_client=self._session.get, timeout=self.config.timeout)
        self.http_service = http_service
        if rate_limiter is None and self.config.rate_limited:
            rate_limiter = RateLimiter(self.config.rate_limit, self.config.rate_burst)
        self.rate_limiter = rate_limiter
        self.metrics = metrics if metrics is not None else CrawlMetrics()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.visited = visited if visited is not None else VisitedSet()
        self.queue = queue if queue is not None else WorkQueue()

        self._handler = handler
        self._state_lock = threading.Lock()
        self._running = False
        self._stop_event = threading.Event()
        self._cancel_event = threading.Event()
        self._depths: Dict[str, int] = {}
        self._depths_lock = threading.Lock()
        self.last_report: Optional[CrawlReport] = None

    # -- queue and visited-state helpers ------------------------------------

    def add_start_url(self, url: str) -> None:
        self.queue.push(url, 0)

    def add_url(self, url: str, depth: int = 0) -> None:
        self.queue.push(url, depth)

    def on_document(self, handler: DocumentHandler) -> None:
        """Register the callback invoked with `(document, url)` for each fetched page."""
        self._handler = handler

    def visited_count(self) -> int:
        return self.visited.count()

    def clear_visited(self) -> None:
        self.visited.clear()
        with self._depths_lock:
            self._depths.clear()

    def depth_of(self, url: str) -> int:
        """Depth at which `url` was claimed; unknown URLs count as seeds."""
        with self._depths_lock:
            return self._depths.get(url, 0)

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._running

    # -- link helpers for handlers ------------------------------------------

    def extract_links(self, document: BeautifulSoup, selector: str = DEFAULT_LINK_SELECTOR):
        return extract_links(document, selector)

    def resolve_url(self, base_url: str, relative_url: str) -> str:
        return resolve_url(base_url, relative_url)

    def follow_links(self, document: BeautifulSoup, page_url: str, selector: str = DEFAULT_LINK_SELECTOR) -> int:
        """Queue the http(s) links of `document` one level deeper than `page_url`.

        Fragments are dropped and already-visited URLs skipped. Returns the
        number of URLs queued.
        """
        depth = self.depth_of(page_url) + 1
        if depth > self.config.max_depth:
            self.logger.debug("Not following links of %s: max depth %s reached", page_url, self.config.max_depth)
            return 0

        queued = 0
        for href in extract_links(document, selector):
            try:
                absolute = resolve_url(page_url, href.strip())
            except UrlResolveError as e:
                self.logger.debug("Skipping unresolvable link %r on %s: %s", href, page_url, e)
                continue
            absolute, _fragment = urldefrag(absolute)
            if urlsplit(absolute).scheme.lower() not in ALLOWED_SCHEMES:
                continue
            if self.visited.contains(absolute):
                continue
            self.queue.push(absolute, depth)
            queued += 1
        return queued

    # -- lifecycle ----------------------------------------------------------

    def stop(self, cancel_in_flight: bool = False) -> None:
        """Ask a running crawl to stop after the current iteration.

        With `cancel_in_flight`, workers still downloading a page abort between
        body chunks and the politeness delay is cut short.
        """
        self._stop_event.set()
        if cancel_in_flight:
            self._cancel_event.set()
        self.logger.info("Stop requested (cancel_in_flight=%s)", cancel_in_flight)

    def run(self) -> CrawlReport:
        """Crawl until the queue is drained, then return the run's report.

        Raises SpiderAlreadyRunningError if another `run()` is active on this
        spider; every other failure is reported per URL.
        """
        with self._state_lock:
            if self._running:
                raise SpiderAlreadyRunningError()
            self._running = True
            self._stop_event.clear()
            self._cancel_event.clear()

        report = CrawlReport()
        self.logger.info(
            "Spider started: %s queued, concurrency=%s, max_depth=%s",
            len(self.queue),
            self.config.concurrency,
            self.config.max_depth,
        )
        try:
            self._drain(report)
        finally:
            self.close()
            with self._state_lock:
                self._running = False

        self.last_report = report
        self.logger.info("Spider finished: %s", report.summary())
        return report

    def close(self) -> None:
        """Release pooled connections of the session the spider created itself.

        Called at the end of every `run()`; the session reconnects on the next one.
        """
        if self._session is not None:
            self._session.close()

    def _drain(self, report: CrawlReport) -> None:
        slots = threading.BoundedSemaphore(self.config.concurrency)
        in_flight: Set[Future] = set()

        with ThreadPoolExecutor(max_workers=self.config.concurrency, thread_name_prefix="golwarc-spider") as pool:
            while True:
                if self._stop_event.is_set():
                    self.logger.info("Stopping: %s task(s) left in queue", len(self.queue))
                    report.mark_stopped()
                    break

                task = self.queue.pop_front()
                if task is None:
                    if not in_flight:
                        break
                    # a running handler may still push more work
                    done, _pending = wait(in_flight, return_when=FIRST_COMPLETED)
                    in_flight -= done
                    continue

                if not self._claim(task, report):
                    continue

                slots.acquire()
                try:
                    future = pool.submit(self._process, task, report, slots)
                except RuntimeError:
                    slots.release()
                    raise
                in_flight.add(future)
                in_flight = {f for f in in_flight if not f.done()}

    def _claim(self, task: CrawlTask, report: CrawlReport) -> bool:
        if task.depth > self.config.max_depth:
            self.logger.debug("Skipping (max depth reached) %s at depth %s", task.url, task.depth)
            report.record_skip()
            return False
        if not self.visited.try_claim(task.url):
            self.logger.debug("Skipping (visited) %s", task.url)
            report.record_skip()
            return False
        with self._depths_lock:
            self._depths[task.url] = task.depth
        return True

    # -- per-URL work (runs on pool threads) --------------------------------

    def _process(self, task: CrawlTask, report: CrawlReport, slots: threading.BoundedSemaphore) -> None:
        url = task.url
        requested = False
        try:
            verdict = self.validator.validate(url)
            if not verdict:
                self.logger.warning("Skipping (rejected) %s: %s", url, verdict)
                self._record_failure(report, CrawlFailure(url, crawl_report.REJECTED, str(verdict), reason=verdict.reason.value))
                return

            if self.rate_limiter is not None and not self.rate_limiter.wait(cancel_event=self._cancel_event):
                self._record_failure(report, CrawlFailure(url, crawl_report.CANCELLED, "cancelled while rate limited"))
                return

            requested = True
            self._fetch_and_handle(url, report)
        except Exception as e:
            self.logger.error("Crawl error for %s: %s", url, e, exc_info=True)
            self._record_failure(report, CrawlFailure(url, crawl_report.INTERNAL, str(e)))
        finally:
            if requested and self.config.delay > 0:
                self._cancel_event.wait(self.config.delay)
            slots.release()

    def _fetch_and_handle(self, url: str, report: CrawlReport) -> None:
        started = time.monotonic()
        try:
            response = self.http_service.fetch(url, cancel_event=self._cancel_event)
        except FetchCancelledError as e:
            self.logger.info("%s", e)
            self._record_failure(report, CrawlFailure(url, crawl_report.CANCELLED, str(e)))
            return
        except HttpFetchError as e:
            self.logger.warning("Fetch failed for %s: %s", url, e)
            self._record_failure(report, CrawlFailure(url, crawl_report.TRANSPORT, str(e)))
            return
        finally:
            self.metrics.record_duration(time.monotonic() - started)

        if not response.ok:
            self.logger.warning("Non-success status for %s: %s", url, response.status_code)
            self._record_failure(
                report,
                CrawlFailure(url, crawl_report.STATUS, f"status code: {response.status_code}", status_code=response.status_code),
            )
            return

        try:
            document = parse_document(response.text)
        except Exception as e:
            self.logger.warning("Parse error for %s: %s", url, e)
            self._record_failure(report, CrawlFailure(url, crawl_report.PARSE, str(e), status_code=response.status_code))
            return

        if self._handler is not None:
            try:
                self._handler(document, url)
            except Exception as e:
                self.logger.warning("Document handler failed for %s: %s", url, e, exc_info=True)
                self._record_failure(report, CrawlFailure(url, crawl_report.HANDLER, str(e), status_code=response.status_code))
                return

        self._record_success(report)
        self.logger.info("Crawled %s -> status %s", url, response.status_code)

    def _record_success(self, report: CrawlReport) -> None:
        report.record_success()
        self.metrics.record_request(SUCCESS)

    def _record_failure(self, report: CrawlReport, failure: CrawlFailure) -> None:
        report.record_failure(failure)
        self.metrics.record_request(failure.kind)
        self.metrics.record_error(failure.kind)
