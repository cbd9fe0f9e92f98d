"""Domain objects for Golwarc - explicit re-exports to satisfy linters."""
from .crawl_report import CrawlFailure as CrawlFailure
from .crawl_report import CrawlReport as CrawlReport
from .http_response import HttpResponse as HttpResponse
from .spider_config import SpiderConfig as SpiderConfig
from .validation_verdict import RejectionReason as RejectionReason
from .validation_verdict import ValidationVerdict as ValidationVerdict
from .visited_set import VisitedSet as VisitedSet
from .work_queue import CrawlTask as CrawlTask
from .work_queue import WorkQueue as WorkQueue

__all__ = [
    "CrawlFailure",
    "CrawlReport",
    "HttpResponse",
    "SpiderConfig",
    "RejectionReason",
    "ValidationVerdict",
    "VisitedSet",
    "CrawlTask",
    "WorkQueue",
]
