import threading

from golwarc.domain import crawl_report
from golwarc.domain.crawl_report import CrawlFailure, CrawlReport


def test_empty_report_is_ok():
    report = CrawlReport()
    assert report.ok
    assert report.pages_crawled == 0
    assert "pages=0" in report.summary()


def test_failures_grouped_by_kind():
    report = CrawlReport()
    report.record_failure(CrawlFailure("http://a", crawl_report.STATUS, "status code: 404", status_code=404))
    report.record_failure(CrawlFailure("http://b", crawl_report.HANDLER, "boom"))
    assert not report.ok
    assert [f.url for f in report.failures_of(crawl_report.STATUS)] == ["http://a"]
    assert report.failures_of(crawl_report.STATUS)[0].status_code == 404
    assert report.failures_of(crawl_report.TRANSPORT) == []


def test_concurrent_success_records_are_counted():
    report = CrawlReport()

    def work():
        for _ in range(500):
            report.record_success()

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert report.pages_crawled == 2000
