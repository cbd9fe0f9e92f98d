import argparse
import logging
import sys
import threading

from dependency_injector import providers

from golwarc import config
from golwarc.container import Container
from golwarc.services.spider_config_parser import load_crawl_plan

logger = logging.getLogger("golwarc")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl pages starting from seed URLs.")
    parser.add_argument("urls", nargs="*", help="seed URLs")
    parser.add_argument("--config", dest="config_path", help="YAML crawl plan with root_urls and spider settings")
    parser.add_argument("--selector", default="a[href]", help="CSS selector for links to follow")
    parser.add_argument("--no-follow", action="store_true", help="only fetch the seed URLs")
    parser.add_argument("--metrics-port", type=int, help="serve Prometheus metrics on this port while crawling")
    return parser


def main(argv=None, container=None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    container = container or Container()
    seeds = list(args.urls)
    if args.config_path:
        plan = load_crawl_plan(args.config_path)
        container.spider_config.override(providers.Object(plan.config))
        seeds.extend(plan.root_urls)
        logger.info("Loaded crawl plan %s with %d root URL(s)", plan.name, len(plan.root_urls))

    if not seeds:
        logger.error("No seed URLs given")
        return 2

    if args.metrics_port:
        container.metrics().serve(args.metrics_port)

    spider = container.spider()
    titles_lock = threading.Lock()
    titles = {}

    def handle(document, url):
        title = document.title.get_text(strip=True) if document.title else ""
        with titles_lock:
            titles[url] = title
        if not args.no_follow:
            spider.follow_links(document, url, args.selector)

    spider.on_document(handle)
    for url in seeds:
        spider.add_start_url(url)

    report = spider.run()

    for url, title in sorted(titles.items()):
        logger.info("%s  %s", url, title)
    for failure in report.failures:
        logger.warning("Failed %s [%s]: %s", failure.url, failure.kind, failure.message)
    logger.info("Done: %s", report.summary())
    return 0 if report.pages_crawled else 1


if __name__ == '__main__':
    sys.exit(main())
