"""Dependency injection container for the application."""
import logging

import requests
from dependency_injector import containers, providers

from golwarc import config as env
from golwarc.domain.spider_config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_DEPTH,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    SpiderConfig,
)
from golwarc.services.crawl_metrics import CrawlMetrics
from golwarc.services.http_service import HttpService
from golwarc.services.rate_limiter import RateLimiter
from golwarc.services.spider import Spider
from golwarc.services.url_validator import UrlValidator


# Environment variables used by the container (read via `golwarc.config` helpers).
#
# USER_AGENT (str, default: "Mozilla/5.0 (compatible; GolwarcBot/1.0)")
#   User-Agent header for outbound HTTP requests.
#
# HTTP_TIMEOUT (float seconds, default: 30)
#   Overall timeout for one page fetch, body download included.
#
# CRAWL_DELAY (float seconds, default: 0)
#   Pause each worker takes after a request before picking up the next URL.
#
# DEFAULT_DEPTH (int, default: 3)
#   Maximum link depth followed from the seed URLs.
#
# CRAWL_CONCURRENCY (int, default: 5)
#   Maximum number of pages fetched at the same time.
#
# RATE_LIMIT_RPS (float, default: 0 = disabled)
#   Global requests/second cap shared by all workers.
#
# RATE_LIMIT_BURST (int, default: 0 = same as RATE_LIMIT_RPS)
#   Token bucket size for the global rate limit.
ENV = {
    "USER_AGENT": env.get_str_env("USER_AGENT", DEFAULT_USER_AGENT),
    "HTTP_TIMEOUT": env.get_float_env("HTTP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
    "CRAWL_DELAY": env.get_float_env("CRAWL_DELAY", 0.0),
    "DEFAULT_DEPTH": env.get_int_env("DEFAULT_DEPTH", DEFAULT_MAX_DEPTH),
    "CRAWL_CONCURRENCY": env.get_int_env("CRAWL_CONCURRENCY", DEFAULT_CONCURRENCY),
    "RATE_LIMIT_RPS": env.get_float_env("RATE_LIMIT_RPS", 0.0),
    "RATE_LIMIT_BURST": env.get_int_env("RATE_LIMIT_BURST", 0),
}


def _make_rate_limiter(spider_config: SpiderConfig):
    if not spider_config.rate_limited:
        return None
    return RateLimiter(spider_config.rate_limit, spider_config.rate_burst)


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the Golwarc spider."""

    # Configuration
    config = providers.Configuration(default=ENV)

    spider_config = providers.Singleton(
        SpiderConfig,
        max_depth=config.DEFAULT_DEPTH.as_(int),
        concurrency=config.CRAWL_CONCURRENCY.as_(int),
        user_agent=config.USER_AGENT.as_(str),
        delay=config.CRAWL_DELAY.as_(float),
        timeout=config.HTTP_TIMEOUT.as_(float),
        rate_limit=config.RATE_LIMIT_RPS.as_(float),
        rate_burst=config.RATE_LIMIT_BURST.as_(int),
    )

    # One session per process so workers share the connection pool
    http_session = providers.Singleton(requests.Session)

    http_service = providers.Singleton(
        HttpService,
        user_agent=spider_config.provided.user_agent,
        http_client=http_session.provided.get,
        timeout=spider_config.provided.timeout,
    )

    url_validator = providers.Singleton(UrlValidator)

    rate_limiter = providers.Singleton(_make_rate_limiter, spider_config)

    # Shared by every spider the container builds; owns its own Prometheus registry
    metrics = providers.Singleton(CrawlMetrics)

    logger = providers.Object(logging.getLogger("golwarc.spider"))

    # Spiders carry per-run state (queue, visited set), so each call builds a new one
    spider = providers.Factory(
        Spider,
        config=spider_config,
        validator=url_validator,
        http_service=http_service,
        rate_limiter=rate_limiter,
        metrics=metrics,
        logger=logger,
    )
