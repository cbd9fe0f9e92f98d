import logging
import os
from typing import NamedTuple, Optional

import yaml

from golwarc.domain.spider_config import SpiderConfig
from golwarc.exceptions import ConfigError

logger = logging.getLogger(__name__)


class CrawlPlan(NamedTuple):
    """A named set of seed URLs and the spider settings to crawl them with."""
    name: str
    root_urls: list
    config: SpiderConfig


def validate_spider_settings(user_agent: str, max_depth: int, concurrency: int) -> None:
    if not user_agent:
        raise ConfigError("user_agent", "user agent cannot be empty")
    if max_depth < 1 or max_depth > 10:
        raise ConfigError("max_depth", "max depth must be between 1 and 10")
    if concurrency < 1 or concurrency > 100:
        raise ConfigError("concurrency", "concurrency must be between 1 and 100")


def validate_timeout(timeout: float) -> None:
    if timeout < 1:
        raise ConfigError("timeout_seconds", "timeout must be at least 1 second")
    if timeout > 300:
        raise ConfigError("timeout_seconds", "timeout cannot exceed 300 seconds (5 minutes)")


class ConfigFileStore:
    """Filesystem/YAML IO for crawl plan files.

    Responsibility: read and parse YAML files on disk.
    """

    def __init__(self, *, configs_dir: str = "."):
        self.configs_dir = configs_dir

    def _resolve_path(self, config_path: str) -> str:
        return config_path if os.path.isabs(config_path) else os.path.join(self.configs_dir, config_path)

    def load_yaml_dict(self, config_path: str) -> Optional[dict]:
        """Return parsed YAML dict for `config_path`, or None if missing/invalid."""
        full_path = self._resolve_path(config_path)
        if not os.path.isfile(full_path):
            return None
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            logger.exception("Could not read config file %s", full_path)
            return None
        return data if isinstance(data, dict) else None


class SpiderConfigParser:
    """Parse a YAML dict into a CrawlPlan.

    Responsibility: schema/validation for YAML crawl plans. It does NOT
    perform filesystem IO. Keys left out fall back to `defaults`.

    Example::

        name: docs
        root_urls: [https://example.com/docs/]
        max_depth: 2
        concurrency: 4
        delay_seconds: 0.5
        timeout_seconds: 20
        rate_limit: {requests_per_second: 5, burst: 5}
    """

    def __init__(self, defaults: Optional[SpiderConfig] = None):
        self.defaults = defaults if defaults is not None else SpiderConfig()

    def parse(self, *, config_path: str, data: dict) -> CrawlPlan:
        root_urls = data.get("root_urls") or []
        if isinstance(root_urls, str):
            root_urls = [root_urls]
        if not isinstance(root_urls, list) or not all(isinstance(u, str) for u in root_urls):
            raise ConfigError("root_urls", "must be a list of URL strings")

        user_agent = data.get("user_agent", self.defaults.user_agent)
        max_depth = self._number(data, "max_depth", self.defaults.max_depth, int)
        concurrency = self._number(data, "concurrency", self.defaults.concurrency, int)
        timeout = self._number(data, "timeout_seconds", self.defaults.timeout, float)
        delay = self._number(data, "delay_seconds", self.defaults.delay, float)

        validate_spider_settings(user_agent, max_depth, concurrency)
        validate_timeout(timeout)

        rate = data.get("rate_limit") or {}
        if not isinstance(rate, dict):
            raise ConfigError("rate_limit", "must be a mapping")
        rate_limit = self._number(rate, "requests_per_second", self.defaults.rate_limit, float)
        rate_burst = self._number(rate, "burst", self.defaults.rate_burst, int)

        name = data.get("name") or os.path.splitext(os.path.basename(config_path))[0]
        config = SpiderConfig(
            max_depth=max_depth,
            concurrency=concurrency,
            user_agent=user_agent,
            delay=delay,
            timeout=timeout,
            rate_limit=rate_limit,
            rate_burst=rate_burst,
        )
        return CrawlPlan(name=name, root_urls=list(root_urls), config=config)

    @staticmethod
    def _number(data: dict, key: str, default, cast):
        raw = data.get(key)
        if raw is None:
            return default
        if isinstance(raw, bool):
            raise ConfigError(key, f"expected a number, got {raw!r}")
        try:
            return cast(raw)
        except (TypeError, ValueError):
            raise ConfigError(key, f"expected a number, got {raw!r}") from None


def load_crawl_plan(config_path: str, *, store: Optional[ConfigFileStore] = None, parser: Optional[SpiderConfigParser] = None) -> CrawlPlan:
    """Read `config_path` and parse it into a CrawlPlan."""
    store = store if store is not None else ConfigFileStore()
    parser = parser if parser is not None else SpiderConfigParser()
    data = store.load_yaml_dict(config_path)
    if data is None:
        raise ConfigError("config_path", f"{config_path} is missing or not a YAML mapping")
    return parser.parse(config_path=config_path, data=data)
