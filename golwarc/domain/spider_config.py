from __future__ import annotations

from dataclasses import dataclass

from golwarc.exceptions import ConfigError

DEFAULT_MAX_DEPTH = 3
DEFAULT_CONCURRENCY = 5
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; GolwarcBot/1.0)"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class SpiderConfig:
    """Spider settings, fixed once the spider is constructed.

    Zero or empty values are replaced by defaults (depth 3, concurrency 5,
    the Golwarc user agent, 30s timeout). `delay` is the per-worker pause after
    each request; `rate_limit` is an optional global requests/second cap and
    stays disabled at 0.
    """

    max_depth: int = 0
    concurrency: int = 0
    user_agent: str = ""
    delay: float = 0.0
    timeout: float = 0.0
    rate_limit: float = 0.0
    rate_burst: int = 0

    def __post_init__(self):
        for field_name in ("max_depth", "concurrency", "delay", "timeout", "rate_limit", "rate_burst"):
            if getattr(self, field_name) < 0:
                raise ConfigError(field_name, "must not be negative")

        if self.max_depth == 0:
            object.__setattr__(self, "max_depth", DEFAULT_MAX_DEPTH)
        if self.concurrency == 0:
            object.__setattr__(self, "concurrency", DEFAULT_CONCURRENCY)
        if not self.user_agent or not self.user_agent.strip():
            object.__setattr__(self, "user_agent", DEFAULT_USER_AGENT)
        if self.timeout == 0:
            object.__setattr__(self, "timeout", DEFAULT_TIMEOUT_SECONDS)

    @classmethod
    def default(cls) -> "SpiderConfig":
        """Settings of the stock spider: defaults plus a one second politeness delay."""
        return cls(delay=1.0)

    @property
    def rate_limited(self) -> bool:
        return self.rate_limit > 0
