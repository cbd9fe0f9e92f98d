"""Custom exceptions for Golwarc services."""


class ConfigError(ValueError):
    """Raised when spider settings are missing or out of range."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid setting '{field}': {reason}")


class HttpFetchError(Exception):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class FetchCancelledError(Exception):
    """Raised when an in-flight fetch is aborted by a stop request."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Fetch cancelled for {url}")


class UrlRejectedError(Exception):
    """Raised by `UrlValidator.ensure_allowed` for URLs that must not be fetched."""

    def __init__(self, url: str, reason, detail: str = ""):
        self.url = url
        self.reason = reason
        self.detail = detail
        message = f"URL rejected ({reason.value}): {url!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UrlResolveError(ValueError):
    """Raised when a base or relative URL cannot be parsed for resolution."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot resolve {url!r}: {reason}")


class SpiderAlreadyRunningError(RuntimeError):
    """Raised when `Spider.run()` is called while another run is active."""

    def __init__(self):
        super().__init__("spider is already running")
