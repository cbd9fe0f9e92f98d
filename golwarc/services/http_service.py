import time
from typing import Callable, Optional

import requests
from bs4 import UnicodeDammit

from golwarc.domain.http_response import HttpResponse
from golwarc.exceptions import FetchCancelledError, HttpFetchError


def charset_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Return the `charset` parameter of a Content-Type header, if any."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip("\"'") or None
    return None


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection (DIP compliance).
    This enables easy testing without patching and allows swapping HTTP libraries.

    The body is streamed so that `timeout` bounds the whole request rather than
    each socket read, and so a stop request can abort a slow download between
    chunks.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 30.0, chunk_size: int = 16 * 1024):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client
        self.chunk_size = chunk_size

    def fetch(self, url: str, cancel_event=None) -> HttpResponse:
        """GET `url` and return status code, decoded body and Content-Type."""
        if cancel_event is not None and cancel_event.is_set():
            raise FetchCancelledError(url)

        headers = {"User-Agent": self.user_agent}
        deadline = time.monotonic() + self.timeout
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout, stream=True)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        try:
            body = self._read_body(url, resp, deadline, cancel_event)
        finally:
            close = getattr(resp, "close", None)
            if close is not None:
                close()

        ct = None
        if hasattr(resp, "headers"):
            ct = resp.headers.get("Content-Type")

        return HttpResponse(resp.status_code, self._decode(body, charset_from_content_type(ct)), ct, url)

    def _read_body(self, url: str, resp, deadline: float, cancel_event) -> bytes:
        chunks = []
        try:
            for chunk in resp.iter_content(chunk_size=self.chunk_size):
                if cancel_event is not None and cancel_event.is_set():
                    raise FetchCancelledError(url)
                if time.monotonic() > deadline:
                    raise HttpFetchError(url, requests.exceptions.Timeout(f"read exceeded {self.timeout}s"))
                if chunk:
                    chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        return b"".join(chunks)

    @staticmethod
    def _decode(body: bytes, charset: Optional[str]) -> str:
        """Decode `body`, trusting only a charset the server declared in Content-Type.

        Without one, the document itself is sniffed (BOM, <meta charset>), then
        UTF-8 and windows-1252 are tried.
        """
        if not body:
            return ""
        known = [charset] if charset else []
        dammit = UnicodeDammit(body, known_definite_encodings=known, is_html=True)
        return dammit.unicode_markup or ""
