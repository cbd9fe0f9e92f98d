import logging
from typing import List

from bs4 import BeautifulSoup
from rfc3986 import uri_reference
from rfc3986.exceptions import ResolutionError
from soupsieve import SelectorSyntaxError

from golwarc.exceptions import UrlResolveError
from golwarc.utils.url_utils import malformed_reason

logger = logging.getLogger(__name__)

DEFAULT_LINK_SELECTOR = "a[href]"


def parse_document(html: str) -> BeautifulSoup:
    """Parse an HTML body into a queryable document."""
    return BeautifulSoup(html, "html.parser")


def extract_links(document: BeautifulSoup, selector: str = DEFAULT_LINK_SELECTOR) -> List[str]:
    """Return raw `href` values of every element matching `selector`, in document order.

    Duplicates are kept; deduplication happens later in the visited set. An
    invalid selector yields no links.
    """
    try:
        elements = document.select(selector)
    except SelectorSyntaxError as e:
        logger.warning("Invalid link selector %r: %s", selector, e)
        return []

    links = []
    for el in elements:
        href = el.get("href")
        if href is None:
            continue
        if isinstance(href, list):
            href = " ".join(href)
        links.append(href)
    return links


def resolve_url(base_url: str, relative_url: str) -> str:
    """Resolve `relative_url` against `base_url` (RFC 3986 reference resolution).

    An absolute `relative_url` is returned as-is (dot segments removed).
    Raises UrlResolveError when either input cannot be parsed or `base_url`
    has no scheme.
    """
    for raw in (base_url, relative_url):
        reason = malformed_reason(raw)
        if reason is not None:
            raise UrlResolveError(raw, reason)
    try:
        return uri_reference(relative_url).resolve_with(base_url, strict=True).unsplit()
    except ResolutionError as e:
        raise UrlResolveError(base_url, "base URL must be absolute") from e
