import re
from typing import Optional
from urllib.parse import SplitResult, urlsplit

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def malformed_reason(raw: str) -> Optional[str]:
    """Return why `raw` is not a syntactically valid URL reference, or None.

    `urlsplit` accepts almost anything, so the stricter checks a URL parser
    would apply (control characters, missing scheme before ':', bad escapes,
    broken IPv6 literals, non-numeric ports) live here.
    """
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in raw):
        return "invalid control character in URL"

    if raw.startswith(":"):
        return "missing protocol scheme"

    colon = raw.find(":")
    if colon > 0:
        candidate = raw[:colon]
        # a ':' inside the path or query is not a scheme separator
        if "/" not in candidate and "?" not in candidate and "#" not in candidate:
            if not _SCHEME_RE.match(candidate):
                return f"first path segment in URL cannot contain colon: {candidate!r}"

    if _BAD_ESCAPE_RE.search(raw):
        return "invalid URL escape"

    try:
        parts = urlsplit(raw)
        # .port raises ValueError for non-numeric or out-of-range ports
        parts.port
    except ValueError as e:
        return str(e)
    return None


def split_strict(raw: str) -> SplitResult:
    """`urlsplit` that raises ValueError for malformed input."""
    reason = malformed_reason(raw)
    if reason is not None:
        raise ValueError(reason)
    return urlsplit(raw)
