import ipaddress
import logging
import socket
from typing import Callable, Iterable, List, Optional, Union

from golwarc.domain.validation_verdict import RejectionReason, ValidationVerdict
from golwarc.exceptions import UrlRejectedError
from golwarc.utils.url_utils import malformed_reason, split_strict

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

ALLOWED_SCHEMES = frozenset({"http", "https"})
LOCALHOST_NAMES = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0", "::"})

PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("fc00::/7"),
)


def resolve_host(hostname: str) -> List[str]:
    """Return every address `hostname` resolves to (IPv4 and IPv6)."""
    infos = socket.getaddrinfo(hostname, None)
    addresses: List[str] = []
    for _family, _type, _proto, _canon, sockaddr in infos:
        addr = sockaddr[0]
        if addr not in addresses:
            addresses.append(addr)
    return addresses


def classify_ip(ip: IPAddress) -> Optional[RejectionReason]:
    """Return the rejection reason for a dangerous address, or None if it is public."""
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    if ip.is_loopback:
        return RejectionReason.LOOPBACK
    if any(ip in net for net in PRIVATE_NETWORKS if net.version == ip.version):
        return RejectionReason.PRIVATE
    if ip.is_link_local:
        return RejectionReason.LINK_LOCAL
    if ip.is_multicast:
        return RejectionReason.MULTICAST
    return None


class UrlValidator:
    """
    Decides whether a URL may be crawled.

    Guards against SSRF: besides scheme and hostname checks, every address the
    hostname resolves to is classified, so DNS tricks pointing a public name at
    an internal address are rejected too. Resolution failures are rejected
    (fail closed).

    Requires a resolver callable for dependency injection; tests pass a fake
    one instead of patching `socket`.
    """

    def __init__(self, resolver: Callable[[str], Iterable[str]] = resolve_host):
        self.resolver = resolver

    def validate(self, raw_url: str) -> ValidationVerdict:
        if not raw_url:
            return ValidationVerdict.reject(RejectionReason.EMPTY_URL, "URL cannot be empty")

        reason = malformed_reason(raw_url)
        if reason is not None:
            return ValidationVerdict.reject(RejectionReason.MALFORMED, f"invalid URL format: {reason}")
        parts = split_strict(raw_url)

        scheme = parts.scheme.lower()
        if scheme not in ALLOWED_SCHEMES:
            return ValidationVerdict.reject(
                RejectionReason.DISALLOWED_SCHEME,
                f"disallowed URL scheme: {scheme!r} (only http/https allowed)",
            )

        hostname = (parts.hostname or "").lower()
        if not hostname:
            return ValidationVerdict.reject(RejectionReason.EMPTY_HOST, "hostname cannot be empty")

        if hostname in LOCALHOST_NAMES:
            return ValidationVerdict.reject(RejectionReason.LOCALHOST, "localhost URLs are not allowed")

        return self._validate_resolved(hostname)

    def _validate_resolved(self, hostname: str) -> ValidationVerdict:
        try:
            addresses = list(self.resolver(hostname))
        except (OSError, UnicodeError) as e:
            logger.debug("DNS lookup failed for %s: %s", hostname, e)
            return ValidationVerdict.reject(RejectionReason.DNS_FAILURE, f"cannot resolve hostname: {e}")

        if not addresses:
            return ValidationVerdict.reject(RejectionReason.DNS_FAILURE, "hostname resolved to no addresses")

        for raw_ip in addresses:
            try:
                # scoped IPv6 addresses come back as "fe80::1%eth0"
                ip = ipaddress.ip_address(str(raw_ip).split("%", 1)[0])
            except ValueError:
                return ValidationVerdict.reject(
                    RejectionReason.DNS_FAILURE, f"resolver returned invalid address {raw_ip!r}"
                )
            reason = classify_ip(ip)
            if reason is not None:
                return ValidationVerdict.reject(reason, f"hostname resolves to blocked IP {ip}")

        return ValidationVerdict.allow()

    def is_allowed(self, raw_url: str) -> bool:
        return bool(self.validate(raw_url))

    def ensure_allowed(self, raw_url: str) -> None:
        """Raise UrlRejectedError unless `raw_url` passes validation."""
        verdict = self.validate(raw_url)
        if not verdict:
            raise UrlRejectedError(raw_url, verdict.reason, verdict.detail)
