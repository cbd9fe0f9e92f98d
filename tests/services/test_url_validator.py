import ipaddress
import socket
from unittest.mock import Mock

import pytest

from golwarc.domain.validation_verdict import RejectionReason
from golwarc.exceptions import UrlRejectedError
from golwarc.services.url_validator import UrlValidator, classify_ip


def fake_resolver(table):
    def resolve(hostname):
        if hostname not in table:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        return table[hostname]
    return resolve


@pytest.fixture
def validator():
    return UrlValidator(resolver=fake_resolver({
        "example.com": ["93.184.216.34", "2606:2800:220:1:248:1893:25c8:1946"],
        "example.org": ["93.184.215.14"],
        "internal.example.com": ["10.0.0.5"],
        "mixed.example.com": ["93.184.216.34", "192.168.1.10"],
        "rebind.example.com": ["127.0.0.1"],
        "meta.example.com": ["169.254.169.254"],
        "v6-link-local.example.com": ["fe80::1%eth0"],
        "v6-private.example.com": ["fd00::1"],
        "mapped.example.com": ["::ffff:127.0.0.1"],
        "multicast.example.com": ["224.0.0.1"],
        "empty.example.com": [],
        "8.8.8.8": ["8.8.8.8"],
        "10.0.0.1": ["10.0.0.1"],
    }))


@pytest.mark.parametrize("url", [
    "https://example.com",
    "https://example.com/path",
    "http://example.com/path?q=1#frag",
    "HTTPS://EXAMPLE.ORG/",
    "http://8.8.8.8/dns",
])
def test_public_urls_allowed(validator, url):
    verdict = validator.validate(url)
    assert verdict.allowed, str(verdict)
    assert verdict.reason is None
    assert validator.is_allowed(url)


@pytest.mark.parametrize("url,reason", [
    ("", RejectionReason.EMPTY_URL),
    ("://invalid", RejectionReason.MALFORMED),
    ("http://example.com/%zz", RejectionReason.MALFORMED),
    ("http://[::1", RejectionReason.MALFORMED),
    ("http://example.com:port/", RejectionReason.MALFORMED),
    ("http://exa\nmple.com/", RejectionReason.MALFORMED),
    ("file:///etc/passwd", RejectionReason.DISALLOWED_SCHEME),
    ("javascript:alert(1)", RejectionReason.DISALLOWED_SCHEME),
    ("ftp://example.com/file", RejectionReason.DISALLOWED_SCHEME),
    ("data:text/html,<h1>x</h1>", RejectionReason.DISALLOWED_SCHEME),
    ("not-a-url", RejectionReason.DISALLOWED_SCHEME),
    ("http://", RejectionReason.EMPTY_HOST),
    ("http:///path", RejectionReason.EMPTY_HOST),
    ("http://localhost:8080", RejectionReason.LOCALHOST),
    ("http://LocalHost/", RejectionReason.LOCALHOST),
    ("http://127.0.0.1:8080/api", RejectionReason.LOCALHOST),
    ("http://[::1]/", RejectionReason.LOCALHOST),
    ("http://0.0.0.0/", RejectionReason.LOCALHOST),
    ("http://[::]/", RejectionReason.LOCALHOST),
    ("http://nowhere.invalid/", RejectionReason.DNS_FAILURE),
    ("http://empty.example.com/", RejectionReason.DNS_FAILURE),
    ("http://10.0.0.1/internal", RejectionReason.PRIVATE),
    ("http://internal.example.com/", RejectionReason.PRIVATE),
    ("http://v6-private.example.com/", RejectionReason.PRIVATE),
    ("http://rebind.example.com/", RejectionReason.LOOPBACK),
    ("http://mapped.example.com/", RejectionReason.LOOPBACK),
    ("http://meta.example.com/latest/meta-data", RejectionReason.LINK_LOCAL),
    ("http://v6-link-local.example.com/", RejectionReason.LINK_LOCAL),
    ("http://multicast.example.com/", RejectionReason.MULTICAST),
])
def test_dangerous_urls_rejected(validator, url, reason):
    verdict = validator.validate(url)
    assert not verdict
    assert verdict.reason == reason
    assert verdict.detail


def test_one_private_address_among_many_rejects(validator):
    verdict = validator.validate("https://mixed.example.com/")
    assert verdict.reason == RejectionReason.PRIVATE
    assert "192.168.1.10" in verdict.detail


def test_resolver_not_called_before_host_checks_pass():
    resolver = Mock(return_value=["93.184.216.34"])
    validator = UrlValidator(resolver=resolver)
    validator.validate("file:///etc/passwd")
    validator.validate("http://localhost/")
    validator.validate("")
    resolver.assert_not_called()

    validator.validate("https://example.com/")
    resolver.assert_called_once_with("example.com")


def test_unicode_error_from_resolver_fails_closed():
    validator = UrlValidator(resolver=Mock(side_effect=UnicodeError("label too long")))
    assert validator.validate("http://example.com/").reason == RejectionReason.DNS_FAILURE


def test_ensure_allowed_raises_with_reason(validator):
    validator.ensure_allowed("https://example.com/")
    with pytest.raises(UrlRejectedError) as exc:
        validator.ensure_allowed("http://10.0.0.1/internal")
    assert exc.value.reason == RejectionReason.PRIVATE
    assert "10.0.0.1" in str(exc.value)


@pytest.mark.parametrize("ip,reason", [
    ("8.8.8.8", None),
    ("127.0.0.1", RejectionReason.LOOPBACK),
    ("127.8.8.8", RejectionReason.LOOPBACK),
    ("10.0.0.1", RejectionReason.PRIVATE),
    ("192.168.1.1", RejectionReason.PRIVATE),
    ("172.16.0.1", RejectionReason.PRIVATE),
    ("172.31.255.255", RejectionReason.PRIVATE),
    ("172.32.0.1", None),
    ("169.254.1.1", RejectionReason.LINK_LOCAL),
    ("239.255.255.250", RejectionReason.MULTICAST),
    ("::1", RejectionReason.LOOPBACK),
    ("fe80::abcd", RejectionReason.LINK_LOCAL),
    ("ff02::1", RejectionReason.MULTICAST),
    ("2001:4860:4860::8888", None),
])
def test_classify_ip(ip, reason):
    assert classify_ip(ipaddress.ip_address(ip)) == reason
