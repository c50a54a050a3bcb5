"""Sender Policy Framework (SPF) records and sender checks."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Iterable

import dns.asyncresolver
import dns.exception

from neomail.errors import DNSError, SPFError

_DEFAULT_MAX_LOOKUPS = 10

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class SPFQualifier(Enum):
    """Policy applied to senders not listed in the record."""

    NEUTRAL = auto()
    PASS = auto()
    FAIL = auto()
    SOFTFAIL = auto()


_ALL_QUALIFIERS = (
    ("-all", SPFQualifier.FAIL),
    ("~all", SPFQualifier.SOFTFAIL),
    ("+all", SPFQualifier.PASS),
)


@dataclass
class SPFRecord:
    """A parsed SPF TXT record, e.g. ``v=spf1 ip4:192.0.2.0 include:example.com -all``."""

    version: str
    ipv4: list[str] = field(default_factory=list)
    ipv6: list[str] = field(default_factory=list)
    qualifier: SPFQualifier = SPFQualifier.NEUTRAL
    root_include: list[str] = field(default_factory=list)
    include: list[SPFRecord] = field(default_factory=list)
    redirect: str | None = None
    exists: str | None = None

    @classmethod
    def from_string(cls, spf_record: str) -> SPFRecord:
        """Parse the text of an SPF TXT record."""
        terms = spf_record.split()
        if len(terms) < 2:
            raise SPFError("Invalid SPF record")

        version_parts = terms[0].split("=")
        if len(version_parts) < 2 or version_parts[1] != "spf1":
            raise SPFError("Invalid SPF version")

        record = cls(version=version_parts[1])
        for raw_term in terms[1:]:
            term = raw_term.lower()
            if term.startswith("ip4:"):
                record.ipv4.append(term.replace("ip4:", ""))
            elif term.startswith("ip6:"):
                record.ipv6.append(term.replace("ip6:", ""))
            elif any(term.startswith(prefix) for prefix, _ in _ALL_QUALIFIERS):
                record.qualifier = next(
                    q for prefix, q in _ALL_QUALIFIERS if term.startswith(prefix)
                )
            elif term.startswith("include:"):
                record.root_include.append(term.replace("include:", ""))
            elif term.startswith("redirect="):
                record.redirect = term.replace("redirect=", "")
            elif term.startswith("exists:"):
                record.exists = term.replace("exists:", "")
        return record

    @classmethod
    async def get_dns_spf_record(
        cls,
        remaining_redirects: int,
        remaining_lookups: int,
        resolver: Any,
        domain: str,
    ) -> SPFRecord:
        """Look up the SPF record of ``domain``, following ``redirect=`` modifiers.

        ``resolver`` is a dnspython asynchronous resolver (or any object with a
        compatible ``resolve`` coroutine); ``None`` uses the system default.
        """
        if remaining_redirects <= 0:
            raise DNSError("Max redirects reached")
        if remaining_lookups <= 0:
            raise DNSError("Max lookups reached")
        if resolver is None:
            resolver = dns.asyncresolver.Resolver()

        try:
            answer = await resolver.resolve(f"{domain}.", "TXT")
        except (dns.exception.DNSException, OSError) as exc:
            raise DNSError("Failed to get SPF record") from exc

        texts = (
            b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer
        )
        found = next((t for t in texts if t.startswith("v=spf1")), None)
        if found is None:
            raise SPFError("SPF record not found")

        parsed = cls.from_string(found)
        if parsed.redirect is not None:
            return await cls.get_dns_spf_record(
                remaining_redirects - 1,
                remaining_lookups - 1,
                resolver,
                parsed.redirect,
            )
        return parsed


def _matching_pattern(origin: IPAddress, patterns: Iterable[str]) -> str | None:
    """Return the first ``ip[/prefix]`` pattern whose network contains ``origin``."""
    max_prefix = origin.max_prefixlen
    for pattern in patterns:
        parts = pattern.split("/")
        if len(parts) == 1:
            address, prefix_text = parts[0], str(max_prefix)
        elif len(parts) == 2:
            address, prefix_text = parts
        else:
            continue
        if not prefix_text.isdigit():
            continue
        prefix = int(prefix_text)
        if prefix > max_prefix:
            continue
        try:
            network = ipaddress.ip_network(f"{address}/{prefix}", strict=False)
        except ValueError:
            continue
        if network.version == origin.version and origin in network:
            return pattern
    return None


async def _domain_exists(resolver: Any, domain: str, origin: IPAddress) -> bool:
    rdtype = "A" if origin.version == 4 else "AAAA"
    try:
        answer = await resolver.resolve(f"{domain}.", rdtype)
    except (dns.exception.DNSException, OSError) as exc:
        raise DNSError(f"Failed to get {rdtype} record") from exc
    return any(True for _ in answer)


async def sender_policy_framework(
    resolver: Any,
    origin_ip: str | IPAddress,
    domain: str,
    max_depth_redirect: int,
    max_include: int,
) -> tuple[bool, SPFRecord, str | None]:
    """Check whether ``origin_ip`` may send mail on behalf of ``domain``.

    Returns whether the sender passes, the SPF record used, and the allowed
    pattern that matched (if any). Raises SPFError when the policy rejects
    the sender outright.
    """
    try:
        origin = ipaddress.ip_address(origin_ip)
    except ValueError as exc:
        raise SPFError("Failed to get IP address") from exc
    if resolver is None:
        resolver = dns.asyncresolver.Resolver()

    try:
        record = await SPFRecord.get_dns_spf_record(
            max_depth_redirect, _DEFAULT_MAX_LOOKUPS, resolver, domain
        )
    except (DNSError, SPFError) as exc:
        raise SPFError("Failed to get SPF record") from exc

    if record.exists is not None:
        if not await _domain_exists(resolver, record.exists, origin):
            raise SPFError("IP not allowed")

    for include in record.root_include[: max(max_include, 0)]:
        try:
            included = await SPFRecord.get_dns_spf_record(
                max_depth_redirect, _DEFAULT_MAX_LOOKUPS, resolver, include
            )
        except (DNSError, SPFError) as exc:
            raise SPFError("Failed to get included SPF record") from exc
        record.include.append(included)

    if origin.version == 4:
        allowed = record.ipv4 + [ip for inc in record.include for ip in inc.ipv4]
    else:
        allowed = record.ipv6 + [ip for inc in record.include for ip in inc.ipv6]
    matched = _matching_pattern(origin, allowed)

    qualifier = record.qualifier
    if qualifier is SPFQualifier.FAIL:
        if matched is None:
            raise SPFError("IP not allowed")
        return True, record, matched
    if qualifier is SPFQualifier.SOFTFAIL:
        return matched is not None, record, matched
    if qualifier is SPFQualifier.PASS:
        return True, record, matched
    return False, record, matched