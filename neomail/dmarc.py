"""Domain-based Message Authentication, Reporting and Conformance (DMARC) records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import dns.asyncresolver
import dns.exception

from neomail.errors import DKIMError, DNSError, ParseError
from neomail.mail import EmailAddress

_U8_MAX = 0xFF
_U32_MAX = 0xFFFFFFFF


class DMARCPolicy(Enum):
    """Policy a receiver should apply to mail that fails DMARC."""

    NONE = "none"
    QUARANTINE = "quarantine"
    REJECT = "reject"


class DMARCDKIMAlignment(Enum):
    """DKIM identifier alignment mode."""

    RELAXED = "r"
    STRICT = "s"


class DMARCSPFAlignment(Enum):
    """SPF identifier alignment mode."""

    RELAXED = "r"
    STRICT = "s"


class DMARCForensicReport(Enum):
    """Which failures trigger a forensic report."""

    NONE = "none"
    DKIM = "dkim"
    SPF = "spf"
    BOTH = "both"


def _parse_uint(text: str, maximum: int, error: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if not digits or not all("0" <= ch <= "9" for ch in digits):
        raise DKIMError(error)
    value = int(digits)
    if value > maximum:
        raise DKIMError(error)
    return value


def _parse_mailto(value: str, prefix_error: str, address_error: str) -> EmailAddress:
    if not value.startswith("mailto:"):
        raise DKIMError(prefix_error)
    address = value.split(":")[1]
    try:
        return EmailAddress.from_string(address)
    except ParseError as exc:
        raise DKIMError(address_error) from exc


def _parse_alignment(value: str, kind: type[Enum], error: str) -> Any:
    try:
        return kind(value.lower())
    except ValueError as exc:
        raise DKIMError(error) from exc


@dataclass(frozen=True)
class DMARCRecord:
    """A parsed DMARC TXT record, e.g. ``v=DMARC1; p=none; rua=mailto:...``."""

    version: str
    policy: DMARCPolicy = DMARCPolicy.NONE
    aggregate_report_email: EmailAddress | None = None
    forensic_report_email: EmailAddress | None = None
    dkim_alignment: DMARCDKIMAlignment | None = None
    spf_alignment: DMARCSPFAlignment | None = None
    report_format: str | None = None
    percentage: int | None = None
    report_interval: int | None = None

    @classmethod
    def from_string(cls, record: str) -> DMARCRecord:
        """Parse the text of a DMARC TXT record."""
        tags = [part.strip() for part in record.split(";")]
        if len(tags) < 2:
            raise DKIMError("Invalid DMARC record")
        if tags[0] not in ("v=dmarc1", "v=DMARC1"):
            raise DKIMError("Invalid DKIM version")

        version = ""
        policy = DMARCPolicy.NONE
        aggregate = None
        forensic = None
        dkim_alignment = None
        spf_alignment = None
        report_format = None
        percentage = None
        report_interval = None

        for tag in tags:
            if tag.startswith("v="):
                version = tag.replace("v=", "")
            elif tag.startswith("p="):
                try:
                    policy = DMARCPolicy(tag.replace("p=", "").lower())
                except ValueError as exc:
                    raise DKIMError("Invalid DMARC policy") from exc
            elif tag.startswith("rua="):
                aggregate = _parse_mailto(
                    tag.replace("rua=", ""),
                    "Invalid DMARC aggregate report email",
                    "Invalid DMARC aggregate report email",
                )
            elif tag.startswith("ruf="):
                forensic = _parse_mailto(
                    tag.replace("ruf=", ""),
                    "Invalid DMARC forensic report email",
                    "Invalid DMARC aggregate report email",
                )
            elif tag.startswith("adkim="):
                dkim_alignment = _parse_alignment(
                    tag.replace("adkim=", ""),
                    DMARCDKIMAlignment,
                    "Invalid DMARC DKIM alignment",
                )
            elif tag.startswith("aspf="):
                spf_alignment = _parse_alignment(
                    tag.replace("aspf=", ""),
                    DMARCSPFAlignment,
                    "Invalid DMARC SPF alignment",
                )
            elif tag.startswith("rf="):
                report_format = tag.replace("rf=", "")
            elif tag.startswith("pct="):
                percentage = _parse_uint(
                    tag.replace("pct=", ""), _U8_MAX, "Invalid DMARC percentage"
                )
            elif tag.startswith("ri="):
                report_interval = _parse_uint(
                    tag.replace("ri=", ""), _U32_MAX, "Invalid DMARC report interval"
                )

        return cls(
            version=version,
            policy=policy,
            aggregate_report_email=aggregate,
            forensic_report_email=forensic,
            dkim_alignment=dkim_alignment,
            spf_alignment=spf_alignment,
            report_format=report_format,
            percentage=percentage,
            report_interval=report_interval,
        )

    @classmethod
    async def get_dns_dmarc_record(cls, resolver: Any, for_domain: str) -> DMARCRecord:
        """Look up and parse the DMARC TXT record of a domain.

        ``resolver`` is a dnspython asynchronous resolver (or any object with
        a compatible ``resolve`` coroutine); ``None`` uses the system default.
        """
        if resolver is None:
            resolver = dns.asyncresolver.Resolver()
        try:
            answer = await resolver.resolve(f"{for_domain}.", "TXT")
        except (dns.exception.DNSException, OSError) as exc:
            raise DNSError("Failed to get DMARC record") from exc

        texts = (
            b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer
        )
        found = next(
            (t for t in texts if t.startswith("v=dmarc1") or t.startswith("v=DMARC1")),
            None,
        )
        if found is None:
            raise DKIMError("DMARC record not found")
        return cls.from_string(found)


async def get_dmarc(resolver: Any, for_domain: str) -> DMARCRecord:
    """Fetch the DMARC record published for ``for_domain``."""
    return await DMARCRecord.get_dns_dmarc_record(resolver, for_domain)