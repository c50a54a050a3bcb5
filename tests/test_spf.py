import dns.resolver
import pytest

from neomail.errors import DNSError, SPFError
from neomail.spf import SPFQualifier, SPFRecord, sender_policy_framework


class _Txt:
    def __init__(self, text):
        self.strings = (text.encode("utf-8"),)


class FakeResolver:
    def __init__(self, txt=None, a=None, aaaa=None):
        self.txt = txt or {}
        self.addresses = {"A": a or {}, "AAAA": aaaa or {}}
        self.queries = []

    async def resolve(self, name, rdtype):
        self.queries.append((name, rdtype))
        if rdtype == "TXT":
            if name not in self.txt:
                raise dns.resolver.NXDOMAIN()
            return [_Txt(t) for t in self.txt[name]]
        table = self.addresses[rdtype]
        if name not in table:
            raise dns.resolver.NXDOMAIN()
        return list(table[name])


EXAMPLE = "v=spf1 ip4:192.0.2.0 ip4:192.0.2.1 include:examplesender.email -all"


def test_from_string_example_record():
    record = SPFRecord.from_string(EXAMPLE)
    assert record.version == "spf1"
    assert record.ipv4 == ["192.0.2.0", "192.0.2.1"]
    assert record.ipv6 == []
    assert record.root_include == ["examplesender.email"]
    assert record.include == []
    assert record.qualifier is SPFQualifier.FAIL
    assert record.redirect is None
    assert record.exists is None


@pytest.mark.parametrize(
    "term, qualifier",
    [
        ("-all", SPFQualifier.FAIL),
        ("~all", SPFQualifier.SOFTFAIL),
        ("+all", SPFQualifier.PASS),
        ("mx", SPFQualifier.NEUTRAL),
    ],
)
def test_from_string_qualifiers(term, qualifier):
    assert SPFRecord.from_string(f"v=spf1 {term}").qualifier is qualifier


def test_from_string_lowercases_terms():
    record = SPFRecord.from_string("v=spf1 IP6:2001:DB8::/32 Include:Example.COM ~all")
    assert record.ipv6 == ["2001:db8::/32"]
    assert record.root_include == ["example.com"]


def test_from_string_redirect_and_exists():
    record = SPFRecord.from_string(
        "v=spf1 redirect=spf.example.com exists:check.example.com"
    )
    assert record.redirect == "spf.example.com"
    assert record.exists == "check.example.com"


@pytest.mark.parametrize("text", ["v=spf1", "", "   ", "v=spf2 -all", "spf1 -all"])
def test_from_string_rejects_invalid(text):
    with pytest.raises(SPFError):
        SPFRecord.from_string(text)


@pytest.mark.asyncio
async def test_get_dns_record_queries_fully_qualified_name():
    resolver = FakeResolver(txt={"example.com.": ["other text", EXAMPLE]})
    record = await SPFRecord.get_dns_spf_record(5, 10, resolver, "example.com")
    assert record.ipv4 == ["192.0.2.0", "192.0.2.1"]
    assert resolver.queries == [("example.com.", "TXT")]


@pytest.mark.asyncio
async def test_get_dns_record_follows_redirect():
    resolver = FakeResolver(
        txt={
            "example.com.": ["v=spf1 redirect=spf.example.com"],
            "spf.example.com.": ["v=spf1 ip4:198.51.100.0/24 -all"],
        }
    )
    record = await SPFRecord.get_dns_spf_record(5, 10, resolver, "example.com")
    assert record.ipv4 == ["198.51.100.0/24"]
    assert record.redirect is None


@pytest.mark.asyncio
async def test_get_dns_record_redirect_loop_exhausts():
    resolver = FakeResolver(txt={"example.com.": ["v=spf1 redirect=example.com"]})
    with pytest.raises(DNSError, match="Max redirects reached"):
        await SPFRecord.get_dns_spf_record(3, 10, resolver, "example.com")


@pytest.mark.asyncio
async def test_get_dns_record_lookup_limit():
    resolver = FakeResolver(txt={"example.com.": ["v=spf1 redirect=example.com"]})
    with pytest.raises(DNSError, match="Max lookups reached"):
        await SPFRecord.get_dns_spf_record(10, 2, resolver, "example.com")


@pytest.mark.asyncio
async def test_get_dns_record_zero_redirects():
    resolver = FakeResolver(txt={"example.com.": [EXAMPLE]})
    with pytest.raises(DNSError):
        await SPFRecord.get_dns_spf_record(0, 10, resolver, "example.com")
    assert resolver.queries == []


@pytest.mark.asyncio
async def test_get_dns_record_missing_and_failed():
    resolver = FakeResolver(txt={"example.com.": ["not spf"]})
    with pytest.raises(SPFError, match="SPF record not found"):
        await SPFRecord.get_dns_spf_record(5, 10, resolver, "example.com")
    with pytest.raises(DNSError, match="Failed to get SPF record"):
        await SPFRecord.get_dns_spf_record(5, 10, resolver, "missing.example.com")


@pytest.mark.asyncio
async def test_spf_cidr_match_passes():
    resolver = FakeResolver(txt={"example.com.": ["v=spf1 ip4:130.211.0.0/22 -all"]})
    ok, record, matched = await sender_policy_framework(
        resolver, "130.211.0.155", "example.com", 5, 5
    )
    assert ok is True
    assert matched == "130.211.0.0/22"
    assert record.qualifier is SPFQualifier.FAIL


@pytest.mark.asyncio
async def test_spf_fail_rejects_unlisted_ip():
    resolver = FakeResolver(txt={"example.com.": ["v=spf1 ip4:130.211.0.0/22 -all"]})
    with pytest.raises(SPFError, match="IP not allowed"):
        await sender_policy_framework(resolver, "130.211.4.1", "example.com", 5, 5)


@pytest.mark.asyncio
async def test_spf_softfail_and_neutral_and_pass():
    resolver = FakeResolver(
        txt={
            "soft.example.com.": ["v=spf1 ip4:192.0.2.1 ~all"],
            "neutral.example.com.": ["v=spf1 ip4:192.0.2.1"],
            "pass.example.com.": ["v=spf1 ip4:192.0.2.1 +all"],
        }
    )
    soft_hit = await sender_policy_framework(resolver, "192.0.2.1", "soft.example.com", 5, 5)
    soft_miss = await sender_policy_framework(resolver, "192.0.2.2", "soft.example.com", 5, 5)
    neutral = await sender_policy_framework(resolver, "192.0.2.1", "neutral.example.com", 5, 5)
    passing = await sender_policy_framework(resolver, "192.0.2.2", "pass.example.com", 5, 5)
    assert (soft_hit[0], soft_hit[2]) == (True, "192.0.2.1")
    assert (soft_miss[0], soft_miss[2]) == (False, None)
    assert (neutral[0], neutral[2]) == (False, "192.0.2.1")
    assert (passing[0], passing[2]) == (True, None)


@pytest.mark.asyncio
async def test_spf_includes_are_merged_up_to_limit():
    resolver = FakeResolver(
        txt={
            "example.com.": ["v=spf1 include:a.example.com include:b.example.com -all"],
            "a.example.com.": ["v=spf1 ip4:198.51.100.0/24 -all"],
            "b.example.com.": ["v=spf1 ip4:203.0.113.0/24 -all"],
        }
    )
    ok, record, matched = await sender_policy_framework(
        resolver, "203.0.113.7", "example.com", 5, 5
    )
    assert ok is True
    assert matched == "203.0.113.0/24"
    assert len(record.include) == 2

    with pytest.raises(SPFError):
        await sender_policy_framework(resolver, "203.0.113.7", "example.com", 5, 1)


@pytest.mark.asyncio
async def test_spf_missing_include_fails():
    resolver = FakeResolver(txt={"example.com.": ["v=spf1 include:gone.example.com -all"]})
    with pytest.raises(SPFError, match="Failed to get included SPF record"):
        await sender_policy_framework(resolver, "192.0.2.1", "example.com", 5, 5)


@pytest.mark.asyncio
async def test_spf_exists_mechanism():
    txt = {"example.com.": ["v=spf1 exists:check.example.com +all"]}
    present = FakeResolver(txt=txt, a={"check.example.com.": ["192.0.2.10"]})
    ok, _, _ = await sender_policy_framework(present, "192.0.2.1", "example.com", 5, 5)
    assert ok is True
    assert ("check.example.com.", "A") in present.queries

    absent = FakeResolver(txt=txt, a={"check.example.com.": []})
    with pytest.raises(SPFError, match="IP not allowed"):
        await sender_policy_framework(absent, "192.0.2.1", "example.com", 5, 5)

    failing = FakeResolver(txt=txt)
    with pytest.raises(DNSError):
        await sender_policy_framework(failing, "192.0.2.1", "example.com", 5, 5)


@pytest.mark.asyncio
async def test_spf_ipv6_match():
    resolver = FakeResolver(txt={"example.com.": ["v=spf1 ip6:2001:db8::/32 -all"]})
    ok, _, matched = await sender_policy_framework(
        resolver, "2001:db8:1234::1", "example.com", 5, 5
    )
    assert ok is True
    assert matched == "2001:db8::/32"
    with pytest.raises(SPFError):
        await sender_policy_framework(resolver, "2001:db9::1", "example.com", 5, 5)


@pytest.mark.asyncio
async def test_spf_skips_malformed_patterns():
    resolver = FakeResolver(
        txt={"example.com.": ["v=spf1 ip4:192.0.2.1/40 ip4:1/2/3 ip4:192.0.2.1/x ~all"]}
    )
    ok, _, matched = await sender_policy_framework(resolver, "192.0.2.1", "example.com", 5, 5)
    assert (ok, matched) == (False, None)


@pytest.mark.asyncio
async def test_spf_lookup_failure_and_bad_ip():
    resolver = FakeResolver()
    with pytest.raises(SPFError, match="Failed to get SPF record"):
        await sender_policy_framework(resolver, "192.0.2.1", "example.com", 5, 5)
    with pytest.raises(SPFError, match="Failed to get IP address"):
        await sender_policy_framework(resolver, "not-an-ip", "example.com", 5, 5)