# neomail

Building blocks for SMTP email services in Python:

- `neomail.status_code.StatusCodes`: SMTP reply codes as an `IntEnum`. `str(StatusCodes.OK)` is `"250"`.
- `neomail.message.Message`: a reply line to send to a client. You can create it directly or through `Message.builder()`.
- `neomail.mail.Mail`: parses a raw message into a header dictionary and a body.
- `neomail.mail.EmailAddress`: parses and formats `user@domain` addresses.
- `neomail.spf`: fetches SPF records over DNS and checks whether a sending IP is allowed.
- `neomail.dmarc`: parses DMARC records and fetches them over DNS.

Failures raise exceptions from `neomail.errors`. All of them derive from `NeoEmailError`:

- `ParseError`
- `DNSError`
- `SPFError`
- `DKIMError`. This one is also used for invalid or missing DMARC records.

## Installation

```
pip install neomail
```

To install the test tools as well:

```
pip install "neomail[test]"
```

## Replies

```python
from neomail.message import Message
from neomail.status_code import StatusCodes

reply = Message.builder().status(StatusCodes.OK).message("Email received").build()
reply.to_string(True)    # "250 Email received\r\n"
reply.to_string(False)   # "250-Email received\r\n"  (continuation line)
reply.as_bytes(True)     # b"250 Email received\r\n"

Message(StatusCodes.SMTPServiceReady, "ready").to_string(True)  # "220 ready\r\n"
```

`MessageBuilder.build()` raises `ValueError` if the status or the text has not been set.

## Parsing mail

```python
from neomail.mail import Mail, EmailAddress

mail = Mail.from_bytes(b"From: Jean <jean@example.com>\nSubject: Hello\n\nHello, World!")
mail.headers["Subject"]  # "Hello"
mail.body                # b"Hello, World!\n"

address = EmailAddress.from_string("jean@example.com")
address.username, address.domain   # ("jean", "example.com")
str(address)                       # "jean@example.com"
```

The header section ends at the first empty line. A line that is only `\r` also counts as empty.

Header handling works as follows:

- Runs of whitespace inside a header value are collapsed to single spaces.
- Lines that begin with a space or a tab are appended to the previous header.
- A line without a colon raises `ParseError`.
- A message with no blank line between the headers and the body raises `ParseError`.

`EmailAddress.from_string` checks the lengths of both parts. The username must be 1 to 64 bytes and the domain must be 1 to 253 bytes. Otherwise it raises `ParseError`.

## SPF

```python
import asyncio
import dns.asyncresolver
from neomail.spf import SPFRecord, SPFQualifier, sender_policy_framework

record = SPFRecord.from_string("v=spf1 ip4:192.0.2.0/24 include:example.com -all")
record.ipv4          # ["192.0.2.0/24"]
record.root_include  # ["example.com"]
record.qualifier     # SPFQualifier.FAIL

async def check():
    resolver = dns.asyncresolver.Resolver()
    allowed, record, matched = await sender_policy_framework(
        resolver, "192.0.2.10", "example.com", 5, 10
    )
    return allowed, matched

asyncio.run(check())
```

`SPFRecord.get_dns_spf_record(remaining_redirects, remaining_lookups, resolver, domain)` looks up the TXT record of a domain. It follows `redirect=` modifiers and raises `DNSError` when either limit runs out.

`sender_policy_framework` works through these steps:

1. It fetches the record of the domain.
2. If the record has an `exists:` mechanism, it checks for that domain. The check uses an A lookup for IPv4 senders and an AAAA lookup for IPv6 senders.
3. It fetches up to `max_include` of the `include:` records.
4. It matches the sender against every `ip4:`/`ip6:` pattern of the record and of the included records. A pattern without a prefix length matches a single address.

Passing `None` as the resolver uses a default dnspython resolver.

The qualifier in the record decides the result:

- `-all`: returns `True` when the IP matches and raises `SPFError` when it does not.
- `~all`: returns whether the IP matched.
- `+all`: always returns `True`.
- No `all` term (neutral): always returns `False`.

## DMARC

```python
from neomail.dmarc import DMARCRecord, DMARCPolicy, get_dmarc

record = DMARCRecord.from_string("v=DMARC1; p=reject; rua=mailto:reports@example.com; pct=100")
record.policy                  # DMARCPolicy.REJECT
str(record.aggregate_report_email)  # "reports@example.com"
record.percentage              # 100
```

The parser reads these tags:

- `p`
- `rua` and `ruf` (as `mailto:` addresses)
- `adkim` and `aspf` (`r` or `s`)
- `rf`
- `pct`
- `ri`

Invalid values raise `DKIMError`.

`await get_dmarc(resolver, "_dmarc.example.com")` looks the record up in DNS and parses it. If the lookup fails, it raises `DNSError`. If no DMARC record is found, it raises `DKIMError`.

## What this package does not do

It contains no SMTP server and no connection handling. You have to write the code that accepts clients, reads commands and sends the `Message` replies yourself. DKIM signatures are not verified.