"""Parsed e-mail messages and e-mail addresses."""

from __future__ import annotations

from dataclasses import dataclass, field

from neomail.errors import ParseError

_MAX_USERNAME_LEN = 64
_MAX_DOMAIN_LEN = 253


def _decode(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(what) from exc


@dataclass
class Mail:
    """An e-mail message split into headers and a raw body."""

    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_bytes(cls, data: bytes) -> Mail:
        """Parse raw message bytes; headers end at the first empty line."""
        headers: dict[str, str] = {}
        last_key: str | None = None
        lines = iter(bytes(data).split(b"\n"))
        header_complete = False

        for line in lines:
            if line in (b"", b"\r"):
                header_complete = True
                break

            if line[:1] in (b" ", b"\t") and last_key is not None:
                headers[last_key] += _decode(line, "Invalid header value")
                continue

            key, sep, raw_value = line.partition(b":")
            if not sep:
                raise ParseError("Invalid header value not exist")
            value = " ".join(_decode(raw_value, "Invalid header value").split())
            last_key = _decode(key, "Invalid header")
            headers[last_key] = value

        if not header_complete:
            raise ParseError("Invalid mail format")

        body = b"".join(line + b"\n" for line in lines)
        return cls(headers=headers, body=body)


@dataclass(frozen=True)
class EmailAddress:
    """An e-mail address split into username and domain."""

    username: str
    domain: str

    @classmethod
    def from_string(cls, data: str) -> EmailAddress:
        """Parse 'user@domain', checking the RFC length limits."""
        parts = data.split("@")
        username = parts[0]
        if not username or len(username.encode("utf-8")) > _MAX_USERNAME_LEN:
            raise ParseError("Invalid email address")
        if len(parts) < 2:
            raise ParseError("Invalid email address")
        domain = parts[1]
        if not domain or len(domain.encode("utf-8")) > _MAX_DOMAIN_LEN:
            raise ParseError("Invalid email address")
        return cls(username=username, domain=domain)

    def __str__(self) -> str:
        return f"{self.username}@{self.domain}"