"""Replies sent from the SMTP server to the client."""

from __future__ import annotations

from dataclasses import dataclass

from neomail.status_code import StatusCodes


@dataclass(frozen=True)
class Message:
    """A reply line: a status code and its text."""

    status: StatusCodes
    message: str

    @classmethod
    def builder(cls) -> MessageBuilder:
        """Return an empty builder."""
        return MessageBuilder()

    def to_string(self, is_last: bool) -> str:
        """Render as a reply line; non-final lines of a multi-line reply use a dash."""
        separator = " " if is_last else "-"
        return f"{self.status}{separator}{self.message}\r\n"

    def as_bytes(self, is_last: bool) -> bytes:
        """Render as reply bytes."""
        return self.to_string(is_last).encode("utf-8")


class MessageBuilder:
    """Fluent builder for Message."""

    def __init__(self) -> None:
        self._status: StatusCodes | None = None
        self._message: str | None = None

    def status(self, status: StatusCodes) -> MessageBuilder:
        """Set the status code."""
        self._status = status
        return self

    def message(self, message: str) -> MessageBuilder:
        """Set the reply text."""
        self._message = message
        return self

    def build(self) -> Message:
        """Build the Message; both status and text must have been set."""
        if self._status is None:
            raise ValueError("message status is not set")
        if self._message is None:
            raise ValueError("message text is not set")
        return Message(self._status, self._message)