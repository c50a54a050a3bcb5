"""Email primitives for SMTP services: reply codes and messages, mail and address parsing, SPF and DMARC checks."""

__version__ = "0.1.1"

__all__ = ["errors", "status_code", "message", "mail", "spf", "dmarc"]