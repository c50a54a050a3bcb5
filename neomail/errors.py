"""Exception types raised by the package."""


class NeoEmailError(Exception):
    """Base class for every error raised by this package."""


class ParseError(NeoEmailError):
    """Raised when input data cannot be parsed."""


class DNSError(NeoEmailError):
    """Raised when a DNS lookup fails or exceeds its limits."""


class SPFError(NeoEmailError):
    """Raised when a Sender Policy Framework check fails."""


class DKIMError(NeoEmailError):
    """Raised when a DKIM or DMARC record is invalid or missing."""