"""
Exception hierarchy for the configuration poller.

SessionError, FetchError and ParseError describe failures talking to the
configuration service or deriving the parsed value. They are absorbed into
the cache's error fields once the poller is running. ContractError signals
caller misuse and is always raised synchronously.
"""


class PollerError(Exception):
    """Base class for all poller errors."""


class SessionError(PollerError):
    """Starting a configuration session failed."""


class FetchError(PollerError):
    """Fetching the latest configuration failed."""


class ParseError(PollerError):
    """The configured parser could not derive an object from the raw value."""


class ContractError(PollerError):
    """The poller was used in a way its lifecycle does not allow."""
