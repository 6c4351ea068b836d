"""Exception types raised by the fact loaders and the pipeline."""

from __future__ import annotations


class BankFactsError(Exception):
    """Base class for all errors raised by sec_bankfacts."""


class ConfigurationError(BankFactsError):
    """A required setting (e.g. SEC_USER_AGENT) is missing. Fatal."""


class FactsFetchError(BankFactsError):
    """Network, timeout or non-success HTTP status while fetching facts."""

    def __init__(self, cik: str, message: str):
        super().__init__(f"CIK {cik}: {message}")
        self.cik = cik


class FactsParseError(BankFactsError):
    """A companyfacts document could not be decoded or has the wrong shape."""

    def __init__(self, cik: str, message: str):
        super().__init__(f"CIK {cik}: {message}")
        self.cik = cik


class BulkArchiveError(BankFactsError):
    """The local companyfacts archive is missing or could not be extracted."""
