"""Error taxonomy shared by the keeper and JIT agents."""

from __future__ import annotations

from typing import Any


class PegGuardError(Exception):
    """Base exception for agent errors."""

    pass


class ConfigurationError(PegGuardError):
    """Raised at startup when credentials, addresses or jobs are missing."""

    pass


class LedgerCallFailure(PegGuardError):
    """Raised when a ledger read or write fails.

    Covers transport errors, reverted calls and mined transactions whose
    receipt reports failure.

    :ivar receipt: Receipt of the failed transaction, if one was mined.
    """

    def __init__(self, message: str, receipt: Any = None):
        """Initialize the ledger failure.

        :param message: Description of the failed call.
        :param receipt: Optional receipt of a mined but failed transaction.
        """
        self.receipt = receipt
        super().__init__(message)


class EndpointUnavailable(PegGuardError):
    """Raised when a single oracle price service endpoint fails.

    :ivar endpoint: Endpoint URL that failed.
    """

    def __init__(self, endpoint: str, message: str):
        """Initialize the endpoint error.

        :param endpoint: Endpoint URL.
        :param message: Failure description.
        """
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}")


class AllEndpointsUnavailable(PegGuardError):
    """Raised when every configured oracle endpoint failed within one cycle.

    :ivar last_error: Error raised by the last endpoint tried.
    """

    def __init__(self, last_error: BaseException | None):
        """Initialize the failover error.

        :param last_error: Error of the last endpoint, or None if none was tried.
        """
        self.last_error = last_error
        detail = str(last_error) if last_error else "no endpoints configured"
        super().__init__(f"All endpoints failed. Last error: {detail}")


class EventDecodeFailure(PegGuardError):
    """Raised inside the event interpreter for a log it cannot decode."""

    pass
