"""Domain errors raised by the repository and the transaction engine.

The HTTP layer maps each kind to a status code in ``app.ERROR_STATUS``.
"""


class ClientBankError(Exception):
    """Base error; ``resource_id`` names the client, account or operation involved."""

    def __init__(self, message: str, resource_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.resource_id = resource_id


class NotFound(ClientBankError):
    """A client id or account name did not match anything."""


class TransactionError(ClientBankError):
    """Insufficient funds or an operation keyword that is not deposit/withdraw."""


class StoreUnavailable(ClientBankError):
    """The record store backend failed."""
