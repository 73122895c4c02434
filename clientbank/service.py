"""Account transaction engine.

Every mutation loads the whole client, changes its accounts in memory and
writes the whole client back through ``ClientRepository.update``. Nothing
guards the load/write pair, so concurrent writers to one client race and
the last write wins.
"""
from decimal import Decimal
import logging

from .domain import Account, Client, default_account
from .errors import NotFound, TransactionError
from .repo import ClientRepository

log = logging.getLogger("service")

DEPOSIT = "deposit"
WITHDRAW = "withdraw"


class ClientService:
    def __init__(self, repo: ClientRepository):
        self.repo = repo

    # ---- clients ----
    async def add_client(self, client: Client) -> Client:
        """Create a client; one empty "First Checking" account is seeded if none were given."""
        if not client.accounts:
            client.accounts = [default_account()]
        return await self.repo.create(client)

    async def retrieve_all_clients(self) -> list[Client]:
        return await self.repo.get_all()

    async def retrieve_client_by_id(self, client_id: str) -> Client:
        return await self.repo.get_by_id(client_id)

    async def update_client(self, client: Client) -> Client:
        return await self.repo.update(client)

    async def delete_client(self, client_id: str) -> Client:
        return await self.repo.remove(client_id)

    # ---- accounts ----
    async def add_account_to_client(self, client_id: str, account: Account) -> Client:
        # duplicate names are accepted
        client = await self.repo.get_by_id(client_id)
        client.accounts.append(account)
        log.info("add_account client=%s name=%s", client_id, account.account_name)
        return await self.repo.update(client)

    async def retrieve_client_accounts(self, client_id: str) -> list[Account]:
        client = await self.repo.get_by_id(client_id)
        return client.accounts

    async def retrieve_client_account(self, client_id: str, account_name: str) -> Account:
        """First account named ``account_name``."""
        for account in await self.retrieve_client_accounts(client_id):
            if account.account_name == account_name:
                return account
        raise NotFound(f"Account {account_name} could not be found for client {client_id}", account_name)

    async def retrieve_client_accounts_over(self, client_id: str, threshold: Decimal) -> list[Account]:
        """Accounts with ``balance >= threshold``."""
        accounts = await self.retrieve_client_accounts(client_id)
        return [a for a in accounts if a.balance >= threshold]

    async def retrieve_client_accounts_under(self, client_id: str, threshold: Decimal) -> list[Account]:
        """Accounts with ``balance <= threshold``."""
        accounts = await self.retrieve_client_accounts(client_id)
        return [a for a in accounts if a.balance <= threshold]

    async def update_client_account_balance(
        self, client_id: str, account_name: str, operation: str, amount: Decimal
    ) -> Client:
        """Apply ``operation`` to every account named ``account_name`` and persist the client.

        ``withdraw`` fails with TransactionError when ``amount`` exceeds the
        balance, ``deposit`` always succeeds, any other keyword fails with
        TransactionError. NotFound is raised only after the whole list has been
        scanned. An error raised mid-scan leaves earlier matches changed in the
        loaded copy, but the store is not written.
        """
        client = await self.repo.get_by_id(client_id)
        found = False
        for account in client.accounts:
            if account.account_name != account_name:
                continue
            found = True
            if operation == WITHDRAW:
                if amount > account.balance:
                    log.info("withdraw insufficient client=%s name=%s amount=%s balance=%s",
                             client_id, account_name, amount, account.balance)
                    raise TransactionError(
                        f"Insufficient funds: account balance {account.balance}, withdrawal amount {amount}",
                        f"withdraw {amount}",
                    )
                account.balance -= amount
            elif operation == DEPOSIT:
                account.balance += amount
            else:
                log.info("unknown operation %r client=%s name=%s", operation, client_id, account_name)
                raise TransactionError("operation not defined", operation)
        if not found:
            raise NotFound(f"Account {account_name} could not be found for client {client_id}", account_name)
        log.info("%s client=%s name=%s amount=%s", operation, client_id, account_name, amount)
        return await self.repo.update(client)

    async def delete_client_account(self, client_id: str, account_name: str) -> Account:
        """Remove every account named ``account_name``; returns the last one removed."""
        client = await self.repo.get_by_id(client_id)
        removed = None
        kept = []
        for account in client.accounts:
            if account.account_name == account_name:
                removed = account
            else:
                kept.append(account)
        if removed is None:
            raise NotFound(f"Account {account_name} could not be found for client {client_id}", account_name)
        client.accounts = kept
        await self.repo.update(client)
        log.info("delete_account client=%s name=%s", client_id, account_name)
        return removed

    async def delete_all_client_accounts(self, client_id: str) -> list[Account]:
        client = await self.repo.get_by_id(client_id)
        removed = client.accounts
        client.accounts = []
        await self.repo.update(client)
        log.info("delete_all_accounts client=%s removed=%d", client_id, len(removed))
        return removed
