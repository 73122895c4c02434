import asyncio
import logging
import uuid

from .db import RecordStore
from .domain import Client, from_document, to_document
from .errors import NotFound

log = logging.getLogger("repo")


class ClientRepository:
    """Async CRUD-by-id over a record store; store calls run on a worker thread."""

    def __init__(self, store: RecordStore):
        self._store = store

    async def create(self, client: Client) -> Client:
        client.id = str(uuid.uuid4())
        doc = await asyncio.to_thread(self._store.create, to_document(client))
        log.info("create_client id=%s accounts=%d", client.id, len(client.accounts))
        return from_document(doc)

    async def get_all(self) -> list[Client]:
        docs = await asyncio.to_thread(self._store.read_all)
        return [from_document(d) for d in docs]

    async def get_by_id(self, client_id: str) -> Client:
        doc = await asyncio.to_thread(self._store.read_by_id, client_id)
        if doc is None:
            log.info("get_client: client %s not found", client_id)
            raise NotFound(f"The resource with id {client_id} could not be found.", client_id)
        return from_document(doc)

    async def update(self, client: Client) -> Client:
        # upsert: an unknown id creates the document
        doc = await asyncio.to_thread(self._store.upsert, to_document(client))
        log.info("update_client id=%s accounts=%d", client.id, len(client.accounts))
        return from_document(doc)

    async def remove(self, client_id: str) -> Client:
        client = await self.get_by_id(client_id)
        if not await asyncio.to_thread(self._store.delete_by_id, client_id):
            raise NotFound(f"The resource with id {client_id} could not be found.", client_id)
        log.info("remove_client id=%s", client_id)
        return client
