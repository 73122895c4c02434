from decimal import Decimal
import logging
import math
from typing import Union
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from .domain import Account, Client, ClientID, Money
from .service import ClientService

log = logging.getLogger("api")
router = APIRouter()

# DELETE /clients/{id}/accounts clears every account instead of deleting one named "accounts"
ALL_ACCOUNTS = "accounts"


def get_service(request: Request) -> ClientService:
    return request.app.state.service

def threshold(value: float, name: str) -> Decimal:
    if not math.isfinite(value):
        raise HTTPException(status_code=422, detail=f"{name} must be a finite number")
    return Decimal(str(value))


@router.get("/")
def root():
    return {"status": "ok", "message": "Welcome to the Client Accounts API", "docs": "/docs"}


@router.get("/health")
def health():
    return {"status": "ok"}


# ---- clients ----
@router.get("/clients", response_model=list[Client])
async def get_clients(service: ClientService = Depends(get_service)):
    clients = await service.retrieve_all_clients()
    log.info("Retrieved all clients (%d)", len(clients))
    return clients

@router.post("/clients", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(body: Client, service: ClientService = Depends(get_service)):
    created = await service.add_client(body)
    log.info("Client created id=%s", created.id)
    return created

@router.get("/clients/{client_id}", response_model=Client)
async def get_client(client_id: str = ClientID, service: ClientService = Depends(get_service)):
    return await service.retrieve_client_by_id(client_id)

@router.put("/clients/{client_id}", response_model=Client)
async def update_client(body: Client, client_id: str = ClientID, service: ClientService = Depends(get_service)):
    # the path names the document; an id in the body is ignored
    body.id = client_id
    updated = await service.update_client(body)
    log.info("Client updated id=%s", updated.id)
    return updated

@router.delete("/clients/{client_id}", response_model=Client)
async def delete_client(client_id: str = ClientID, service: ClientService = Depends(get_service)):
    deleted = await service.delete_client(client_id)
    log.info("Client deleted id=%s", deleted.id)
    return deleted


# ---- accounts ----
@router.post("/clients/{client_id}/accounts", response_model=Client, status_code=status.HTTP_201_CREATED)
async def add_account(body: Account, client_id: str = ClientID, service: ClientService = Depends(get_service)):
    return await service.add_account_to_client(client_id, body)

@router.get("/clients/{client_id}/accounts", response_model=list[Account])
async def get_accounts(
    client_id: str = ClientID,
    amount_less_than: float | None = Query(None, alias="amountLessThan"),
    amount_greater_than: float | None = Query(None, alias="amountGreaterThan"),
    service: ClientService = Depends(get_service),
):
    if amount_less_than is None and amount_greater_than is None:
        return await service.retrieve_client_accounts(client_id)
    if amount_less_than is None:
        return await service.retrieve_client_accounts_over(client_id, threshold(amount_greater_than, "amountGreaterThan"))
    if amount_greater_than is None:
        return await service.retrieve_client_accounts_under(client_id, threshold(amount_less_than, "amountLessThan"))
    upper = threshold(amount_less_than, "amountLessThan")
    accounts = await service.retrieve_client_accounts_over(client_id, threshold(amount_greater_than, "amountGreaterThan"))
    return [a for a in accounts if a.balance <= upper]

@router.patch("/clients/{client_id}/{account_name}/{account_action}", response_model=Client)
async def update_balance(
    body: Money,
    account_name: str,
    account_action: str,
    client_id: str = ClientID,
    service: ClientService = Depends(get_service),
):
    return await service.update_client_account_balance(client_id, account_name, account_action, body.as_decimal())

@router.get("/clients/{client_id}/{account_name}", response_model=Account)
async def get_account(account_name: str, client_id: str = ClientID, service: ClientService = Depends(get_service)):
    return await service.retrieve_client_account(client_id, account_name)

@router.delete("/clients/{client_id}/{account_name}", response_model=Union[Account, list[Account]])
async def delete_account(account_name: str, client_id: str = ClientID, service: ClientService = Depends(get_service)):
    if account_name == ALL_ACCOUNTS:
        return await service.delete_all_client_accounts(client_id)
    return await service.delete_client_account(client_id, account_name)
