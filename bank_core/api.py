"""
FastAPI REST API Module

Thin HTTP wrapper over the account core: account creation and lookup,
deposits, withdrawals, transfers, and a health endpoint. Money crosses the
wire as fixed-point strings only.
"""

from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, HTTPException, Depends, status
from pydantic import BaseModel, Field
import uvicorn

from . import __version__
from .accounts import AccountRegistry
from .errors import (
    AccountError, InvalidArgument, InvalidAmount, InsufficientFunds,
    AccountBusy, AccountNotFound, DuplicateAccount
)
from .config import get_config
from .logging_config import setup_logging, get_logger


config = get_config()
logger = get_logger("bank_core.api")


# Pydantic models for API requests
class CreateAccountRequest(BaseModel):
    account_id: str = Field(..., description="Account identifier")
    initial_balance: str = Field("0.00", description="Decimal amount as string")


class AmountRequest(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")


class TransferRequest(BaseModel):
    from_account_id: str
    to_account_id: str
    amount: str = Field(..., description="Decimal amount as string")


def error_status(error: AccountError) -> int:
    """HTTP status code for a core error"""
    if isinstance(error, AccountNotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, (DuplicateAccount, InsufficientFunds)):
        return status.HTTP_409_CONFLICT
    if isinstance(error, AccountBusy):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, (InvalidArgument, InvalidAmount)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(error: AccountError) -> HTTPException:
    """Translate a core error into an HTTPException with structured detail"""
    detail = {"error": type(error).__name__, "message": str(error)}
    if isinstance(error, InsufficientFunds):
        detail["balance"] = error.balance.to_string()
        detail["requested"] = error.requested.to_string()
    return HTTPException(status_code=error_status(error), detail=detail)


# Global account registry instance
registry = AccountRegistry(lock_timeout=config.lock_timeout_seconds)


# Dependency to get account registry
def get_registry() -> AccountRegistry:
    return registry


app = FastAPI(
    title=config.service_name,
    description="Concurrent account core with deadlock-free transfers",
    version=__version__
)


@app.get("/health")
async def health_check():
    """Liveness check, independent of account state"""
    return {
        "status": "UP",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": config.service_name
    }


@app.post("/accounts", status_code=status.HTTP_201_CREATED)
def create_account(
    request: CreateAccountRequest,
    accounts: AccountRegistry = Depends(get_registry)
):
    """Open a new account"""
    try:
        account = accounts.open(request.account_id, request.initial_balance)
    except AccountError as e:
        raise to_http_exception(e)

    return {
        "account_id": account.id,
        "balance": account.get_balance().to_string(),
        "message": "Account created successfully"
    }


@app.get("/accounts/{account_id}")
def get_account(
    account_id: str,
    accounts: AccountRegistry = Depends(get_registry)
):
    """Get account balance"""
    try:
        account = accounts.get(account_id)
        balance = account.get_balance()
    except AccountError as e:
        raise to_http_exception(e)

    return {"account_id": account.id, "balance": balance.to_string()}


@app.post("/accounts/{account_id}/deposit")
def deposit(
    account_id: str,
    request: AmountRequest,
    accounts: AccountRegistry = Depends(get_registry)
):
    """Deposit into an account"""
    try:
        balance = accounts.get(account_id).deposit(request.amount)
    except AccountError as e:
        raise to_http_exception(e)

    return {"account_id": account_id, "balance": balance.to_string()}


@app.post("/accounts/{account_id}/withdraw")
def withdraw(
    account_id: str,
    request: AmountRequest,
    accounts: AccountRegistry = Depends(get_registry)
):
    """Withdraw from an account"""
    try:
        balance = accounts.get(account_id).withdraw(request.amount)
    except AccountError as e:
        raise to_http_exception(e)

    return {"account_id": account_id, "balance": balance.to_string()}


@app.post("/transfers")
def create_transfer(
    request: TransferRequest,
    accounts: AccountRegistry = Depends(get_registry)
):
    """Transfer between two accounts"""
    try:
        result = accounts.transfer(request.from_account_id, request.to_account_id, request.amount)
    except AccountError as e:
        raise to_http_exception(e)

    return {
        "from_account_id": result.source_id,
        "to_account_id": result.destination_id,
        "amount": result.amount.to_string(),
        "from_balance": result.source_balance.to_string(),
        "to_balance": result.destination_balance.to_string(),
        "message": "Transfer completed successfully"
    }


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    setup_logging(level=config.log_level, logger_name="bank_core", log_format=config.log_format)
    logger.info(f"Starting {config.service_name}")
    uvicorn.run(
        "bank_core.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
