"""
FastAPI REST API Module

Exposes transactions, interest rules and monthly statements over HTTP.
Runs on port 8090 by default.
"""

from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import FastAPI, HTTPException, Depends, status
from pydantic import BaseModel, Field
import uvicorn

from .config import get_config
from .errors import AccountNotFound, LedgerError, NoActivity
from .money import format_amount, format_date
from .rates import RateRule
from .service import BankingService


# Pydantic models for API requests
class TransactionRequest(BaseModel):
    date: str = Field(..., description="Transaction date as YYYYMMDD")
    account: str = Field(..., description="Account identifier")
    type: str = Field(..., description="D for deposit, W for withdrawal")
    amount: str = Field(..., description="Decimal amount as string, up to 2 decimals")


class RateRuleRequest(BaseModel):
    date: str = Field(..., description="Effective date as YYYYMMDD")
    rule_id: str
    rate: str = Field(..., description="Annual rate in percent, between 0 and 100")


def rule_to_dict(rule: RateRule) -> Dict[str, str]:
    return {
        "date": format_date(rule.effective_date),
        "rule_id": rule.rule_id,
        "rate": format_amount(rule.annual_rate_percent)
    }


# Global service instance
banking_service = BankingService()


app = FastAPI(
    title="Bank Ledger API",
    description="Account ledgers, interest rules and monthly statements",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


# Dependency to get the banking service
def get_banking_service() -> BankingService:
    return banking_service


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/transactions", status_code=status.HTTP_201_CREATED)
async def record_transaction(
    request: TransactionRequest,
    service: BankingService = Depends(get_banking_service)
) -> Dict[str, Any]:
    """Record a deposit or withdrawal and return the account history"""
    try:
        receipt = service.record_transaction(
            request.date, request.account, request.type, request.amount
        )
    except LedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "transaction_id": receipt.transaction.id,
        "account": receipt.transaction.account_id,
        "transactions": [line.to_dict() for line in receipt.history]
    }


@app.get("/accounts/{account_id}/transactions")
async def get_account_transactions(
    account_id: str,
    service: BankingService = Depends(get_banking_service)
) -> Dict[str, Any]:
    """Full transaction history of an account"""
    try:
        lines = service.account_history(account_id)
    except AccountNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"account": account_id, "transactions": [line.to_dict() for line in lines]}


@app.post("/interest-rules", status_code=status.HTTP_201_CREATED)
async def define_interest_rule(
    request: RateRuleRequest,
    service: BankingService = Depends(get_banking_service)
) -> Dict[str, Any]:
    """Define or replace the interest rule for a date"""
    try:
        rules = service.define_rate(request.date, request.rule_id, request.rate)
    except LedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"rules": [rule_to_dict(rule) for rule in rules]}


@app.get("/interest-rules")
async def list_interest_rules(
    service: BankingService = Depends(get_banking_service)
) -> Dict[str, Any]:
    """All interest rules sorted by date"""
    return {"rules": [rule_to_dict(rule) for rule in service.list_rates()]}


@app.get("/accounts/{account_id}/statements/{year_month}")
async def get_statement(
    account_id: str,
    year_month: str,
    service: BankingService = Depends(get_banking_service)
) -> Dict[str, Any]:
    """Monthly statement including accrued interest"""
    try:
        statement = service.print_statement(account_id, year_month)
    except (AccountNotFound, NoActivity) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LedgerError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return statement.to_dict()


@app.get("/")
async def root():
    """Root endpoint with system information"""
    return {
        "system": "Bank Ledger",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "transactions": "/transactions",
            "interest_rules": "/interest-rules",
            "statements": "/accounts/{account_id}/statements/{yyyymm}"
        }
    }


def run_server(host: str = None, port: int = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "bank_ledger.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
