"""
Statement Generation Module

Builds monthly account statements: the month's transactions with a running
balance, followed by a synthetic interest line on the last day of the month
when interest accrued.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from typing import Any, Dict, List
from enum import Enum

from .errors import AccountNotFound, NoActivity
from .interest import InterestCalculator
from .ledger import Ledger, Transaction
from .logging_config import get_logger, log_action
from .money import ZERO, format_amount, format_date, month_bounds, validate_year_month


class LineType(Enum):
    """Statement line types"""
    DEPOSIT = "D"
    WITHDRAWAL = "W"
    INTEREST = "I"


@dataclass(frozen=True)
class StatementLine:
    """One row of a statement; amounts keep full precision until rendered"""
    date: date
    transaction_id: str          # Empty for the interest line
    line_type: LineType
    amount: Decimal
    running_balance: Decimal

    @classmethod
    def from_transaction(cls, txn: Transaction, running_balance: Decimal) -> 'StatementLine':
        return cls(
            date=txn.date,
            transaction_id=txn.id,
            line_type=LineType(txn.transaction_type.value),
            amount=txn.amount,
            running_balance=running_balance
        )

    def to_dict(self) -> Dict[str, str]:
        """Display-ready representation"""
        return {
            'date': format_date(self.date),
            'transaction_id': self.transaction_id,
            'type': self.line_type.value,
            'amount': format_amount(self.amount),
            'balance': format_amount(self.running_balance)
        }


@dataclass
class Statement:
    """Monthly statement of one account"""
    account_id: str
    year: int
    month: int
    opening_balance: Decimal
    lines: List[StatementLine] = field(default_factory=list)
    interest: Decimal = ZERO

    @property
    def closing_balance(self) -> Decimal:
        if self.lines:
            return self.lines[-1].running_balance
        return self.opening_balance

    @property
    def period(self) -> str:
        """Statement month as YYYYMM"""
        return f"{self.year:04d}{self.month:02d}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'account_id': self.account_id,
            'period': self.period,
            'opening_balance': format_amount(self.opening_balance),
            'interest': format_amount(self.interest),
            'closing_balance': format_amount(self.closing_balance),
            'lines': [line.to_dict() for line in self.lines]
        }


class StatementBuilder:
    """Merges ledger transactions and computed interest into statements"""

    def __init__(self, ledger: Ledger, interest_calculator: InterestCalculator):
        self.ledger = ledger
        self.interest_calculator = interest_calculator
        self.logger = get_logger("bank_ledger.statements")

    def build(self, account_id: str, year: int, month: int) -> Statement:
        """
        Build the statement of an account for a calendar month

        Args:
            account_id: Account to report on
            year: Calendar year
            month: Calendar month (1-12)

        Returns:
            Statement with one line per transaction plus an interest line
            when interest is positive

        Raises:
            AccountNotFound: If the account has never transacted
            NoActivity: If the account has no transactions in the month
            InvalidDate: If (year, month) is not a calendar month
        """
        validate_year_month(year, month)

        if not self.ledger.exists(account_id):
            raise AccountNotFound(f"Account {account_id} not found")

        transactions = self.ledger.transactions_in_month(account_id, year, month)
        if not transactions:
            raise NoActivity(
                f"No transactions found for account {account_id} in {year:04d}{month:02d}"
            )

        first_day, last_day = month_bounds(year, month)
        opening_balance = self.ledger.balance_before(account_id, first_day)

        statement = Statement(
            account_id=account_id,
            year=year,
            month=month,
            opening_balance=opening_balance
        )

        balance = opening_balance
        for txn in transactions:
            balance = txn.apply_to(balance)
            statement.lines.append(StatementLine.from_transaction(txn, balance))

        interest = self.interest_calculator.calculate_monthly_interest(account_id, year, month)
        if interest > ZERO:
            balance += interest
            statement.interest = interest
            statement.lines.append(StatementLine(
                date=last_day,
                transaction_id="",
                line_type=LineType.INTEREST,
                amount=interest,
                running_balance=balance
            ))

        log_action(
            self.logger, "info", f"Statement generated: {account_id} {statement.period}",
            action="build_statement", resource=f"account:{account_id}",
            extra={
                "lines": len(statement.lines),
                "interest": format_amount(statement.interest),
                "closing_balance": format_amount(statement.closing_balance)
            }
        )

        return statement

    def history(self, account_id: str) -> List[StatementLine]:
        """
        Every transaction of the account with its running balance

        Raises:
            AccountNotFound: If the account has never transacted
        """
        if not self.ledger.exists(account_id):
            raise AccountNotFound(f"Account {account_id} not found")

        lines = []
        balance = ZERO
        for txn in self.ledger.history(account_id):
            balance = txn.apply_to(balance)
            lines.append(StatementLine.from_transaction(txn, balance))
        return lines
