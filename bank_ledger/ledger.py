"""
Transaction Ledger Engine

Keeps the ordered transaction history of every account and derives balances
from it. Balances are never stored separately: they are always the fold of
the account's transactions in chronological order, which keeps them correct
by construction.
"""

from decimal import Decimal
from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from enum import Enum

from .errors import (
    InvalidAccount, InvalidDate, InvalidTransactionType,
    UnopenedAccountWithdrawal, InsufficientFunds
)
from .logging_config import get_logger, log_action
from .money import ZERO, validate_amount, format_amount, format_date, month_bounds


class TransactionType(Enum):
    """Types of ledger transactions, keyed by their one-letter code"""
    DEPOSIT = "D"      # Increases the balance
    WITHDRAWAL = "W"   # Decreases the balance

    @classmethod
    def from_code(cls, code: str) -> 'TransactionType':
        """Resolve a case-insensitive one-letter code (D or W)"""
        if isinstance(code, str):
            for member in cls:
                if member.value == code.strip().upper():
                    return member
        raise InvalidTransactionType(
            f"Invalid transaction type '{code}'. Use D for deposit or W for withdrawal."
        )


@dataclass(frozen=True)
class Transaction:
    """
    A single posted deposit or withdrawal
    Immutable once created so ids and dates can never drift
    """
    id: str
    account_id: str
    date: date
    transaction_type: TransactionType
    amount: Decimal

    def apply_to(self, balance: Decimal) -> Decimal:
        """Return the balance after this transaction"""
        if self.transaction_type == TransactionType.DEPOSIT:
            return balance + self.amount
        return balance - self.amount


@dataclass
class Account:
    """Account created implicitly by its first deposit"""
    id: str
    created_date: date
    transactions: List[Transaction] = field(default_factory=list)

    def chronological(self) -> List[Transaction]:
        """Transactions sorted by date; same-day transactions keep recording order"""
        return sorted(self.transactions, key=lambda txn: txn.date)

    def fold(self, transactions: Optional[List[Transaction]] = None) -> Decimal:
        """Balance obtained by applying transactions in chronological order"""
        if transactions is None:
            transactions = self.chronological()
        balance = ZERO
        for txn in transactions:
            balance = txn.apply_to(balance)
        return balance


class TransactionIdAllocator:
    """
    Hands out "<YYYYMMDD>-<seq>" ids from a running counter per calendar date.

    The counter is shared by all accounts: two accounts transacting on the
    same date draw from one sequence.
    """

    def __init__(self):
        self._counters: Dict[date, int] = {}

    def allocate(self, day: date) -> str:
        """Allocate the next id for this date"""
        sequence = self._counters.get(day, 0) + 1
        self._counters[day] = sequence
        return self._format(day, sequence)

    def reset(self) -> None:
        """Forget every counter"""
        self._counters.clear()

    @staticmethod
    def _format(day: date, sequence: int) -> str:
        return f"{format_date(day)}-{sequence:02d}"


class Ledger:
    """
    Per-account transaction ledger

    Validates every transaction against the account's balance before it is
    appended, so no chronological prefix of an account can go negative.
    """

    def __init__(self, id_allocator: Optional[TransactionIdAllocator] = None):
        self._accounts: Dict[str, Account] = {}
        self.id_allocator = id_allocator or TransactionIdAllocator()
        self.logger = get_logger("bank_ledger.ledger")

    def record(
        self,
        account_id: str,
        transaction_date: date,
        transaction_type: Union[TransactionType, str],
        amount: Decimal
    ) -> Transaction:
        """
        Record a deposit or withdrawal

        Args:
            account_id: Account identifier; the account is opened by its first deposit
            transaction_date: Calendar date of the transaction
            transaction_type: TransactionType or its one-letter code
            amount: Positive Decimal with at most 2 decimal places

        Returns:
            The recorded Transaction with its allocated id

        Raises:
            InvalidAccount: If account_id is empty
            InvalidDate: If transaction_date is not a date
            InvalidAmount: If amount is not positive or too precise
            UnopenedAccountWithdrawal: If the account has no history and this is a withdrawal
            InsufficientFunds: If the withdrawal exceeds the current balance
        """
        if not isinstance(account_id, str) or not account_id.strip():
            raise InvalidAccount("Account must be a non-empty string")

        if not isinstance(transaction_date, date) or isinstance(transaction_date, datetime):
            raise InvalidDate(f"Transaction date must be a calendar date, got {transaction_date!r}")

        if not isinstance(transaction_type, TransactionType):
            transaction_type = TransactionType.from_code(transaction_type)

        amount = validate_amount(amount)
        account = self._accounts.get(account_id)

        if transaction_type == TransactionType.WITHDRAWAL:
            if account is None:
                self._log_rejection(account_id, "unopened_account", amount)
                raise UnopenedAccountWithdrawal(
                    f"Cannot withdraw from unopened account {account_id}. "
                    "First transaction must be a deposit."
                )

            current_balance = account.fold()
            if amount > current_balance:
                self._log_rejection(account_id, "insufficient_funds", amount)
                raise InsufficientFunds(
                    f"Insufficient balance for this withdrawal: balance "
                    f"{format_amount(current_balance)}, requested {format_amount(amount)}"
                )

            # A backdated withdrawal must not overdraw any earlier day either
            if self._lowest_balance_after_withdrawal(account, transaction_date, amount) < ZERO:
                self._log_rejection(account_id, "insufficient_funds", amount)
                raise InsufficientFunds(
                    f"Insufficient balance for this withdrawal: the balance on "
                    f"{format_date(transaction_date)} would go below zero"
                )

        if account is None:
            account = Account(id=account_id, created_date=transaction_date)
            self._accounts[account_id] = account
            log_action(
                self.logger, "info", f"Account opened: {account_id}",
                action="open_account", resource=f"account:{account_id}",
                extra={"created_date": transaction_date.isoformat()}
            )

        transaction = Transaction(
            id=self.id_allocator.allocate(transaction_date),
            account_id=account_id,
            date=transaction_date,
            transaction_type=transaction_type,
            amount=amount
        )
        account.transactions.append(transaction)

        log_action(
            self.logger, "info", f"Transaction recorded: {transaction.id}",
            action="record_transaction", resource=f"account:{account_id}",
            extra={
                "transaction_id": transaction.id,
                "type": transaction_type.value,
                "amount": format_amount(amount),
                "date": transaction_date.isoformat()
            }
        )

        return transaction

    def exists(self, account_id: str) -> bool:
        """Check whether the account has ever transacted"""
        return account_id in self._accounts

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get an account by id"""
        return self._accounts.get(account_id)

    def account_ids(self) -> List[str]:
        """Account ids in the order the accounts were opened"""
        return list(self._accounts)

    def balance(self, account_id: str) -> Decimal:
        """Current balance over every recorded transaction"""
        account = self._accounts.get(account_id)
        if account is None:
            return ZERO
        return account.fold()

    def balance_as_of(self, account_id: str, as_of: date) -> Decimal:
        """
        Balance including every transaction dated on or before as_of

        Returns zero for an account that does not exist.
        """
        account = self._accounts.get(account_id)
        if account is None:
            return ZERO
        return account.fold([txn for txn in account.chronological() if txn.date <= as_of])

    def balance_before(self, account_id: str, day: date) -> Decimal:
        """Balance including every transaction dated strictly before day"""
        account = self._accounts.get(account_id)
        if account is None:
            return ZERO
        return account.fold([txn for txn in account.chronological() if txn.date < day])

    def transactions_in_month(self, account_id: str, year: int, month: int) -> List[Transaction]:
        """Transactions dated within the month, chronological"""
        first_day, last_day = month_bounds(year, month)
        return [
            txn for txn in self.history(account_id)
            if first_day <= txn.date <= last_day
        ]

    def history(self, account_id: str) -> List[Transaction]:
        """Every transaction of the account, chronological"""
        account = self._accounts.get(account_id)
        if account is None:
            return []
        return account.chronological()

    def clear(self) -> None:
        """Drop all accounts and id counters"""
        self._accounts.clear()
        self.id_allocator.reset()

    def _lowest_balance_after_withdrawal(self, account: Account, day: date, amount: Decimal) -> Decimal:
        """Lowest running balance if a withdrawal were inserted after all transactions up to day"""
        balance = ZERO
        lowest = ZERO
        inserted = False

        for txn in account.chronological():
            if not inserted and txn.date > day:
                balance -= amount
                lowest = min(lowest, balance)
                inserted = True
            balance = txn.apply_to(balance)
            lowest = min(lowest, balance)

        if not inserted:
            lowest = min(lowest, balance - amount)

        return lowest

    def _log_rejection(self, account_id: str, reason: str, amount: Decimal) -> None:
        log_action(
            self.logger, "warning", f"Transaction rejected: {reason}",
            action="record_transaction", resource=f"account:{account_id}",
            extra={"reason": reason, "amount": format_amount(amount)}
        )
