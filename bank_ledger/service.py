"""
Banking Service

Entry point for the console and HTTP surfaces. Takes the raw strings those
surfaces collect, re-validates them, and runs each operation under one lock
so a single service instance can be shared between threads.
"""

from dataclasses import dataclass
from typing import List, Optional
import threading

from .config import get_config
from .interest import InterestCalculator
from .ledger import Ledger, Transaction, TransactionType
from .money import parse_amount, parse_date, parse_rate, parse_year_month
from .rates import RateRule, RateSchedule
from .statements import Statement, StatementBuilder, StatementLine


@dataclass
class TransactionReceipt:
    """Recorded transaction plus the account's resulting history"""
    transaction: Transaction
    history: List[StatementLine]


class BankingService:
    """Ledger, rate schedule and statement builder wired together"""

    def __init__(self, days_in_year: Optional[int] = None):
        if days_in_year is None:
            days_in_year = get_config().interest_days_in_year

        self.ledger = Ledger()
        self.rate_schedule = RateSchedule()
        self.interest_calculator = InterestCalculator(
            self.ledger, self.rate_schedule, days_in_year=days_in_year
        )
        self.statement_builder = StatementBuilder(self.ledger, self.interest_calculator)
        self._lock = threading.RLock()

    def record_transaction(
        self,
        date_str: str,
        account_id: str,
        type_code: str,
        amount: str
    ) -> TransactionReceipt:
        """
        Record a transaction from raw input

        Args:
            date_str: Date as YYYYMMDD
            account_id: Account identifier, free format
            type_code: D or W, case insensitive
            amount: Positive amount with up to 2 decimal places

        Returns:
            TransactionReceipt with the new transaction and the account history

        Raises:
            LedgerError: Any validation or balance failure; state is left unchanged
        """
        transaction_date = parse_date(date_str)
        transaction_type = TransactionType.from_code(type_code)
        value = parse_amount(amount)

        with self._lock:
            transaction = self.ledger.record(account_id, transaction_date, transaction_type, value)
            history = self.statement_builder.history(account_id)

        return TransactionReceipt(transaction=transaction, history=history)

    def define_rate(self, date_str: str, rule_id: str, rate: str) -> List[RateRule]:
        """
        Define an interest rule from raw input

        Returns:
            Every rule, sorted by effective date
        """
        effective_date = parse_date(date_str)
        annual_rate = parse_rate(rate)

        with self._lock:
            self.rate_schedule.define(effective_date, rule_id, annual_rate)
            return self.rate_schedule.rules()

    def list_rates(self) -> List[RateRule]:
        with self._lock:
            return self.rate_schedule.rules()

    def print_statement(self, account_id: str, year_month: str) -> Statement:
        """
        Build the statement for an account and a YYYYMM month

        Raises:
            InvalidDate: If year_month is malformed
            AccountNotFound: If the account has never transacted
            NoActivity: If the month has no transactions
        """
        year, month = parse_year_month(year_month)

        with self._lock:
            return self.statement_builder.build(account_id, year, month)

    def account_history(self, account_id: str) -> List[StatementLine]:
        with self._lock:
            return self.statement_builder.history(account_id)

    def reset(self) -> None:
        """Drop every account, rule and id counter"""
        with self._lock:
            self.ledger.clear()
            self.rate_schedule.clear()
