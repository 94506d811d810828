"""
Test suite for ledger module

Tests transaction recording, id allocation and balance calculations.
CRITICAL: Validates that no account balance ever goes below zero.
"""

import random
import pytest
from decimal import Decimal
from datetime import date, datetime, timedelta

from bank_ledger.errors import (
    InvalidAccount, InvalidAmount, InvalidDate, InvalidOperation,
    InvalidTransactionType, InsufficientFunds, UnopenedAccountWithdrawal
)
from bank_ledger.ledger import Ledger, Transaction, TransactionIdAllocator, TransactionType


class TestTransactionType:
    """Test transaction type codes"""

    def test_from_code_is_case_insensitive(self):
        assert TransactionType.from_code("D") == TransactionType.DEPOSIT
        assert TransactionType.from_code("w") == TransactionType.WITHDRAWAL

    def test_unknown_code(self):
        with pytest.raises(InvalidTransactionType):
            TransactionType.from_code("X")


class TestTransactionIdAllocator:
    """Test date-scoped running numbers"""

    def test_sequence_per_date(self):
        """Test that each date has its own counter starting at 01"""
        allocator = TransactionIdAllocator()

        assert allocator.allocate(date(2023, 5, 5)) == "20230505-01"
        assert allocator.allocate(date(2023, 5, 5)) == "20230505-02"
        assert allocator.allocate(date(2023, 6, 1)) == "20230601-01"

    def test_sequence_grows_past_99(self):
        """Test that the running number widens instead of wrapping"""
        allocator = TransactionIdAllocator()
        ids = [allocator.allocate(date(2023, 1, 1)) for _ in range(100)]

        assert ids[98] == "20230101-99"
        assert ids[99] == "20230101-100"
        assert len(set(ids)) == 100

    def test_reset(self):
        allocator = TransactionIdAllocator()
        allocator.allocate(date(2023, 1, 1))
        allocator.reset()
        assert allocator.allocate(date(2023, 1, 1)) == "20230101-01"


class TestLedgerRecording:
    """Test recording deposits and withdrawals"""

    def setup_method(self):
        """Set up test fixtures"""
        self.ledger = Ledger()

    def test_deposit_then_withdraw_same_day(self):
        """Test deposit and withdrawal on one date get consecutive ids"""
        deposit = self.ledger.record("AC001", date(2023, 5, 5), TransactionType.DEPOSIT, Decimal('100.00'))
        assert self.ledger.balance("AC001") == Decimal('100.00')

        withdrawal = self.ledger.record("AC001", date(2023, 5, 5), TransactionType.WITHDRAWAL, Decimal('50.00'))

        assert self.ledger.balance("AC001") == Decimal('50.00')
        assert deposit.id == "20230505-01"
        assert withdrawal.id == "20230505-02"

    def test_first_deposit_opens_account(self):
        """Test implicit account creation"""
        assert not self.ledger.exists("AC001")

        self.ledger.record("AC001", date(2023, 6, 1), "D", Decimal('10'))

        account = self.ledger.get_account("AC001")
        assert account is not None
        assert account.created_date == date(2023, 6, 1)
        assert self.ledger.account_ids() == ["AC001"]

    def test_withdraw_from_unopened_account(self):
        """Test that a withdrawal cannot open an account"""
        with pytest.raises(UnopenedAccountWithdrawal, match="unopened account"):
            self.ledger.record("AC002", date(2023, 6, 1), TransactionType.WITHDRAWAL, Decimal('10.00'))

        assert not self.ledger.exists("AC002")
        assert UnopenedAccountWithdrawal is InvalidOperation

    def test_insufficient_funds_leaves_balance_unchanged(self):
        """Test that an overdraft is rejected without side effects"""
        self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('100.00'))
        self.ledger.record("AC001", date(2023, 6, 1), TransactionType.WITHDRAWAL, Decimal('30.00'))
        assert self.ledger.balance("AC001") == Decimal('70.00')

        with pytest.raises(InsufficientFunds):
            self.ledger.record("AC001", date(2023, 6, 1), TransactionType.WITHDRAWAL, Decimal('100.00'))

        assert self.ledger.balance("AC001") == Decimal('70.00')
        assert len(self.ledger.history("AC001")) == 2
        # The rejected withdrawal did not consume a running number
        next_txn = self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('1.00'))
        assert next_txn.id == "20230601-03"

    def test_withdraw_entire_balance(self):
        """Test that the balance may reach exactly zero"""
        self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('100.00'))
        self.ledger.record("AC001", date(2023, 6, 2), TransactionType.WITHDRAWAL, Decimal('100.00'))
        assert self.ledger.balance("AC001") == Decimal('0.00')

    def test_backdated_withdrawal_cannot_overdraw_earlier_day(self):
        """Test that a withdrawal dated before the covering deposit is rejected"""
        self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('100.00'))

        with pytest.raises(InsufficientFunds, match="20230520"):
            self.ledger.record("AC001", date(2023, 5, 20), TransactionType.WITHDRAWAL, Decimal('50.00'))

        assert self.ledger.balance("AC001") == Decimal('100.00')

    def test_backdated_withdrawal_within_earlier_balance(self):
        """Test backdated withdrawals checked against the balance on their date"""
        self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('100.00'))
        self.ledger.record("AC001", date(2023, 5, 20), TransactionType.DEPOSIT, Decimal('50.00'))

        with pytest.raises(InsufficientFunds):
            self.ledger.record("AC001", date(2023, 5, 25), TransactionType.WITHDRAWAL, Decimal('120.00'))

        txn = self.ledger.record("AC001", date(2023, 5, 25), TransactionType.WITHDRAWAL, Decimal('40.00'))
        assert txn.id == "20230525-01"
        assert self.ledger.balance("AC001") == Decimal('110.00')

    def test_ids_shared_across_accounts(self):
        """Test that all accounts draw from the same counter for a date"""
        first = self.ledger.record("AC001", date(2023, 5, 5), TransactionType.DEPOSIT, Decimal('10'))
        second = self.ledger.record("AC002", date(2023, 5, 5), TransactionType.DEPOSIT, Decimal('10'))
        third = self.ledger.record("AC001", date(2023, 5, 5), TransactionType.DEPOSIT, Decimal('10'))

        assert [first.id, second.id, third.id] == ["20230505-01", "20230505-02", "20230505-03"]

    def test_invalid_inputs(self):
        """Test argument validation before any mutation"""
        with pytest.raises(InvalidAccount):
            self.ledger.record("", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('10'))
        with pytest.raises(InvalidDate):
            self.ledger.record("AC001", datetime(2023, 6, 1, 12, 0), TransactionType.DEPOSIT, Decimal('10'))
        with pytest.raises(InvalidAmount):
            self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('-10'))
        with pytest.raises(InvalidAmount):
            self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('10.001'))

        assert not self.ledger.exists("AC001")

    def test_transactions_are_immutable(self):
        txn = self.ledger.record("AC001", date(2023, 6, 1), TransactionType.DEPOSIT, Decimal('10'))
        with pytest.raises(AttributeError):
            txn.id = "changed"


class TestLedgerBalances:
    """Test balance folding and chronological ordering"""

    def setup_method(self):
        """Set up test fixtures"""
        self.ledger = Ledger()
        self.ledger.record("AC001", date(2023, 6, 10), TransactionType.DEPOSIT, Decimal('100.00'))
        self.ledger.record("AC001", date(2023, 5, 5), TransactionType.DEPOSIT, Decimal('50.00'))
        self.ledger.record("AC001", date(2023, 6, 10), TransactionType.WITHDRAWAL, Decimal('20.00'))
        self.ledger.record("AC001", date(2023, 7, 1), TransactionType.DEPOSIT, Decimal('5.25'))

    def test_history_is_chronological(self):
        """Test date order with recording order kept within a date"""
        history = self.ledger.history("AC001")

        assert [txn.id for txn in history] == [
            "20230505-01", "20230610-01", "20230610-02", "20230701-01"
        ]

    def test_balance_as_of(self):
        """Test inclusive as-of balances"""
        assert self.ledger.balance_as_of("AC001", date(2023, 5, 4)) == Decimal('0')
        assert self.ledger.balance_as_of("AC001", date(2023, 5, 5)) == Decimal('50.00')
        assert self.ledger.balance_as_of("AC001", date(2023, 6, 10)) == Decimal('130.00')
        assert self.ledger.balance_as_of("AC001", date(2023, 12, 31)) == Decimal('135.25')

    def test_balance_before(self):
        assert self.ledger.balance_before("AC001", date(2023, 6, 10)) == Decimal('50.00')
        assert self.ledger.balance_before("AC001", date(2023, 7, 1)) == Decimal('130.00')

    def test_unopened_account_balance_is_zero(self):
        assert self.ledger.balance_as_of("NOPE", date(2023, 6, 1)) == Decimal('0')
        assert self.ledger.balance("NOPE") == Decimal('0')
        assert self.ledger.history("NOPE") == []

    def test_transactions_in_month(self):
        june = self.ledger.transactions_in_month("AC001", 2023, 6)

        assert [txn.id for txn in june] == ["20230610-01", "20230610-02"]
        assert self.ledger.transactions_in_month("AC001", 2023, 8) == []

    def test_clear(self):
        self.ledger.clear()
        assert not self.ledger.exists("AC001")
        txn = self.ledger.record("AC001", date(2023, 6, 10), TransactionType.DEPOSIT, Decimal('1'))
        assert txn.id == "20230610-01"


class TestNonNegativity:
    """Randomized operation sequences never produce a negative prefix"""

    def test_random_sequences_never_go_negative(self):
        rng = random.Random(20230626)
        ledger = Ledger()
        accounts = ["AC001", "AC002", "AC003"]
        start = date(2023, 1, 1)

        for _ in range(400):
            account_id = rng.choice(accounts)
            day = start + timedelta(days=rng.randint(0, 120))
            txn_type = rng.choice([TransactionType.DEPOSIT, TransactionType.WITHDRAWAL])
            amount = Decimal(rng.randint(1, 20000)) / Decimal(100)
            try:
                ledger.record(account_id, day, txn_type, amount)
            except (InsufficientFunds, UnopenedAccountWithdrawal):
                pass

        for account_id in ledger.account_ids():
            balance = Decimal('0')
            for txn in ledger.history(account_id):
                balance = txn.apply_to(balance)
                assert balance >= 0

        all_ids = [txn.id for a in ledger.account_ids() for txn in ledger.history(a)]
        assert len(all_ids) == len(set(all_ids))


def test_transaction_apply_to():
    """Test deposit and withdrawal effect on a balance"""
    deposit = Transaction("20230101-01", "AC001", date(2023, 1, 1), TransactionType.DEPOSIT, Decimal('5'))
    withdrawal = Transaction("20230101-02", "AC001", date(2023, 1, 1), TransactionType.WITHDRAWAL, Decimal('2'))

    assert deposit.apply_to(Decimal('10')) == Decimal('15')
    assert withdrawal.apply_to(Decimal('10')) == Decimal('8')
