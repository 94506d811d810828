"""
Ledger Errors

Every error is recoverable: the caller reports it and asks again. All of them
derive from ValueError so generic ``except ValueError`` handlers still apply.
"""


class LedgerError(ValueError):
    """Base class for rejected ledger, rate and statement operations"""


class InvalidDate(LedgerError):
    """Malformed or calendrically impossible date or month"""


class InvalidAmount(LedgerError):
    """Amount is not positive or has more than 2 decimal places"""


class InvalidRate(LedgerError):
    """Interest rate outside the open interval (0, 100)"""


class InvalidTransactionType(LedgerError):
    """Transaction type is neither D nor W"""


class InvalidAccount(LedgerError):
    """Empty or malformed account identifier"""


class UnopenedAccountWithdrawal(LedgerError):
    """Withdrawal attempted on an account that has no deposit yet"""


InvalidOperation = UnopenedAccountWithdrawal


class InsufficientFunds(LedgerError):
    """Withdrawal would drive the balance below zero"""


class AccountNotFound(LedgerError):
    """Statement requested for an account with no history"""


class NoActivity(LedgerError):
    """Statement requested for a month without transactions"""
