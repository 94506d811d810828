"""
Bank Ledger

Per-account transaction ledgers with monthly statements and day-weighted
interest accrual under a time-varying rate schedule. All financial math
uses Decimal.
"""

__version__ = "1.0.0"
