"""
Interest Calculation Module

Computes simple, day-weighted interest for one account over one calendar
month. The month's daily balances are rebuilt from the ledger and the month
is split into runs of days sharing the same annual rate, since the rate
schedule can change on any day, not only on the 1st.
"""

from decimal import Decimal
from datetime import date, timedelta
from dataclasses import dataclass
from typing import Dict, List

from .ledger import Ledger
from .rates import RateSchedule
from .logging_config import get_logger, log_action
from .money import ZERO, quantize_money, format_amount, month_bounds

HUNDRED = Decimal('100')


@dataclass(frozen=True)
class InterestPeriod:
    """Run of consecutive days sharing one annual rate"""
    start_date: date
    end_date: date
    annual_rate_percent: Decimal
    balance: Decimal          # Balance applied to the whole run
    interest: Decimal         # Unrounded interest for the run

    @property
    def days(self) -> int:
        """Number of days in the run, both ends inclusive"""
        return (self.end_date - self.start_date).days + 1


class InterestCalculator:
    """
    Monthly interest over a ledger and a rate schedule

    The balance at the first day of a rate run stands for the whole run. A
    transaction inside a run therefore does not change that run's interest;
    only a rate change starts a new run.
    """

    def __init__(self, ledger: Ledger, rate_schedule: RateSchedule, days_in_year: int = 365):
        if days_in_year <= 0:
            raise ValueError("days_in_year must be positive")
        self.ledger = ledger
        self.rate_schedule = rate_schedule
        self.days_in_year = Decimal(days_in_year)
        self.logger = get_logger("bank_ledger.interest")

    def daily_balances(self, account_id: str, year: int, month: int) -> Dict[date, Decimal]:
        """
        End-of-day balance for every calendar day of the month

        Day 1 starts from the closing balance of the previous month; days
        without transactions carry the previous day's balance forward.
        """
        first_day, last_day = month_bounds(year, month)
        balance = self.ledger.balance_before(account_id, first_day)

        transactions_by_day: Dict[date, list] = {}
        for txn in self.ledger.transactions_in_month(account_id, year, month):
            transactions_by_day.setdefault(txn.date, []).append(txn)

        balances: Dict[date, Decimal] = {}
        day = first_day
        while day <= last_day:
            for txn in transactions_by_day.get(day, []):
                balance = txn.apply_to(balance)
            balances[day] = balance
            day += timedelta(days=1)

        return balances

    def interest_periods(self, account_id: str, year: int, month: int) -> List[InterestPeriod]:
        """Split the month into maximal runs of equal rate and price each run"""
        balances = self.daily_balances(account_id, year, month)
        days = list(balances)

        periods = []
        run_start = days[0]
        run_rate = self.rate_schedule.rate_on(run_start)

        for previous_day, day in zip(days, days[1:]):
            rate = self.rate_schedule.rate_on(day)
            if rate != run_rate:
                periods.append(self._price_period(run_start, previous_day, run_rate, balances[run_start]))
                run_start, run_rate = day, rate

        periods.append(self._price_period(run_start, days[-1], run_rate, balances[run_start]))
        return periods

    def calculate_monthly_interest(self, account_id: str, year: int, month: int) -> Decimal:
        """
        Total interest for the month, rounded to cents

        Args:
            account_id: Account to compute interest for
            year: Calendar year
            month: Calendar month (1-12)

        Returns:
            Interest rounded half-up to 2 decimal places; zero when no rate applies
        """
        periods = self.interest_periods(account_id, year, month)

        total = ZERO
        for period in periods:
            total += period.interest

        interest = quantize_money(total)

        log_action(
            self.logger, "debug", f"Interest computed for {account_id} {year:04d}-{month:02d}",
            action="calculate_interest", resource=f"account:{account_id}",
            extra={
                "interest": format_amount(interest),
                "periods": [
                    {
                        "start": p.start_date.isoformat(),
                        "end": p.end_date.isoformat(),
                        "rate": str(p.annual_rate_percent),
                        "balance": format_amount(p.balance),
                        "days": p.days
                    }
                    for p in periods
                ]
            }
        )

        return interest

    def _price_period(self, start: date, end: date, rate: Decimal, balance: Decimal) -> InterestPeriod:
        days = (end - start).days + 1
        interest = ZERO
        if rate > ZERO:
            interest = balance * rate / HUNDRED * days / self.days_in_year
        return InterestPeriod(
            start_date=start,
            end_date=end,
            annual_rate_percent=rate,
            balance=balance,
            interest=interest
        )
