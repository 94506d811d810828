"""
Interest Rate Schedule Module

Piecewise-constant annual interest rates keyed by effective date. A rule
applies from its effective date (inclusive) until a later rule supersedes it.
"""

from decimal import Decimal
from decimal import InvalidOperation as DecimalException
from datetime import date, datetime
from dataclasses import dataclass
from typing import List, Union
import bisect

from .errors import InvalidDate, InvalidRate
from .logging_config import get_logger, log_action
from .money import ZERO

MAX_RATE_PERCENT = Decimal('100')


@dataclass(frozen=True)
class RateRule:
    """Annual interest rate (in percent) effective from a given date"""
    effective_date: date
    rule_id: str
    annual_rate_percent: Decimal

    def __post_init__(self):
        if not isinstance(self.annual_rate_percent, Decimal):
            try:
                converted = Decimal(str(self.annual_rate_percent))
            except DecimalException:
                raise InvalidRate(f"Rate must be a number, got {self.annual_rate_percent!r}")
            object.__setattr__(self, 'annual_rate_percent', converted)

        # Validate rate is in the open interval (0, 100)
        rate = self.annual_rate_percent
        if not rate.is_finite() or rate <= ZERO or rate >= MAX_RATE_PERCENT:
            raise InvalidRate(f"Rate must be greater than 0 and less than 100, got {rate}")


class RateSchedule:
    """
    Ordered set of rate rules with at most one rule per effective date

    Defining a rule for a date that already has one replaces it.
    """

    def __init__(self):
        self._rules: List[RateRule] = []
        self.logger = get_logger("bank_ledger.rates")

    def define(
        self,
        effective_date: date,
        rule_id: str,
        annual_rate_percent: Union[Decimal, str]
    ) -> RateRule:
        """
        Define or replace the rule for an effective date

        Args:
            effective_date: First day the rate applies
            rule_id: Free-form label, informational only
            annual_rate_percent: Annual rate in percent, strictly between 0 and 100

        Returns:
            The stored RateRule

        Raises:
            InvalidDate: If effective_date is not a date
            InvalidRate: If the rate is outside (0, 100)
        """
        if not isinstance(effective_date, date) or isinstance(effective_date, datetime):
            raise InvalidDate(f"Effective date must be a calendar date, got {effective_date!r}")

        rule = RateRule(
            effective_date=effective_date,
            rule_id=rule_id,
            annual_rate_percent=annual_rate_percent
        )

        dates = [r.effective_date for r in self._rules]
        index = bisect.bisect_left(dates, effective_date)
        replaced = index < len(self._rules) and dates[index] == effective_date
        if replaced:
            self._rules[index] = rule
        else:
            self._rules.insert(index, rule)

        log_action(
            self.logger, "info",
            f"Interest rule {'replaced' if replaced else 'defined'}: {rule_id}",
            action="define_rate", resource=f"rate_rule:{effective_date.isoformat()}",
            extra={"rule_id": rule_id, "rate": str(rule.annual_rate_percent)}
        )

        return rule

    def rate_on(self, day: date) -> Decimal:
        """Rate of the latest rule effective on or before day, zero if none"""
        dates = [r.effective_date for r in self._rules]
        index = bisect.bisect_right(dates, day)
        if index == 0:
            return ZERO
        return self._rules[index - 1].annual_rate_percent

    def rules(self) -> List[RateRule]:
        """All rules sorted by effective date"""
        return list(self._rules)

    def clear(self) -> None:
        self._rules.clear()

    def __len__(self) -> int:
        return len(self._rules)
