"""Month-by-month CPF contribution simulator.

For every member the simulator walks the projection months in order.  Month
``m`` falls on ``baseline_date + m`` months; the member's age at that date
selects the contribution and allocation bands, so rates change automatically
as members cross an age boundary mid-projection.

Each month:

1. the ordinary wage is capped at the OW ceiling and attracts CPF at the
   age-resolved rate;
2. the capped wage is added to the member's year-to-date tally, which restarts
   every January;
3. bonuses scheduled for the calendar month attract CPF on whatever is left of
   the annual ceiling, at the same age-resolved rates as the month's salary.

Month 0 is the baseline and carries no contribution.  Members without a date
of birth, or without an income stream subject to CPF, contribute zero in every
month.

Example
-------

>>> from datetime import date
>>> from decimal import Decimal
>>> from cpf_planner.calculators.inputs import MemberInput
>>> member = MemberInput("m1", "Alex", date(1985, 6, 1), Decimal("6000"), True)
>>> rows = simulate_member(member, horizon=12, baseline_date=date(2025, 1, 1))
>>> len(rows), rows[0].total, rows[1].total
(13, Decimal('0.00'), Decimal('2220.00'))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from .ceilings import AnnualWageTracker, cpf_attracting_wage
from .contributions import ZERO, Contribution, compute_contribution
from .inputs import MemberInput, validate_horizon
from .rates import RateTables, default_rate_tables

logger = logging.getLogger(__name__)


def month_date(baseline_date: date, month_index: int) -> date:
    return baseline_date + relativedelta(months=month_index)


def age_at(date_of_birth: date, on: date) -> int:
    """Age in completed years on ``on``."""
    return relativedelta(on, date_of_birth).years


@dataclass(frozen=True)
class MonthlyContribution:
    """One member's CPF activity in one projection month (non-cumulative)."""

    month_index: int
    date: date
    age: Optional[int]
    ow_base: Decimal
    bonus_gross: Decimal
    bonus_cpf_base: Decimal
    contribution: Contribution
    bonus: Contribution

    @property
    def total(self) -> Decimal:
        return self.contribution.total

    @property
    def oa(self) -> Decimal:
        return self.contribution.oa

    @property
    def sa(self) -> Decimal:
        return self.contribution.sa

    @property
    def ma(self) -> Decimal:
        return self.contribution.ma

    @property
    def bonus_scheduled(self) -> bool:
        return self.bonus_gross > 0

    @classmethod
    def empty(cls, month_index: int, on: date, age: Optional[int]) -> "MonthlyContribution":
        zero = Contribution.zero()
        return cls(month_index, on, age, ZERO, ZERO, ZERO, zero, zero)


def simulate_member(
    member: MemberInput,
    horizon: int,
    baseline_date: date,
    tables: Optional[RateTables] = None,
    ow_ceiling: Optional[Decimal] = None,
    aw_ceiling: Optional[Decimal] = None,
) -> List[MonthlyContribution]:
    """Simulate ``horizon`` months of contributions for one member.

    Parameters
    ----------
    member : MemberInput
        Normalised member input.
    horizon : int
        Number of months to project; the result has ``horizon + 1`` rows.
    baseline_date : date
        Date of month 0.
    tables : RateTables, optional
        Rate tables, defaulting to the packaged ones.
    ow_ceiling, aw_ceiling : Decimal, optional
        Ceiling overrides; default to the tables' values.

    Returns
    -------
    list of MonthlyContribution
        One row per month index ``0..horizon``.
    """
    horizon = validate_horizon(horizon)
    tables = tables or default_rate_tables()
    ow = tables.ow_ceiling if ow_ceiling is None else ow_ceiling
    aw = tables.aw_ceiling if aw_ceiling is None else aw_ceiling
    dob = member.date_of_birth

    eligible = member.subject_to_cpf
    if eligible and dob is None:
        logger.info(
            f"Member {member.member_id!r} has no date of birth; excluded from CPF projection"
        )
        eligible = False

    rows = [MonthlyContribution.empty(0, baseline_date, age_at(dob, baseline_date) if dob else None)]
    tracker = AnnualWageTracker(aw_ceiling=aw, year=baseline_date.year)

    for m in range(1, horizon + 1):
        on = month_date(baseline_date, m)
        age = age_at(dob, on) if dob else None
        if not eligible:
            rows.append(MonthlyContribution.empty(m, on, age))
            continue

        tracker.roll_to(on.year)
        ow_base = cpf_attracting_wage(member.base_monthly_wage, ow)
        regular = compute_contribution(ow_base, age, tables)
        tracker.record_ordinary(ow_base)

        bonus = Contribution.zero()
        bonus_gross = ZERO
        bonus_base = ZERO
        if member.account_for_bonus:
            for entry in member.bonuses_in(on.month):
                gross = entry.gross
                base = tracker.absorb_bonus(gross, reserved_ow=ow_base * (12 - on.month))
                if base < gross:
                    logger.debug(
                        f"AW ceiling clamps bonus for {member.member_id!r} in {on:%Y-%m}: "
                        f"{gross} -> {base}"
                    )
                bonus_gross += gross
                bonus_base += base
                bonus = bonus + compute_contribution(base, age, tables)

        rows.append(MonthlyContribution(
            month_index=m,
            date=on,
            age=age,
            ow_base=ow_base,
            bonus_gross=bonus_gross,
            bonus_cpf_base=bonus_base,
            contribution=regular + bonus,
            bonus=bonus,
        ))
    return rows


__all__ = ["month_date", "age_at", "MonthlyContribution", "simulate_member"]
