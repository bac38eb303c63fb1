"""Accumulate monthly contributions into the projection time series.

Per member the aggregator keeps running OA/SA/MA balances:
``cumulative[m] = cumulative[m-1] + delta[m]``, with the month's loan
deduction taken off the OA balance after the delta is added.  The monthly
("earned") figures are never reduced by loan deductions; only the balances
are.  The cumulative total is the sum of the three balances and is therefore
net of deductions.

Household figures are the field-by-field sum of the member figures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..settings import ProjectionSettings
from .contributions import ZERO
from .inputs import MemberInput
from .loans import LoanDeduction, apply_pooled, clamp_deduction, scheduled_amounts
from .simulator import MonthlyContribution, month_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountValues:
    total: Decimal = ZERO
    oa: Decimal = ZERO
    sa: Decimal = ZERO
    ma: Decimal = ZERO

    def __add__(self, other: "AccountValues") -> "AccountValues":
        return AccountValues(
            total=self.total + other.total,
            oa=self.oa + other.oa,
            sa=self.sa + other.sa,
            ma=self.ma + other.ma,
        )


@dataclass(frozen=True)
class MemberPoint:
    """Figures for one member (or the whole household) in one month."""

    monthly: AccountValues
    cumulative: AccountValues
    loan_deduction: Decimal
    cumulative_loan_deduction: Decimal
    employee: Decimal
    employer: Decimal
    ow_base: Decimal
    bonus_gross: Decimal
    bonus_cpf_base: Decimal
    age: Optional[int] = None

    def __add__(self, other: "MemberPoint") -> "MemberPoint":
        return MemberPoint(
            monthly=self.monthly + other.monthly,
            cumulative=self.cumulative + other.cumulative,
            loan_deduction=self.loan_deduction + other.loan_deduction,
            cumulative_loan_deduction=self.cumulative_loan_deduction + other.cumulative_loan_deduction,
            employee=self.employee + other.employee,
            employer=self.employer + other.employer,
            ow_base=self.ow_base + other.ow_base,
            bonus_gross=self.bonus_gross + other.bonus_gross,
            bonus_cpf_base=self.bonus_cpf_base + other.bonus_cpf_base,
        )


_EMPTY_POINT = MemberPoint(
    monthly=AccountValues(),
    cumulative=AccountValues(),
    loan_deduction=ZERO,
    cumulative_loan_deduction=ZERO,
    employee=ZERO,
    employer=ZERO,
    ow_base=ZERO,
    bonus_gross=ZERO,
    bonus_cpf_base=ZERO,
)


@dataclass(frozen=True)
class ProjectionDataPoint:
    """All member and household figures for one projection month."""

    month_index: int
    date: date
    label: str
    members: Mapping[str, MemberPoint]
    household: MemberPoint
    scheduled_loan_deduction: Decimal = ZERO

    def to_dict(self) -> Dict[str, object]:
        """Flatten into the keys used by the dashboard charts."""
        out: Dict[str, object] = {"month": self.label, "monthIndex": self.month_index}
        for mid, p in self.members.items():
            key = f"member_{mid}"
            for acct in ("total", "oa", "sa", "ma"):
                out[f"{key}_monthly_{acct}"] = getattr(p.monthly, acct)
            out[f"{key}_monthly_loan_deduction"] = p.loan_deduction
            for acct in ("total", "oa", "sa", "ma"):
                out[f"{key}_{acct}"] = getattr(p.cumulative, acct)
            out[f"{key}_loan_deduction"] = p.cumulative_loan_deduction
        h = self.household
        for acct in ("total", "oa", "sa", "ma"):
            name = acct.capitalize()
            out[f"household{name}"] = getattr(h.cumulative, acct)
            out[f"householdMonthly{name}"] = getattr(h.monthly, acct)
        out["householdLoanDeduction"] = h.cumulative_loan_deduction
        out["householdMonthlyLoanDeduction"] = h.loan_deduction
        return out


def sum_points(points: Iterable[MemberPoint]) -> MemberPoint:
    total = _EMPTY_POINT
    for p in points:
        total = total + p
    return total


def aggregate(
    inputs: Sequence[MemberInput],
    member_rows: Mapping[str, Sequence[MonthlyContribution]],
    baseline_date: date,
    horizon: int,
    loan_deductions: Sequence[LoanDeduction] = (),
    settings: Optional[ProjectionSettings] = None,
) -> List[ProjectionDataPoint]:
    """Build the projection series from per-member monthly rows.

    Parameters
    ----------
    inputs : sequence of MemberInput
        Members in output order.
    member_rows : mapping
        Simulator output keyed by member id, each with ``horizon + 1`` rows.
    baseline_date : date
        Date of month 0.
    horizon : int
        Number of projected months.
    loan_deductions : sequence of LoanDeduction
        CPF-funded loan repayments.
    settings : ProjectionSettings, optional
        Controls how household-level deductions are attributed.

    Returns
    -------
    list of ProjectionDataPoint
        One point per month index, starting with the all-zero baseline.
    """
    settings = settings or ProjectionSettings()
    member_ids = [m.member_id for m in inputs]
    settings.validate(member_ids)
    payer_ids = [m.member_id for m in inputs if m.subject_to_cpf and m.date_of_birth is not None]
    n_months = horizon + 1
    for mid in member_ids:
        if len(member_rows[mid]) != n_months:
            raise ValueError(
                f"member {mid!r} has {len(member_rows[mid])} monthly rows, expected {n_months}"
            )

    cumulative = {mid: AccountValues() for mid in member_ids}
    cumulative_loan = {mid: ZERO for mid in member_ids}
    shortfall = ZERO
    points: List[ProjectionDataPoint] = []

    for m in range(n_months):
        rows = {mid: member_rows[mid][m] for mid in member_ids}
        scheduled, pooled = scheduled_amounts(loan_deductions, m, member_ids, payer_ids, settings)

        available = {mid: cumulative[mid].oa + rows[mid].oa for mid in member_ids}
        applied = {mid: clamp_deduction(scheduled[mid], available[mid]) for mid in member_ids}
        if pooled > 0:
            remaining = {mid: available[mid] - applied[mid] for mid in member_ids}
            for mid, share in apply_pooled(pooled, remaining).items():
                applied[mid] += share
        month_scheduled = sum(scheduled.values(), ZERO) + pooled
        month_applied = sum(applied.values(), ZERO)
        if month_applied < month_scheduled:
            logger.debug(f"Loan deduction clamped in month {m}: {month_scheduled} -> {month_applied}")
            shortfall += month_scheduled - month_applied

        member_points = {}
        for mid in member_ids:
            row = rows[mid]
            c = row.contribution
            prev = cumulative[mid]
            oa = prev.oa + c.oa - applied[mid]
            sa = prev.sa + c.sa
            ma = prev.ma + c.ma
            cumulative[mid] = AccountValues(total=oa + sa + ma, oa=oa, sa=sa, ma=ma)
            cumulative_loan[mid] += applied[mid]
            member_points[mid] = MemberPoint(
                monthly=AccountValues(total=c.total, oa=c.oa, sa=c.sa, ma=c.ma),
                cumulative=cumulative[mid],
                loan_deduction=applied[mid],
                cumulative_loan_deduction=cumulative_loan[mid],
                employee=c.employee,
                employer=c.employer,
                ow_base=row.ow_base,
                bonus_gross=row.bonus_gross,
                bonus_cpf_base=row.bonus_cpf_base,
                age=row.age,
            )

        on = month_date(baseline_date, m)
        points.append(ProjectionDataPoint(
            month_index=m,
            date=on,
            label=on.strftime("%b %y"),
            members=MappingProxyType(member_points),
            household=sum_points(member_points.values()),
            scheduled_loan_deduction=month_scheduled,
        ))

    if shortfall > 0:
        logger.warning(
            f"Loan deductions exceeded available OA balances; {shortfall} could not be deducted"
        )
    return points


def member_point_fields() -> List[str]:
    """Names of the per-month figures summed into the household point."""
    return [f.name for f in fields(MemberPoint) if f.name != "age"]


__all__ = [
    "AccountValues",
    "MemberPoint",
    "ProjectionDataPoint",
    "sum_points",
    "aggregate",
    "member_point_fields",
]
