"""Normalise household records into per-member projection inputs.

The data layer hands over family members, their income streams and property
loans as records.  This module turns them into immutable
:class:`MemberInput` objects the simulator can consume:

* income amounts are converted to a monthly figure based on their frequency;
* inactive streams are dropped;
* a member's CPF wage is the sum of its active streams that are subject to CPF;
* bonus schedules are parsed and filtered to valid calendar months;
* property loans paid with CPF become :class:`LoanDeduction` entries.

Records may be the dataclasses defined here or plain dictionaries using the
data layer's camelCase keys.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from dateutil.parser import isoparse

from .contributions import ZERO, to_money
from .loans import LoanDeduction

logger = logging.getLogger(__name__)

HORIZON_PRESETS = (12, 24, 36, 60, 120, 240)

_MONTHLY_FACTORS = {
    "monthly": Decimal("1"),
    "yearly": Decimal("1") / Decimal("12"),
    "annual": Decimal("1") / Decimal("12"),
    "weekly": Decimal("52") / Decimal("12"),
    "bi-weekly": Decimal("26") / Decimal("12"),
    "biweekly": Decimal("26") / Decimal("12"),
}


@dataclass(frozen=True)
class HouseholdMember:
    id: str
    name: str
    date_of_birth: Optional[date] = None


@dataclass(frozen=True)
class BonusEntry:
    """A recurring bonus paid every year in calendar ``month`` (1-12)."""

    month: int
    multiplier: Decimal


@dataclass(frozen=True)
class IncomeStream:
    family_member_id: str
    base_monthly_wage: Decimal
    subject_to_cpf: bool = False
    account_for_bonus: bool = False
    bonus_schedule: Tuple[BonusEntry, ...] = ()
    is_active: bool = True


@dataclass(frozen=True)
class MemberBonus:
    """Bonus entry bound to the monthly wage of the stream it belongs to."""

    month: int
    multiplier: Decimal
    base_wage: Decimal

    @property
    def gross(self) -> Decimal:
        return to_money(self.base_wage * self.multiplier)


@dataclass(frozen=True)
class MemberInput:
    """Normalised simulation input for one household member."""

    member_id: str
    name: str
    date_of_birth: Optional[date]
    base_monthly_wage: Decimal
    subject_to_cpf: bool
    account_for_bonus: bool = False
    bonus_schedule: Tuple[MemberBonus, ...] = ()

    def bonuses_in(self, calendar_month: int) -> Tuple[MemberBonus, ...]:
        return tuple(b for b in self.bonus_schedule if b.month == calendar_month)


def _to_decimal(value, name: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{name} is not a number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{name} must be a finite number, got {value!r}")
    return result


def _to_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except ValueError:
        raise ValueError(f"invalid date: {value!r}") from None


def normalize_to_monthly(amount, frequency: str = "monthly") -> Decimal:
    """Convert ``amount`` paid at ``frequency`` to a monthly figure.

    One-time payments and unknown frequencies count as zero.

    >>> normalize_to_monthly("120000", "yearly")
    Decimal('10000.00')
    """
    factor = _MONTHLY_FACTORS.get((frequency or "monthly").strip().lower())
    if factor is None:
        return ZERO
    return to_money(_to_decimal(amount, "amount") * factor)


def parse_bonus_groups(raw) -> Tuple[BonusEntry, ...]:
    """Parse a bonus schedule given as a list or a JSON string.

    Entries outside months 1-12 or with a non-positive multiplier are dropped.
    A malformed JSON string yields an empty schedule.
    """
    if raw is None or raw == "":
        return ()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed bonus schedule: {raw!r}")
            return ()
    entries = []
    for item in raw:
        if isinstance(item, BonusEntry):
            month, multiplier = item.month, item.multiplier
        else:
            try:
                month = int(item["month"])
                multiplier = _to_decimal(item["multiplier"], "multiplier")
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Ignoring malformed bonus entry: {item!r}")
                continue
        if 1 <= month <= 12 and multiplier > 0:
            entries.append(BonusEntry(month=month, multiplier=multiplier))
    return tuple(entries)


def member_from_record(record: Union[HouseholdMember, Mapping]) -> HouseholdMember:
    if isinstance(record, HouseholdMember):
        return record
    return HouseholdMember(
        id=str(record["id"]),
        name=str(record.get("name", record["id"])),
        date_of_birth=_to_date(record.get("dateOfBirth", record.get("date_of_birth"))),
    )


def income_from_record(record: Union[IncomeStream, Mapping]) -> IncomeStream:
    """Build an :class:`IncomeStream` from a data-layer income record."""
    if isinstance(record, IncomeStream):
        return record
    if "baseMonthlyWage" in record:
        wage = to_money(_to_decimal(record["baseMonthlyWage"], "baseMonthlyWage"))
    else:
        wage = normalize_to_monthly(record.get("amount"), record.get("frequency", "monthly"))
    bonus_raw = record.get("bonusSchedule", record.get("bonusGroups"))
    return IncomeStream(
        family_member_id=str(record["familyMemberId"]),
        base_monthly_wage=wage,
        subject_to_cpf=bool(record.get("subjectToCpf", False)),
        account_for_bonus=bool(record.get("accountForBonus", False)),
        bonus_schedule=parse_bonus_groups(bonus_raw),
        # a missing flag means active, as in the data layer
        is_active=record.get("isActive") is not False,
    )


def build_projection_inputs(
    members: Iterable[Union[HouseholdMember, Mapping]],
    incomes: Iterable[Union[IncomeStream, Mapping]],
) -> List[MemberInput]:
    """Combine members and income streams into one :class:`MemberInput` per member.

    Parameters
    ----------
    members : iterable
        Household members; output order follows this order.
    incomes : iterable
        Income streams.  Inactive streams and streams not subject to CPF
        contribute nothing; streams of unknown members are ignored.

    Returns
    -------
    list of MemberInput
    """
    household = [member_from_record(m) for m in members]
    seen = set()
    for m in household:
        if m.id in seen:
            raise ValueError(f"duplicate household member id: {m.id!r}")
        seen.add(m.id)

    streams: Dict[str, List[IncomeStream]] = {m.id: [] for m in household}
    for rec in incomes:
        stream = income_from_record(rec)
        if not stream.is_active or not stream.subject_to_cpf:
            continue
        if stream.family_member_id not in streams:
            logger.warning(f"Income stream for unknown member {stream.family_member_id!r} ignored")
            continue
        streams[stream.family_member_id].append(stream)

    inputs = []
    for m in household:
        own = streams[m.id]
        bonuses = tuple(
            MemberBonus(month=b.month, multiplier=b.multiplier, base_wage=s.base_monthly_wage)
            for s in own if s.account_for_bonus
            for b in s.bonus_schedule
        )
        inputs.append(MemberInput(
            member_id=m.id,
            name=m.name,
            date_of_birth=m.date_of_birth,
            base_monthly_wage=sum((s.base_monthly_wage for s in own), ZERO),
            subject_to_cpf=bool(own),
            account_for_bonus=any(s.account_for_bonus for s in own),
            bonus_schedule=bonuses,
        ))
    return inputs


def extract_loan_deductions(property_assets: Iterable[Mapping]) -> List[LoanDeduction]:
    """Loan deductions for active properties whose repayments are paid by CPF.

    The deduction runs until the outstanding loan is repaid:
    ``ceil(outstandingLoan / monthlyLoanPayment)`` months.  When the loan
    is not a whole number of payments, the last month only deducts what is
    still owed and is emitted as a separate one-month entry.

    >>> loans = extract_loan_deductions([{"paidByCpf": True, "monthlyLoanPayment": "1500",
    ...                                   "outstandingLoan": "10000"}])
    >>> [(d.monthly_amount, d.start_month, d.duration_months) for d in loans]
    [(Decimal('1500.00'), 1, 6), (Decimal('1000.00'), 7, 1)]
    """
    out = []
    for p in property_assets:
        if not p.get("paidByCpf") or p.get("isActive") is False:
            continue
        monthly = to_money(_to_decimal(p.get("monthlyLoanPayment"), "monthlyLoanPayment"))
        outstanding = to_money(_to_decimal(p.get("outstandingLoan"), "outstandingLoan"))
        if monthly <= 0 or outstanding <= 0:
            continue
        fid = p.get("familyMemberId")
        member_id = None if fid is None else str(fid)
        full_months, last = divmod(outstanding, monthly)
        full_months = int(full_months)
        if full_months:
            out.append(LoanDeduction(
                monthly_amount=monthly,
                duration_months=full_months,
                member_id=member_id,
            ))
        if last > 0:
            out.append(LoanDeduction(
                monthly_amount=last,
                duration_months=1,
                start_month=full_months + 1,
                member_id=member_id,
            ))
    return out


def validate_horizon(horizon) -> int:
    """Return ``horizon`` as a positive number of months or raise ``ValueError``."""
    if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon < 1:
        raise ValueError(f"horizon must be a positive integer number of months, got {horizon!r}")
    return horizon


__all__ = [
    "HORIZON_PRESETS",
    "HouseholdMember",
    "BonusEntry",
    "IncomeStream",
    "MemberBonus",
    "MemberInput",
    "normalize_to_monthly",
    "parse_bonus_groups",
    "member_from_record",
    "income_from_record",
    "build_projection_inputs",
    "extract_loan_deductions",
    "validate_horizon",
]
