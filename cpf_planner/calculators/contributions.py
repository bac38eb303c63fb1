"""Contribution arithmetic for a single wage payment.

A CPF-attracting amount is multiplied by the age-resolved total rate, split
into the employee and employer shares and allocated across OA, SA and MA.
Each figure is rounded to the cent.  The employer share and the MA allocation
are taken as remainders so that ``employee + employer == total`` and
``oa + sa + ma == total`` hold exactly.

Example
-------

>>> from decimal import Decimal
>>> c = compute_contribution(Decimal("6000"), age=40)
>>> c.total, c.oa, c.sa, c.ma
(Decimal('2220.00'), Decimal('1260.29'), Decimal('419.80'), Decimal('539.91'))
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .ceilings import cpf_attracting_wage
from .rates import RateTables, allocation_ratio, contribution_rate, default_rate_tables

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Quantize ``value`` to cents using half-up rounding."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Contribution:
    """Contribution on one CPF-attracting amount."""

    cpf_base: Decimal
    employee: Decimal
    employer: Decimal
    total: Decimal
    oa: Decimal
    sa: Decimal
    ma: Decimal

    @classmethod
    def zero(cls) -> "Contribution":
        return cls(ZERO, ZERO, ZERO, ZERO, ZERO, ZERO, ZERO)

    def __add__(self, other: "Contribution") -> "Contribution":
        return Contribution(
            cpf_base=self.cpf_base + other.cpf_base,
            employee=self.employee + other.employee,
            employer=self.employer + other.employer,
            total=self.total + other.total,
            oa=self.oa + other.oa,
            sa=self.sa + other.sa,
            ma=self.ma + other.ma,
        )


def compute_contribution(cpf_base: Decimal, age: int, tables: Optional[RateTables] = None) -> Contribution:
    """Contribution on ``cpf_base`` for a member of ``age``.

    Non-positive bases give a zero contribution.
    """
    tables = tables or default_rate_tables()
    if cpf_base <= 0:
        return Contribution.zero()
    cpf_base = to_money(cpf_base)

    rate = contribution_rate(age, tables)
    alloc = allocation_ratio(age, tables)
    total = to_money(cpf_base * rate.total_rate)
    if rate.total_rate > 0:
        employee = to_money(total * rate.employee_rate / rate.total_rate)
    else:
        employee = ZERO
    oa = to_money(total * alloc.oa)
    sa = to_money(total * alloc.sa)
    return Contribution(
        cpf_base=cpf_base,
        employee=employee,
        employer=total - employee,
        total=total,
        oa=oa,
        sa=sa,
        ma=total - oa - sa,
    )


@dataclass(frozen=True)
class CpfSnapshot:
    """One month of CPF on a gross salary, as shown on a payslip."""

    gross_amount: Decimal
    cpf_applicable_amount: Decimal
    employee: Decimal
    employer: Decimal
    total: Decimal
    oa: Decimal
    sa: Decimal
    ma: Decimal
    net_take_home: Decimal


def calculate_cpf(gross_amount, age: int, tables: Optional[RateTables] = None,
                  ow_ceiling: Optional[Decimal] = None) -> CpfSnapshot:
    """Monthly CPF on ``gross_amount`` with the OW ceiling applied.

    Net take-home is the gross wage less the employee share.
    """
    tables = tables or default_rate_tables()
    gross = to_money(gross_amount)
    ceiling = tables.ow_ceiling if ow_ceiling is None else ow_ceiling
    applicable = cpf_attracting_wage(gross, ceiling)
    c = compute_contribution(applicable, age, tables)
    return CpfSnapshot(
        gross_amount=gross,
        cpf_applicable_amount=applicable,
        employee=c.employee,
        employer=c.employer,
        total=c.total,
        oa=c.oa,
        sa=c.sa,
        ma=c.ma,
        net_take_home=gross - c.employee,
    )


__all__ = [
    "CENT",
    "ZERO",
    "to_money",
    "Contribution",
    "compute_contribution",
    "CpfSnapshot",
    "calculate_cpf",
]
