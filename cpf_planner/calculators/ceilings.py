"""Ordinary and additional wage ceilings.

Only part of a member's pay attracts CPF:

* the **ordinary wage (OW) ceiling** caps each month's salary;
* the **annual (AW) ceiling** caps the total CPF-attracting wages of a calendar
  year.  Ordinary wages are counted first and bonuses only attract CPF on the
  headroom that is left.

Example
-------

>>> from decimal import Decimal
>>> cpf_attracting_wage(Decimal("9500"), Decimal("8000"))
Decimal('8000')
>>> bonus_cpf_base(Decimal("12000"), Decimal("96000"), Decimal("102000"))
Decimal('6000')
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

_ZERO = Decimal("0")


def cpf_attracting_wage(monthly_wage: Decimal, ow_ceiling: Decimal) -> Decimal:
    """Portion of an ordinary monthly wage subject to CPF.

    Negative wages are treated as zero.
    """
    return max(_ZERO, min(monthly_wage, ow_ceiling))


def bonus_cpf_base(bonus: Decimal, ytd_wage: Decimal, aw_ceiling: Decimal) -> Decimal:
    """Portion of a bonus subject to CPF given the wages already counted this year.

    Parameters
    ----------
    bonus : Decimal
        Gross bonus paid.
    ytd_wage : Decimal
        CPF-attracting wages already counted against the annual ceiling.
    aw_ceiling : Decimal
        Annual wage ceiling.

    Returns
    -------
    Decimal
        ``clamp(bonus, 0, aw_ceiling - ytd_wage)``; zero once the ceiling is used up.
    """
    headroom = aw_ceiling - ytd_wage
    if headroom <= _ZERO:
        return _ZERO
    return max(_ZERO, min(bonus, headroom))


@dataclass
class AnnualWageTracker:
    """Per-member running tally of CPF-attracting wages for one calendar year.

    ``ytd_ow_wage`` is the ordinary wage counted so far, ``ytd_bonus_base`` the
    bonus amounts that already attracted CPF.  The tally restarts whenever a
    month from a new calendar year is recorded.
    """

    aw_ceiling: Decimal
    year: int = 0
    ytd_ow_wage: Decimal = _ZERO
    ytd_bonus_base: Decimal = _ZERO

    def roll_to(self, year: int) -> bool:
        """Reset the tally if ``year`` starts a new calendar year.  Returns True on reset."""
        if year != self.year:
            self.year = year
            self.ytd_ow_wage = _ZERO
            self.ytd_bonus_base = _ZERO
            return True
        return False

    def record_ordinary(self, ow_base: Decimal) -> None:
        self.ytd_ow_wage += ow_base

    def used(self) -> Decimal:
        return self.ytd_ow_wage + self.ytd_bonus_base

    def absorb_bonus(self, bonus: Decimal, reserved_ow: Decimal = _ZERO) -> Decimal:
        """Return the CPF base of ``bonus`` and count it against the ceiling.

        ``reserved_ow`` is ordinary wage still to be paid later in the same
        calendar year; it is held back so the year's ordinary wages never push
        the annual total past the ceiling.
        """
        base = bonus_cpf_base(bonus, self.used() + reserved_ow, self.aw_ceiling)
        self.ytd_bonus_base += base
        return base


__all__ = ["cpf_attracting_wage", "bonus_cpf_base", "AnnualWageTracker"]
