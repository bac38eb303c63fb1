"""Projection settings.

Settings that are not part of the regulatory tables: ceiling overrides and how
CPF-paid loan repayments are attributed to household members.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .calculators.rates import RateTables


class LoanAttribution(str, Enum):
    """How a household-level loan deduction is charged to members' OA balances."""

    SPLIT_EVENLY = "split_evenly"
    DESIGNATED_MEMBER = "designated_member"
    POOLED = "pooled"


@dataclass(frozen=True)
class ProjectionSettings:
    """Options for a projection run.

    ``ow_ceiling`` and ``aw_ceiling`` default to the values shipped with the
    rate tables.  ``designated_member_id`` is required when
    ``loan_attribution`` is ``DESIGNATED_MEMBER``.
    """

    ow_ceiling: Optional[Decimal] = None
    aw_ceiling: Optional[Decimal] = None
    loan_attribution: LoanAttribution = LoanAttribution.SPLIT_EVENLY
    designated_member_id: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "loan_attribution", LoanAttribution(self.loan_attribution))
        except ValueError:
            raise ValueError(f"unknown loan attribution: {self.loan_attribution!r}") from None
        for name in ("ow_ceiling", "aw_ceiling"):
            value = getattr(self, name)
            if value is not None:
                value = Decimal(str(value))
                if value <= 0:
                    raise ValueError(f"{name} must be positive, got {value}")
                object.__setattr__(self, name, value)

    def resolve_ceilings(self, tables: RateTables):
        """Return ``(ow_ceiling, aw_ceiling)`` with table defaults filled in."""
        ow = tables.ow_ceiling if self.ow_ceiling is None else self.ow_ceiling
        aw = tables.aw_ceiling if self.aw_ceiling is None else self.aw_ceiling
        return ow, aw

    def validate(self, member_ids: Iterable[str]) -> None:
        if self.loan_attribution is LoanAttribution.DESIGNATED_MEMBER:
            if self.designated_member_id is None:
                raise ValueError("designated_member attribution needs designated_member_id")
            if self.designated_member_id not in set(member_ids):
                raise ValueError(
                    f"designated member {self.designated_member_id!r} is not in the household"
                )


__all__ = ["LoanAttribution", "ProjectionSettings"]
