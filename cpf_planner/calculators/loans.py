"""CPF-funded loan repayments.

Property loans serviced with CPF draw down the Ordinary Account every month.
A :class:`LoanDeduction` describes one such repayment stream; the overlay in
this module turns the active entries for a month into per-member amounts and
clamps them against the OA balance each member actually has.

The deduction never touches SA or MA and never changes what a member *earned*
that month: it only lowers the running OA balance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..settings import LoanAttribution, ProjectionSettings
from .contributions import CENT, ZERO, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanDeduction:
    """A monthly OA deduction active for ``duration_months`` from ``start_month``.

    ``start_month`` is a projection month index (month 1 is the first month
    after the baseline).  When ``member_id`` is set the whole amount is
    charged to that member, otherwise the run's attribution setting applies.
    """

    monthly_amount: Decimal
    duration_months: int
    start_month: int = 1
    member_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "monthly_amount", to_money(self.monthly_amount))
        if self.start_month < 1:
            raise ValueError(f"loan start_month must be >= 1, got {self.start_month}")
        if self.duration_months < 0:
            raise ValueError(f"loan duration_months must be >= 0, got {self.duration_months}")

    def is_active(self, month_index: int) -> bool:
        return self.start_month <= month_index < self.start_month + self.duration_months


def scheduled_amounts(
    deductions: Iterable[LoanDeduction],
    month_index: int,
    member_ids: Sequence[str],
    payer_ids: Sequence[str],
    settings: ProjectionSettings,
) -> Tuple[Dict[str, Decimal], Decimal]:
    """Scheduled (unclamped) deductions for ``month_index``.

    Returns ``(per_member, pooled)``.  ``payer_ids`` are the members a
    household-level deduction is split across.  Under ``POOLED`` attribution
    household-level amounts are summed into ``pooled`` and resolved later by
    :func:`apply_pooled`.
    """
    out: Dict[str, Decimal] = {mid: ZERO for mid in member_ids}
    pooled = ZERO
    if month_index < 1:
        return out, pooled
    for d in deductions:
        if not d.is_active(month_index) or d.monthly_amount <= 0:
            continue
        if d.member_id is not None:
            if d.member_id in out:
                out[d.member_id] += d.monthly_amount
            else:
                logger.warning(f"Loan deduction for unknown member {d.member_id!r} ignored")
            continue
        mode = settings.loan_attribution
        if mode is LoanAttribution.DESIGNATED_MEMBER:
            out[settings.designated_member_id] += d.monthly_amount
        elif mode is LoanAttribution.POOLED:
            pooled += d.monthly_amount
        elif payer_ids:
            for mid, share in zip(payer_ids, split_evenly(d.monthly_amount, len(payer_ids))):
                out[mid] += share
        else:
            logger.warning(
                f"No CPF-contributing member to charge loan deduction of {d.monthly_amount} "
                f"in month {month_index}"
            )
    return out, pooled


def split_evenly(amount: Decimal, n: int) -> List[Decimal]:
    """Split ``amount`` into ``n`` cent amounts; the first share takes the remainder."""
    if n <= 0:
        return []
    share = (amount / n).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * n
    shares[0] = amount - share * (n - 1)
    return shares


def clamp_deduction(scheduled: Decimal, available_oa: Decimal) -> Decimal:
    """Deduction actually applied: never more than the OA balance available."""
    if scheduled <= 0:
        return ZERO
    return min(scheduled, max(available_oa, ZERO))


def apply_pooled(amount: Decimal, available: Dict[str, Decimal]) -> Dict[str, Decimal]:
    """Charge a household-level ``amount`` against members pro rata to their OA.

    The amount is first clamped to the household OA balance.  Shares are
    rounded down to the cent and leftover cents go to members, in order, that
    still have balance to cover them.
    """
    balances = {mid: max(bal, ZERO) for mid, bal in available.items()}
    pool = sum(balances.values(), ZERO)
    amount = min(amount, pool)
    shares = {mid: ZERO for mid in balances}
    if amount <= 0:
        return shares
    for mid, bal in balances.items():
        shares[mid] = (amount * bal / pool).quantize(CENT, rounding=ROUND_DOWN)
    leftover = amount - sum(shares.values(), ZERO)
    while leftover > 0:
        for mid, bal in balances.items():
            if leftover <= 0:
                break
            if bal - shares[mid] >= CENT:
                shares[mid] += CENT
                leftover -= CENT
    return shares


__all__ = [
    "LoanDeduction",
    "scheduled_amounts",
    "split_evenly",
    "clamp_deduction",
    "apply_pooled",
]
