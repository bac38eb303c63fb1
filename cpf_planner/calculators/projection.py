"""Household CPF balance projection.

:func:`project` is the entry point: it normalises household records, runs the
monthly simulator for every member, overlays CPF-funded loan repayments and
returns the ordered list of :class:`ProjectionDataPoint` (``horizon + 1``
points, month 0 being the all-zero baseline).

The remaining helpers shape that list for reporting:

* :func:`series` picks the lines a chart needs (cumulative or monthly, totals
  or per-account, one member or everyone plus the household);
* :func:`summary` gives the headline figures;
* :func:`to_frame` returns a ``pandas.DataFrame`` with one row per month.

The computation is deterministic: the only date it uses is the supplied
baseline, so identical inputs always give identical output.

Example
-------

>>> from datetime import date
>>> members = [{"id": "a", "name": "Alex", "dateOfBirth": "1985-06-01"}]
>>> incomes = [{"familyMemberId": "a", "amount": "6000", "frequency": "monthly",
...             "subjectToCpf": True}]
>>> points = project(members, incomes, horizon=12, baseline_date=date(2025, 1, 1))
>>> len(points), points[-1].household.cumulative.total
(13, Decimal('26640.00'))
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..settings import ProjectionSettings
from .aggregator import ProjectionDataPoint, aggregate
from .contributions import ZERO
from .inputs import (
    HouseholdMember,
    IncomeStream,
    build_projection_inputs,
    validate_horizon,
)
from .loans import LoanDeduction
from .rates import RateTables, default_rate_tables
from .simulator import simulate_member

logger = logging.getLogger(__name__)

_ACCOUNTS = ("oa", "sa", "ma")


def project(
    members: Iterable[Union[HouseholdMember, Mapping]],
    incomes: Iterable[Union[IncomeStream, Mapping]],
    horizon: int,
    baseline_date: date,
    loan_deductions: Sequence[LoanDeduction] = (),
    settings: Optional[ProjectionSettings] = None,
    tables: Optional[RateTables] = None,
) -> List[ProjectionDataPoint]:
    """Project household CPF contributions and balances.

    Parameters
    ----------
    members : iterable
        Household members (``HouseholdMember`` or ``{"id", "name", "dateOfBirth"}``).
    incomes : iterable
        Income streams (``IncomeStream`` or data-layer income records).
    horizon : int
        Number of months to project.
    baseline_date : date
        Date treated as month 0.
    loan_deductions : sequence of LoanDeduction, optional
        CPF-funded loan repayments, e.g. from
        :func:`~cpf_planner.calculators.inputs.extract_loan_deductions`.
    settings : ProjectionSettings, optional
        Ceiling overrides and loan attribution.
    tables : RateTables, optional
        Rate tables; defaults to the packaged tables.

    Returns
    -------
    list of ProjectionDataPoint
    """
    horizon = validate_horizon(horizon)
    settings = settings or ProjectionSettings()
    tables = tables or default_rate_tables()
    ow_ceiling, aw_ceiling = settings.resolve_ceilings(tables)

    inputs = build_projection_inputs(members, incomes)
    settings.validate(m.member_id for m in inputs)
    logger.info(
        f"Projecting CPF for {len(inputs)} members over {horizon} months from "
        f"{baseline_date:%Y-%m} (tables {tables.version})"
    )

    rows = {
        m.member_id: simulate_member(
            m, horizon, baseline_date, tables=tables,
            ow_ceiling=ow_ceiling, aw_ceiling=aw_ceiling,
        )
        for m in inputs
    }
    points = aggregate(inputs, rows, baseline_date, horizon, loan_deductions, settings)
    logger.info(
        f"Projection complete: household balance {points[-1].household.cumulative.total} "
        f"after {horizon} months"
    )
    return points


def series(
    points: Sequence[ProjectionDataPoint],
    view: str = "cumulative",
    breakdown: str = "total",
    member_id: Optional[str] = None,
) -> Dict[str, List[Decimal]]:
    """Named value lists for charting.

    Parameters
    ----------
    view : {"cumulative", "monthly"}
        Running balances or each month's contribution.
    breakdown : {"total", "accounts"}
        One line per member, or separate OA/SA/MA lines.
    member_id : str, optional
        Restrict to one member.  Otherwise every member is included, plus the
        household when there is more than one member.

    Returns
    -------
    dict
        ``{"<member>": [...]}`` or ``{"<member>_oa": [...], ...}``; household
        keys use ``"household"``.
    """
    if view not in ("cumulative", "monthly"):
        raise ValueError(f"view must be 'cumulative' or 'monthly', got {view!r}")
    if breakdown not in ("total", "accounts"):
        raise ValueError(f"breakdown must be 'total' or 'accounts', got {breakdown!r}")
    if not points:
        return {}

    member_ids = list(points[0].members)
    if member_id is not None:
        if member_id not in points[0].members:
            raise KeyError(f"unknown member {member_id!r}")
        member_ids = [member_id]
    targets = [(mid, lambda p, mid=mid: p.members[mid]) for mid in member_ids]
    if member_id is None and len(member_ids) > 1:
        targets.append(("household", lambda p: p.household))

    fields = ("total",) if breakdown == "total" else _ACCOUNTS
    out: Dict[str, List[Decimal]] = {}
    for name, pick in targets:
        for acct in fields:
            key = name if breakdown == "total" else f"{name}_{acct}"
            out[key] = [getattr(getattr(pick(p), view), acct) for p in points]
    return out


def summary(points: Sequence[ProjectionDataPoint]) -> Dict[str, Decimal]:
    """Headline figures for a projection.

    ``monthly_household_cpf`` is the first projected month's contribution,
    ``projected_cumulative`` the final household balance, ``total_earned`` the
    sum of all contributions and ``total_loan_deductions`` what was deducted
    for loans.  ``net_change`` is the balance change over the horizon.
    """
    if not points:
        return {
            "monthly_household_cpf": ZERO,
            "projected_cumulative": ZERO,
            "total_earned": ZERO,
            "total_loan_deductions": ZERO,
            "net_change": ZERO,
        }
    first, last = points[0], points[-1]
    return {
        "monthly_household_cpf": points[1].household.monthly.total if len(points) > 1 else ZERO,
        "projected_cumulative": last.household.cumulative.total,
        "total_earned": sum((p.household.monthly.total for p in points), ZERO),
        "total_loan_deductions": last.household.cumulative_loan_deduction,
        "net_change": last.household.cumulative.total - first.household.cumulative.total,
    }


def to_frame(points: Sequence[ProjectionDataPoint]) -> pd.DataFrame:
    """One row per month with the flattened dashboard columns.

    Monetary columns are converted to ``float64`` for analysis and plotting;
    use :meth:`ProjectionDataPoint.to_dict` where exact decimals are needed.
    """
    records = [p.to_dict() for p in points]
    df = pd.DataFrame.from_records(records)
    if df.empty:
        return df
    df["date"] = pd.to_datetime([p.date for p in points])
    df = df.set_index("monthIndex")
    money_cols = [c for c in df.columns if c not in ("month", "date")]
    df[money_cols] = df[money_cols].astype(np.float64)
    return df


__all__ = ["project", "series", "summary", "to_frame"]
