"""CPF contribution and allocation rate tables.

Contribution rates and the split of each contribution into the Ordinary (OA),
Special (SA) and Medisave (MA) accounts both depend on the member's age.  The
regulatory schedule is published as age bands, so both tables are stored as an
ordered list of contiguous bands in ``data/cpf_rates.json`` and resolved with a
binary search over the band lower bounds.  The last band of each table is
open-ended (``max_age`` is ``null``).

Tables are validated once when they are loaded:

* the first band starts at age 0 and every following band starts one year
  after the previous band ends;
* only the last band may be open-ended;
* rates and ratios are non-negative;
* the OA/SA/MA ratios of every allocation band sum to exactly 1.

Example
-------

>>> tables = default_rate_tables()
>>> rate = contribution_rate(40, tables)
>>> str(rate.total_rate)
'0.37'
>>> alloc = allocation_ratio(40, tables)
>>> str(alloc.oa), str(alloc.sa), str(alloc.ma)
('0.5677', '0.1891', '0.2432')
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

_DEFAULT_RATE_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "cpf_rates.json"

_ZERO = Decimal("0")
_ONE = Decimal("1")


class RateTableError(ValueError):
    """Raised when a rate or allocation table is malformed."""


@dataclass(frozen=True)
class RateBand:
    """Contribution rates for ages ``min_age`` to ``max_age`` inclusive."""

    min_age: int
    max_age: Optional[int]
    employee_rate: Decimal
    employer_rate: Decimal

    @property
    def total_rate(self) -> Decimal:
        return self.employee_rate + self.employer_rate


@dataclass(frozen=True)
class AllocationBand:
    """Share of a contribution credited to each account for an age band."""

    min_age: int
    max_age: Optional[int]
    oa: Decimal
    sa: Decimal
    ma: Decimal


@dataclass(frozen=True)
class RateTables:
    """A versioned pair of contribution and allocation tables plus the wage ceilings."""

    version: str
    contribution_bands: Tuple[RateBand, ...]
    allocation_bands: Tuple[AllocationBand, ...]
    ow_ceiling: Decimal
    aw_ceiling: Decimal
    effective_date: Optional[str] = None
    _contribution_lowers: np.ndarray = field(init=False, repr=False, compare=False)
    _allocation_lowers: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        validate_bands(self.contribution_bands, "contribution")
        validate_bands(self.allocation_bands, "allocation")
        for band in self.contribution_bands:
            if band.employee_rate < _ZERO or band.employer_rate < _ZERO:
                raise RateTableError(
                    f"contribution band {band.min_age}-{band.max_age} has a negative rate"
                )
        for band in self.allocation_bands:
            if min(band.oa, band.sa, band.ma) < _ZERO:
                raise RateTableError(
                    f"allocation band {band.min_age}-{band.max_age} has a negative ratio"
                )
            if band.oa + band.sa + band.ma != _ONE:
                raise RateTableError(
                    f"allocation band {band.min_age}-{band.max_age} ratios sum to "
                    f"{band.oa + band.sa + band.ma}, expected 1"
                )
        if self.ow_ceiling <= _ZERO or self.aw_ceiling <= _ZERO:
            raise RateTableError("wage ceilings must be positive")

        object.__setattr__(
            self, "_contribution_lowers",
            np.array([b.min_age for b in self.contribution_bands], dtype=np.int64),
        )
        object.__setattr__(
            self, "_allocation_lowers",
            np.array([b.min_age for b in self.allocation_bands], dtype=np.int64),
        )


Band = Union[RateBand, AllocationBand]


def validate_bands(bands: Sequence[Band], name: str) -> None:
    """Check that ``bands`` are contiguous, non-overlapping and cover ``[0, inf)``."""
    if not bands:
        raise RateTableError(f"{name} table has no bands")
    if bands[0].min_age != 0:
        raise RateTableError(f"{name} table must start at age 0, starts at {bands[0].min_age}")
    for prev, band in zip(bands, bands[1:]):
        if prev.max_age is None:
            raise RateTableError(f"{name} table: only the last band may be open-ended")
        if band.min_age != prev.max_age + 1:
            raise RateTableError(
                f"{name} table: band starting at {band.min_age} does not follow "
                f"band ending at {prev.max_age}"
            )
    for band in bands:
        if band.max_age is not None and band.max_age < band.min_age:
            raise RateTableError(
                f"{name} table: band {band.min_age}-{band.max_age} is empty"
            )
    if bands[-1].max_age is not None:
        raise RateTableError(f"{name} table: last band must be open-ended")


def _opt_age(value) -> Optional[int]:
    return None if value is None else int(value)


def parse_rate_tables(raw: Dict) -> RateTables:
    """Build :class:`RateTables` from the JSON schema used by ``cpf_rates.json``.

    Numeric values are converted with ``Decimal(str(value))`` so tables built
    from ``float`` literals keep their printed precision.
    """
    def dec(value) -> Decimal:
        return value if isinstance(value, Decimal) else Decimal(str(value))

    try:
        contribution = tuple(
            RateBand(
                min_age=int(b["min_age"]),
                max_age=_opt_age(b.get("max_age")),
                employee_rate=dec(b["employee_rate"]),
                employer_rate=dec(b["employer_rate"]),
            )
            for b in raw["contribution_bands"]
        )
        allocation = tuple(
            AllocationBand(
                min_age=int(b["min_age"]),
                max_age=_opt_age(b.get("max_age")),
                oa=dec(b["oa"]),
                sa=dec(b["sa"]),
                ma=dec(b["ma"]),
            )
            for b in raw["allocation_bands"]
        )
        return RateTables(
            version=str(raw.get("version", "custom")),
            effective_date=raw.get("effective_date"),
            contribution_bands=contribution,
            allocation_bands=allocation,
            ow_ceiling=dec(raw["ow_ceiling"]),
            aw_ceiling=dec(raw["aw_ceiling"]),
        )
    except RateTableError:
        raise
    except (KeyError, TypeError) as exc:
        raise RateTableError(f"rate table is missing a field: {exc}") from exc
    except (InvalidOperation, ValueError) as exc:
        raise RateTableError(f"rate table has a non-numeric value: {exc}") from exc


def load_rate_tables(path: Optional[Path] = None) -> RateTables:
    """Load and validate rate tables from JSON.

    Parameters
    ----------
    path : Path, optional
        Path to a JSON file with the ``cpf_rates.json`` schema.  Defaults to
        the file shipped with the package.

    Returns
    -------
    RateTables
        The validated tables.
    """
    p = path or _DEFAULT_RATE_TABLE_PATH
    with open(p, "r", encoding="utf-8") as f:
        raw = json.load(f, parse_float=Decimal)
    tables = parse_rate_tables(raw)
    logger.info(
        f"Loaded CPF rate tables {tables.version} from {p} "
        f"({len(tables.contribution_bands)} contribution bands, "
        f"{len(tables.allocation_bands)} allocation bands)"
    )
    return tables


@lru_cache(maxsize=None)
def default_rate_tables() -> RateTables:
    """Return the packaged tables, loading them on first use."""
    return load_rate_tables()


def _band_index(lowers: np.ndarray, age) -> int:
    # Ages below the first band fall back to the first band; the last band is open-ended.
    idx = int(np.searchsorted(lowers, age, side="right")) - 1
    return max(idx, 0)


def contribution_rate(age, tables: Optional[RateTables] = None) -> RateBand:
    """Return the contribution band whose age range contains ``age``."""
    tables = tables or default_rate_tables()
    return tables.contribution_bands[_band_index(tables._contribution_lowers, age)]


def allocation_ratio(age, tables: Optional[RateTables] = None) -> AllocationBand:
    """Return the allocation band whose age range contains ``age``."""
    tables = tables or default_rate_tables()
    return tables.allocation_bands[_band_index(tables._allocation_lowers, age)]


__all__ = [
    "RateTableError",
    "RateBand",
    "AllocationBand",
    "RateTables",
    "validate_bands",
    "parse_rate_tables",
    "load_rate_tables",
    "default_rate_tables",
    "contribution_rate",
    "allocation_ratio",
]
