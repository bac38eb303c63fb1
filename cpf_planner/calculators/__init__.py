"""Helper package that exposes the CPF projection calculators.

The `calculators` package contains small, focused modules that each implement
one piece of the household CPF projection:

* ``rates`` – versioned age-band tables for contribution rates and OA/SA/MA allocation.
* ``ceilings`` – ordinary (monthly) and annual wage ceilings.
* ``contributions`` – contribution split and allocation for one wage payment.
* ``inputs`` – normalisation of household members, income streams and CPF-paid loans.
* ``simulator`` – month-by-month contributions for a single member.
* ``loans`` – OA deductions for CPF-funded loan repayments.
* ``aggregator`` – cumulative balances and household totals.
* ``projection`` – the ``project`` entry point and reporting views.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import rates, ceilings, contributions, loans, inputs, simulator, aggregator, projection  # noqa: F401

__all__ = [
    "rates",
    "ceilings",
    "contributions",
    "loans",
    "inputs",
    "simulator",
    "aggregator",
    "projection",
]
