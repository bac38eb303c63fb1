"""Household CPF contribution and balance projection.

``cpf_planner.calculators.projection.project`` turns household members, their
income streams and CPF-paid loans into a month-by-month forecast of CPF
contributions and OA/SA/MA balances for each member and the household.
"""

__version__ = "0.1.0"
