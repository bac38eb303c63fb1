"""Tests for the contribution split and OA/SA/MA allocation."""

from decimal import Decimal

import pytest

from cpf_planner.calculators import contributions

D = Decimal


def test_age_40_salary_allocation():
    """$6,000 at age 40: 37% total, OA and SA by ratio, MA takes the remainder."""
    c = contributions.compute_contribution(D("6000"), age=40)
    assert c.total == D("2220.00")
    assert c.oa == D("1260.29")
    assert c.sa == D("419.80")
    assert c.ma == D("539.91")
    assert c.oa + c.sa + c.ma == c.total
    assert c.employee == D("1200.00")
    assert c.employer == D("1020.00")


def test_clamped_bonus_total():
    c = contributions.compute_contribution(D("6000"), age=40)
    assert c.total == D("6000") * D("0.37")


@pytest.mark.parametrize("wage", ["1", "1234.56", "3333.33", "5432.17", "7999.99", "8000"])
def test_allocation_reconciles_to_the_cent(wage):
    for age in range(0, 100, 3):
        c = contributions.compute_contribution(D(wage), age=age)
        assert c.oa + c.sa + c.ma == c.total
        assert c.employee + c.employer == c.total


def test_non_positive_base_gives_zero():
    assert contributions.compute_contribution(D("0"), age=30) == contributions.Contribution.zero()
    assert contributions.compute_contribution(D("-50"), age=30).total == D("0.00")


def test_contributions_add_field_by_field():
    a = contributions.compute_contribution(D("6000"), age=40)
    b = contributions.compute_contribution(D("1000"), age=40)
    s = a + b
    assert s.total == a.total + b.total
    assert s.oa + s.sa + s.ma == s.total


def test_calculate_cpf_applies_ow_ceiling():
    snap = contributions.calculate_cpf(10000, age=30)
    assert snap.cpf_applicable_amount == D("8000")
    assert snap.total == D("2960.00")
    assert snap.employee == D("1600.00")
    assert snap.employer == D("1360.00")
    assert snap.net_take_home == D("8400.00")


def test_calculate_cpf_older_member():
    snap = contributions.calculate_cpf("5000", age=62)
    assert snap.total == D("1175.00")
    assert snap.employee == D("575.00")
    assert snap.employer == D("600.00")


def test_to_money_rounds_half_up():
    assert contributions.to_money(D("1.005")) == D("1.01")
    assert contributions.to_money(2.5) == D("2.50")
