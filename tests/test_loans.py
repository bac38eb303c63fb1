from decimal import Decimal

import pytest

from cpf_planner.calculators import loans
from cpf_planner.settings import LoanAttribution, ProjectionSettings

D = Decimal


def test_deduction_active_window():
    d = loans.LoanDeduction(monthly_amount=D("500"), duration_months=3)
    assert [m for m in range(6) if d.is_active(m)] == [1, 2, 3]
    later = loans.LoanDeduction(monthly_amount=D("500"), duration_months=2, start_month=5)
    assert [m for m in range(10) if later.is_active(m)] == [5, 6]


def test_deduction_rejects_bad_window():
    with pytest.raises(ValueError):
        loans.LoanDeduction(monthly_amount=D("500"), duration_months=3, start_month=0)
    with pytest.raises(ValueError):
        loans.LoanDeduction(monthly_amount=D("500"), duration_months=-1)


def test_split_evenly_keeps_every_cent():
    shares = loans.split_evenly(D("100.00"), 3)
    assert shares == [D("33.34"), D("33.33"), D("33.33")]
    assert sum(shares) == D("100.00")
    assert loans.split_evenly(D("100.00"), 0) == []


def test_clamp_deduction():
    assert loans.clamp_deduction(D("500"), D("300")) == D("300")
    assert loans.clamp_deduction(D("500"), D("800")) == D("500")
    assert loans.clamp_deduction(D("500"), D("-5")) == D("0")
    assert loans.clamp_deduction(D("0"), D("100")) == D("0")


def test_apply_pooled_pro_rata():
    shares = loans.apply_pooled(D("300.00"), {"a": D("100.00"), "b": D("300.00")})
    assert shares == {"a": D("75.00"), "b": D("225.00")}


def test_apply_pooled_clamps_to_household_balance():
    shares = loans.apply_pooled(D("1000.00"), {"a": D("100.00"), "b": D("300.00")})
    assert shares == {"a": D("100.00"), "b": D("300.00")}


def test_apply_pooled_hands_out_leftover_cents():
    shares = loans.apply_pooled(D("0.03"), {"a": D("1.00"), "b": D("1.00")})
    assert shares == {"a": D("0.02"), "b": D("0.01")}


def test_scheduled_amounts_split_evenly_by_default():
    deductions = [loans.LoanDeduction(monthly_amount=D("1000"), duration_months=12)]
    per_member, pooled = loans.scheduled_amounts(
        deductions, 1, ["a", "b", "c"], ["a", "b"], ProjectionSettings(),
    )
    assert per_member == {"a": D("500.00"), "b": D("500.00"), "c": D("0")}
    assert pooled == D("0")


def test_scheduled_amounts_outside_window():
    deductions = [loans.LoanDeduction(monthly_amount=D("1000"), duration_months=2)]
    for month in (0, 3):
        per_member, pooled = loans.scheduled_amounts(
            deductions, month, ["a"], ["a"], ProjectionSettings(),
        )
        assert per_member == {"a": D("0")}


def test_member_specific_deduction():
    deductions = [loans.LoanDeduction(monthly_amount=D("700"), duration_months=12, member_id="b")]
    per_member, _ = loans.scheduled_amounts(deductions, 1, ["a", "b"], ["a", "b"], ProjectionSettings())
    assert per_member == {"a": D("0"), "b": D("700.00")}


def test_designated_member_attribution():
    settings = ProjectionSettings(
        loan_attribution=LoanAttribution.DESIGNATED_MEMBER, designated_member_id="a",
    )
    deductions = [loans.LoanDeduction(monthly_amount=D("1000"), duration_months=12)]
    per_member, _ = loans.scheduled_amounts(deductions, 1, ["a", "b"], ["a", "b"], settings)
    assert per_member == {"a": D("1000.00"), "b": D("0")}


def test_pooled_attribution():
    settings = ProjectionSettings(loan_attribution="pooled")
    deductions = [
        loans.LoanDeduction(monthly_amount=D("1000"), duration_months=12),
        loans.LoanDeduction(monthly_amount=D("250"), duration_months=12),
    ]
    per_member, pooled = loans.scheduled_amounts(deductions, 1, ["a", "b"], ["a", "b"], settings)
    assert per_member == {"a": D("0"), "b": D("0")}
    assert pooled == D("1250.00")


def test_settings_validation():
    with pytest.raises(ValueError):
        ProjectionSettings(loan_attribution="whoever_pays")
    with pytest.raises(ValueError):
        ProjectionSettings(ow_ceiling=0)
    settings = ProjectionSettings(loan_attribution="designated_member", designated_member_id="z")
    with pytest.raises(ValueError):
        settings.validate(["a", "b"])
    with pytest.raises(ValueError):
        ProjectionSettings(loan_attribution="designated_member").validate(["a"])
