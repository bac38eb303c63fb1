"""Tests for the ordinary and annual wage ceilings."""

from decimal import Decimal

from cpf_planner.calculators import ceilings

D = Decimal


def test_ordinary_wage_ceiling():
    assert ceilings.cpf_attracting_wage(D("6000"), D("8000")) == D("6000")
    assert ceilings.cpf_attracting_wage(D("9500"), D("8000")) == D("8000")
    assert ceilings.cpf_attracting_wage(D("-100"), D("8000")) == D("0")


def test_bonus_within_annual_ceiling():
    assert ceilings.bonus_cpf_base(D("12000"), D("72000"), D("102000")) == D("12000")


def test_bonus_clamped_to_remaining_ceiling():
    assert ceilings.bonus_cpf_base(D("12000"), D("96000"), D("102000")) == D("6000")


def test_bonus_after_ceiling_exhausted():
    assert ceilings.bonus_cpf_base(D("12000"), D("102000"), D("102000")) == D("0")
    assert ceilings.bonus_cpf_base(D("12000"), D("110000"), D("102000")) == D("0")
    assert ceilings.bonus_cpf_base(D("-5"), D("0"), D("102000")) == D("0")


def test_tracker_counts_bonuses_against_the_ceiling():
    tracker = ceilings.AnnualWageTracker(aw_ceiling=D("102000"), year=2025)
    for _ in range(12):
        tracker.record_ordinary(D("8000"))
    assert tracker.absorb_bonus(D("5000")) == D("5000")
    assert tracker.absorb_bonus(D("5000")) == D("1000")
    assert tracker.absorb_bonus(D("5000")) == D("0")
    assert tracker.used() == D("102000")


def test_tracker_resets_on_new_year():
    tracker = ceilings.AnnualWageTracker(aw_ceiling=D("102000"), year=2025)
    tracker.record_ordinary(D("8000"))
    assert tracker.roll_to(2025) is False
    assert tracker.used() == D("8000")
    assert tracker.roll_to(2026) is True
    assert tracker.used() == D("0")


def test_tracker_reserves_remaining_ordinary_wages():
    tracker = ceilings.AnnualWageTracker(aw_ceiling=D("102000"), year=2025)
    tracker.record_ordinary(D("8000"))
    # 11 more months of 8000 still to come this year
    assert tracker.absorb_bonus(D("100000"), reserved_ow=D("88000")) == D("6000")
