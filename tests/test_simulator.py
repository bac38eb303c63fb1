import logging
from datetime import date
from decimal import Decimal

from cpf_planner.calculators import simulator
from cpf_planner.calculators.inputs import MemberBonus, MemberInput

D = Decimal


def _member(wage="6000", dob=date(1985, 6, 1), bonuses=(), subject=True):
    return MemberInput(
        member_id="m1",
        name="Alex",
        date_of_birth=dob,
        base_monthly_wage=D(wage),
        subject_to_cpf=subject,
        account_for_bonus=bool(bonuses),
        bonus_schedule=tuple(MemberBonus(month, D(str(mult)), D(wage)) for month, mult in bonuses),
    )


def test_month_dates_and_age():
    assert simulator.month_date(date(2025, 1, 15), 1) == date(2025, 2, 15)
    assert simulator.month_date(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert simulator.age_at(date(1985, 6, 1), date(2025, 5, 31)) == 39
    assert simulator.age_at(date(1985, 6, 1), date(2025, 6, 1)) == 40


def test_baseline_month_is_empty():
    rows = simulator.simulate_member(_member(), horizon=12, baseline_date=date(2025, 1, 1))
    assert len(rows) == 13
    assert rows[0].total == D("0")
    assert rows[0].month_index == 0
    assert all(r.total == D("2220.00") for r in rows[1:])
    assert [r.month_index for r in rows] == list(range(13))


def test_ordinary_wage_capped():
    rows = simulator.simulate_member(_member(wage="10000"), horizon=3, baseline_date=date(2025, 1, 1))
    assert all(r.ow_base == D("8000") for r in rows[1:])
    assert rows[1].total == D("2960.00")


def test_rates_change_when_crossing_an_age_band():
    member = _member(wage="5000", dob=date(1969, 3, 10))
    rows = simulator.simulate_member(member, horizon=4, baseline_date=date(2025, 1, 1))
    assert rows[2].age == 55
    assert rows[2].total == D("1850.00")
    assert rows[3].age == 56
    assert rows[3].total == D("1625.00")
    assert rows[3].oa == D("599.95")


def test_december_bonus_within_ceiling():
    member = _member(bonuses=[(12, 2)])
    rows = simulator.simulate_member(member, horizon=12, baseline_date=date(2024, 12, 1))
    dec = rows[12]
    assert dec.date == date(2025, 12, 1)
    assert dec.bonus_gross == D("12000.00")
    assert dec.bonus_cpf_base == D("12000.00")
    assert dec.bonus.total == D("4440.00")
    assert dec.total == D("6660.00")
    assert not rows[11].bonus_scheduled


def test_december_bonus_clamped_by_annual_ceiling():
    member = _member(wage="8000", bonuses=[(12, 1.5)])
    rows = simulator.simulate_member(member, horizon=12, baseline_date=date(2024, 12, 1))
    dec = rows[12]
    assert dec.bonus_gross == D("12000.00")
    assert dec.bonus_cpf_base == D("6000")
    assert dec.bonus.total == D("6000") * D("0.37")
    assert dec.total == D("5180.00")


def test_second_bonus_in_month_gets_remaining_headroom():
    member = _member(wage="8000", bonuses=[(12, 0.75), (12, 1)])
    rows = simulator.simulate_member(member, horizon=12, baseline_date=date(2024, 12, 1))
    assert rows[12].bonus_gross == D("14000.00")
    assert rows[12].bonus_cpf_base == D("6000.00")


def test_exhausted_ceiling_is_distinguishable_from_no_bonus():
    member = _member(wage="8000", bonuses=[(12, 1)])
    rows = simulator.simulate_member(
        member, horizon=12, baseline_date=date(2024, 12, 1), aw_ceiling=D("96000"),
    )
    assert rows[12].bonus_scheduled
    assert rows[12].bonus_cpf_base == D("0")
    assert rows[12].bonus.total == D("0")
    assert rows[12].total == D("2960.00")
    assert not rows[11].bonus_scheduled


def test_mid_year_bonus_leaves_room_for_remaining_salary():
    member = _member(wage="8000", bonuses=[(6, 5)])
    rows = simulator.simulate_member(member, horizon=12, baseline_date=date(2024, 12, 1))
    assert rows[6].date == date(2025, 6, 1)
    assert rows[6].bonus_cpf_base == D("6000")
    year = [r for r in rows if r.date.year == 2025]
    assert sum(r.ow_base + r.bonus_cpf_base for r in year) == D("102000")


def test_annual_ceiling_resets_each_calendar_year():
    member = _member(wage="8000", bonuses=[(12, 1)])
    rows = simulator.simulate_member(member, horizon=15, baseline_date=date(2025, 9, 1))
    assert rows[3].date == date(2025, 12, 1)
    # only Oct-Dec of 2025 fall inside the projection
    assert rows[3].bonus_cpf_base == D("8000.00")
    assert rows[15].date == date(2026, 12, 1)
    assert rows[15].bonus_cpf_base == D("6000")


def test_missing_date_of_birth_contributes_nothing(caplog):
    with caplog.at_level(logging.INFO, logger="cpf_planner"):
        rows = simulator.simulate_member(_member(dob=None), horizon=6, baseline_date=date(2025, 1, 1))
    assert all(r.total == D("0") for r in rows)
    assert all(r.age is None for r in rows)
    assert "no date of birth" in caplog.text


def test_member_not_subject_to_cpf():
    rows = simulator.simulate_member(_member(subject=False), horizon=6, baseline_date=date(2025, 1, 1))
    assert all(r.total == D("0") for r in rows)
    assert rows[1].age == 39


def test_negative_wage_gives_zero_contribution():
    rows = simulator.simulate_member(_member(wage="-100"), horizon=2, baseline_date=date(2025, 1, 1))
    assert rows[1].ow_base == D("0")
    assert rows[1].total == D("0")
