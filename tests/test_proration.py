"""Payable days, date-of-leaving policy and per-component proration."""

from datetime import date

import pytest

from payroll_models import Attendance, EarningComponent, Employee, month_number, round_rupee
from proration import (
    LEFT_PREVIOUS_PERIOD, compute_payable_days, days_in_month, leave_encashment,
    prorate_earnings, standard_monthly_gross,
)
from statutory_config import StatutoryConfig


@pytest.mark.parametrize("month, year, expected", [
    ("January", 2025, 31),
    ("February", 2024, 29),
    ("February", 2023, 28),
    ("April", 2025, 30),
    (12, 2025, 31),
])
def test_days_in_month(month, year, expected):
    assert days_in_month(month, year) == expected


def test_month_number_accepts_names_and_abbreviations():
    assert month_number("april") == 4
    assert month_number("Oct") == 10
    assert month_number(7) == 7
    with pytest.raises(ValueError):
        month_number("Smarch")


def test_round_rupee_rounds_halves_away_from_zero():
    assert round_rupee(2500.5) == 2501
    assert round_rupee(2.5) == 3
    assert round_rupee(-2.5) == -3
    assert round_rupee(1249.4) == 1249


def test_payable_days_sum_of_present_and_paid_leave():
    emp = Employee(id="E1", basic=10_000)
    att = Attendance(present_days=20, earned_leave=2, sick_leave=1, casual_leave=1, lop_days=6)
    p = compute_payable_days(emp, att, "April", 2025)
    assert p.days_in_month == 30
    assert p.payable_days == 24


def test_payable_days_capped_at_days_in_month():
    emp = Employee(id="E1", basic=10_000)
    att = Attendance(present_days=30, earned_leave=5)
    p = compute_payable_days(emp, att, "April", 2025)
    assert p.payable_days == 30


def test_missing_attendance_treated_as_full_month():
    p = compute_payable_days(Employee(id="E1"), None, "February", 2024)
    assert p.payable_days == 29


def test_left_before_period_forces_zero_days():
    emp = Employee(id="E1", basic=10_000, dol=date(2025, 3, 15))
    p = compute_payable_days(emp, Attendance(present_days=30), "April", 2025)
    assert p.payable_days == 0
    assert p.is_zero
    assert p.exit_remark == LEFT_PREVIOUS_PERIOD


def test_left_during_period_trusts_attendance():
    emp = Employee(id="E1", basic=10_000, dol=date(2025, 4, 15))
    p = compute_payable_days(emp, Attendance(present_days=15), "April", 2025)
    assert p.payable_days == 15
    assert p.is_left_service
    assert p.exit_remark == "Left Service: 2025-04-15"


def test_leaving_after_period_has_no_effect():
    emp = Employee(id="E1", basic=10_000, dol=date(2025, 6, 30))
    p = compute_payable_days(emp, Attendance(present_days=30), "April", 2025)
    assert p.payable_days == 30
    assert not p.is_left_service
    assert p.exit_remark == ""


def test_each_component_rounded_independently():
    emp = Employee(id="E1", basic=10_001, hra=5_001, conveyance=1_001)
    att = Attendance(present_days=15)
    p = compute_payable_days(emp, att, "April", 2025)
    earnings = prorate_earnings(emp, p, att, StatutoryConfig())
    assert earnings.basic == 5001        # 5000.5 → 5001
    assert earnings.hra == 2501          # 2500.5 → 2501
    assert earnings.conveyance == 501    # 500.5 → 501
    # sum of rounded parts, one more than round(16003 × 0.5) would give
    assert earnings.total == 8003


def test_leave_encashment_uses_unprorated_leave_wage_components():
    emp = Employee(id="E1", basic=26_000, da=4_000, hra=6_000)
    att = Attendance(present_days=15, encashed_days=3)
    p = compute_payable_days(emp, att, "April", 2025)
    earnings = prorate_earnings(emp, p, att, StatutoryConfig())
    assert earnings.leave_encashment == 3000   # (26000 + 4000) / 30 × 3
    assert earnings.total == 13000 + 2000 + 3000 + 3000


def test_leave_encashment_follows_configured_components():
    emp = Employee(id="E1", basic=26_000, da=4_000, hra=6_000)
    cfg = StatutoryConfig(leave_wage_components=frozenset(
        {EarningComponent.BASIC, EarningComponent.DA, EarningComponent.HRA}))
    assert leave_encashment(emp, cfg, 30, 3) == 3600


def test_standard_monthly_gross_sums_all_components_unprorated():
    emp = Employee(id="E1", basic=10_000, da=2_000, hra=4_000, special3=500)
    assert standard_monthly_gross(emp) == 16_500
