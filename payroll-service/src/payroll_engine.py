"""
Payroll Engine — monthly pay for one employee
Turns an employee's monthly facts into a fully itemised PayrollResult:

  1. Payable days and prorated earnings (may short-circuit at zero days)
  2. PF wage basis (Code-88 allowance rule) → EPF / EPS / VPF
  3. ESI, Professional Tax, LWF, income tax
  4. Fine and advance recovery capped against what remains
  5. Leave ledger snapshot and gratuity accrual

calculate() is pure: no I/O, no clock, no shared state. Identical inputs give
identical results, so a batch can be evaluated concurrently.

Usage:
    result = calculate(employee, StatutoryConfig(), "April", 2025,
                       attendance=Attendance(present_days=30))
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from enum import Enum
from typing import Iterable, Optional, Union

from leave_snapshot import build_leave_snapshot
from payroll_models import (
    AdvanceLedger, Attendance, CalculationOptions, Deductions, EmployerContributions,
    Employee, FineRecord, LeaveLedger, PayrollResult, StatutoryWages,
    advance_ledger_from_dict, attendance_from_dict, employee_from_dict, fine_from_dict,
    leave_ledger_from_dict, month_name, parse_flag, round_rupee,
)
from pf_contribution import compute_pf_contribution
from proration import compute_payable_days, prorate_earnings, standard_monthly_gross
from recovery import StatutoryTotals, apply_recoveries
from statutory_config import PayrollError, StatutoryConfig, config_from_dict, validate_config
from statutory_deductions import (
    compute_esi, compute_income_tax, compute_lwf, compute_professional_tax,
)
from wage_basis import compute_wage_basis, esi_wage_basis

logger = logging.getLogger(__name__)


def find_fine(
    fines: Optional[Iterable[FineRecord]],
    employee_id: str,
    month: Union[str, int],
    year: int,
) -> Optional[FineRecord]:
    return next((f for f in fines or () if f.matches(employee_id, month, year)), None)


def gratuity_accrual(basic: float, da: float) -> int:
    """Monthly provision at 15 days' wages per year of service (26-day month)."""
    return round_rupee(((basic + da) * 15 / 26) / 12)


def calculate(
    employee: Employee,
    config: StatutoryConfig,
    month: Union[str, int],
    year: int,
    attendance: Optional[Attendance] = None,
    leave_ledger: Optional[LeaveLedger] = None,
    advance_ledger: Optional[AdvanceLedger] = None,
    options: Optional[CalculationOptions] = None,
    fines: Optional[Iterable[FineRecord]] = None,
) -> PayrollResult:
    options = options or CalculationOptions()
    period = month_name(month)

    proration = compute_payable_days(employee, attendance, period, year)
    att = attendance or Attendance.full_month(proration.days_in_month)
    snapshot = build_leave_snapshot(leave_ledger, att, employee.id)

    if proration.is_zero:
        logger.debug("No payable days for %s in %s %s", employee.id, period, year)
        return PayrollResult(
            employee_id     = employee.id,
            month           = period,
            year            = year,
            days_in_month   = proration.days_in_month,
            payable_days    = 0,
            is_left_service = proration.is_left_service,
            remarks         = (proration.exit_remark,) if proration.exit_remark else (),
            leave_snapshot  = snapshot,
        )

    # Earnings
    earnings = prorate_earnings(employee, proration, att, config)
    gross = earnings.total

    # PF
    basis = compute_wage_basis(earnings, config)
    pf = compute_pf_contribution(employee, basis, config)

    # ESI / PT / LWF / IT
    esi = compute_esi(employee, esi_wage_basis(basis, employee), gross, period, config)
    pt = compute_professional_tax(
        employee, gross, standard_monthly_gross(employee), period, year, config)
    lwf_employee, lwf_employer = compute_lwf(employee, gross, period, config)
    fine = find_fine(fines, employee.id, period, year)
    income_tax = compute_income_tax(gross, config, fine)

    statutory = StatutoryTotals(
        epf = pf.epf_employee,
        vpf = pf.vpf_employee,
        esi = esi.employee,
        pt  = pt,
        it  = income_tax,
        lwf = lwf_employee,
    )
    recovery = apply_recoveries(gross, statutory, advance_ledger, fine,
                                options.restrict_to_50_percent)

    remarks = [r for r in (proration.exit_remark, esi.remark) if r]
    remarks.extend(recovery.remarks)

    return PayrollResult(
        employee_id   = employee.id,
        month         = period,
        year          = year,
        days_in_month = proration.days_in_month,
        payable_days  = proration.payable_days,
        earnings      = earnings,
        deductions    = Deductions(
            epf              = statutory.epf,
            vpf              = statutory.vpf,
            esi              = statutory.esi,
            pt               = statutory.pt,
            it               = statutory.it,
            lwf              = statutory.lwf,
            fine             = recovery.fine,
            advance_recovery = recovery.advance,
            total            = recovery.total_deductions,
        ),
        employer_contributions = EmployerContributions(
            epf = pf.epf_employer,
            eps = pf.eps_employer,
            esi = esi.employer,
            lwf = lwf_employer,
        ),
        wages = StatutoryWages(
            base_pf_wage = pf.base_pf_wage,
            epf_wage     = pf.epf_wage,
            eps_wage     = pf.eps_wage,
            esi_wage     = esi.esi_wage,
            pension_rule = pf.rule.value if pf.rule else None,
        ),
        gratuity_accrual       = gratuity_accrual(earnings.basic, earnings.da),
        net_pay                = recovery.net_pay,
        is_code88              = pf.is_code88,
        is_esi_code_wages_used = esi.is_code_wages_used,
        is_left_service        = proration.is_left_service,
        remarks                = tuple(remarks),
        fine_reason            = fine.reason if fine and fine.amount else "",
        leave_snapshot         = snapshot,
    )


# ---------------------------------------------------------------------------
# Serialisation + API wrapper
# ---------------------------------------------------------------------------

def _json_value(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    return value


def result_to_dict(result) -> dict:
    """PayrollResult (or any ledger dataclass) → JSON-ready dict."""
    return _json_value(asdict(result))


def calculate_payroll_api(params: dict) -> dict:
    """JSON wrapper for Flask endpoint."""
    try:
        config = validate_config(config_from_dict(params.get("config") or {}))
        employee = employee_from_dict(params.get("employee") or {})
        result = calculate(
            employee,
            config,
            params.get("month") or "April",
            int(params.get("year") or 2025),
            attendance     = attendance_from_dict(params.get("attendance")),
            leave_ledger   = leave_ledger_from_dict(params.get("leave_ledger")),
            advance_ledger = advance_ledger_from_dict(params.get("advance_ledger")),
            options        = CalculationOptions(
                restrict_to_50_percent=parse_flag(params.get("restrict_to_50_percent"))),
            fines          = [fine_from_dict(f) for f in params.get("fines") or [] if f],
        )
    except (PayrollError, ValueError, KeyError, TypeError) as e:
        return {"error": str(e)}
    return result_to_dict(result)
