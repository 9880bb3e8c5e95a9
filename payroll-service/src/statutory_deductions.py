"""
Statutory Deductions — ESI, Professional Tax, LWF, Income Tax
  • ESI: 0.75% / 3.25% of ESI wages, rounded up; coverage drops only at the
    start of a contribution period (April / October)
  • Professional Tax: state slab by branch, monthly or half-yearly cycle
  • Labour Welfare Fund: flat amounts in the due months
  • Income tax: single-slab monthly approximation (10% above ₹7L after the
    ₹50,000 standard deduction)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple, Union

from jurisdiction import resolve_lwf_rule, resolve_pt_rule
from payroll_models import Employee, FineRecord, ceil_rupee, month_number, round_rupee
from statutory_config import (
    IncomeTaxMode, LWFCycle, PTCycle, PTRule, StatutoryConfig, find_slab,
)

logger = logging.getLogger(__name__)

OUT_OF_COVERAGE = "IP is out of coverage"
ESI_PERIOD_START_MONTHS = (4, 10)      # contribution periods: Apr–Sep, Oct–Mar
ESI_ROUNDING_TOLERANCE = 1

IT_STANDARD_DEDUCTION = 50_000
IT_THRESHOLD          = 700_000
IT_RATE               = 0.10


# ---------------------------------------------------------------------------
# ESI
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ESIContribution:
    esi_wage:              int = 0
    employee:              int = 0
    employer:              int = 0
    is_code_wages_used:    bool = False
    remark:                str = ""


def compute_esi(
    employee: Employee,
    esi_wage: int,
    gross: float,
    month: Union[str, int],
    config: StatutoryConfig,
) -> ESIContribution:
    if employee.is_esi_exempt:
        return ESIContribution()

    code_wages_used = abs(esi_wage - gross) > ESI_ROUNDING_TOLERANCE

    if esi_wage > config.esi_ceiling and month_number(month) in ESI_PERIOD_START_MONTHS:
        logger.debug("ESI wage %s above ceiling for %s at period start", esi_wage, employee.id)
        return ESIContribution(esi_wage=esi_wage, remark=OUT_OF_COVERAGE)

    return ESIContribution(
        esi_wage           = esi_wage,
        employee           = ceil_rupee(esi_wage, config.esi_employee_rate),
        employer           = ceil_rupee(esi_wage, config.esi_employer_rate),
        is_code_wages_used = code_wages_used,
    )


# ---------------------------------------------------------------------------
# Professional Tax
# ---------------------------------------------------------------------------

def half_year_block(month: Union[str, int], year: int) -> Tuple[date, date]:
    """April–September or October–March block containing the month."""
    m = month_number(month)
    if 4 <= m <= 9:
        return date(year, 4, 1), date(year, 9, 30)
    start_year = year - 1 if m <= 3 else year
    return date(start_year, 10, 1), date(start_year + 1, 3, 31)


def months_worked_in_block(doj: Optional[date], month: Union[str, int], year: int) -> int:
    block_start, block_end = half_year_block(month, year)
    start = max(doj, block_start) if doj else block_start
    months = 0
    if start <= block_end:
        months = (block_end.year - start.year) * 12 + (block_end.month - start.month) + 1
    return max(1, min(6, months))


def compute_professional_tax(
    employee: Employee,
    gross: float,
    standard_gross: float,
    month: Union[str, int],
    year: int,
    config: StatutoryConfig,
    rule: Optional[PTRule] = None,
) -> int:
    if not config.enable_professional_tax:
        return 0
    rule = rule or resolve_pt_rule(employee.branch, config)

    if rule.cycle == PTCycle.HALF_YEARLY:
        months = months_worked_in_block(employee.doj, month, year)
        slab = find_slab(rule.slabs, standard_gross * months)
        if slab and slab.amount > 0:
            return round_rupee(slab.amount / months)
        return 0

    if gross <= 0:
        return 0
    slab = find_slab(rule.slabs, gross)
    return round_rupee(slab.amount) if slab else 0


# ---------------------------------------------------------------------------
# Labour Welfare Fund
# ---------------------------------------------------------------------------

LWF_DUE_MONTHS = {
    LWFCycle.MONTHLY:     frozenset(range(1, 13)),
    LWFCycle.HALF_YEARLY: frozenset({6, 12}),
    LWFCycle.YEARLY:      frozenset({12}),
}


def compute_lwf(
    employee: Employee,
    gross: float,
    month: Union[str, int],
    config: StatutoryConfig,
) -> Tuple[float, float]:
    """Returns (employee, employer) LWF for the month."""
    if not config.enable_lwf or gross <= 0:
        return 0, 0
    rule = resolve_lwf_rule(employee.branch, config)
    if month_number(month) not in LWF_DUE_MONTHS[rule.cycle]:
        return 0, 0
    return rule.employee, rule.employer


# ---------------------------------------------------------------------------
# Income tax (simplified)
# ---------------------------------------------------------------------------

def compute_income_tax(
    gross: float,
    config: StatutoryConfig,
    fine: Optional[FineRecord] = None,
) -> int:
    if fine is not None and fine.tax is not None:
        return round_rupee(fine.tax)
    if config.income_tax_mode == IncomeTaxMode.MANUAL:
        return 0
    annual_taxable = gross * 12 - IT_STANDARD_DEDUCTION
    if annual_taxable > IT_THRESHOLD:
        return round_rupee((annual_taxable - IT_THRESHOLD) * IT_RATE / 12)
    return 0
