"""
Proration Engine — payable days and prorated earnings
Payable days are taken from the attendance register (present + EL + SL + CL,
capped at the calendar days of the month). A date of leaving before the
period forces zero days; a date of leaving inside the period is only
recorded, the attendance already reflects the shortened month.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple, Union

from payroll_models import (
    Attendance, EarningComponent, Earnings, Employee, month_number, round_rupee,
)
from statutory_config import StatutoryConfig

logger = logging.getLogger(__name__)

LEFT_PREVIOUS_PERIOD = "Left Service (Previous Period)"


def days_in_month(month: Union[str, int], year: int) -> int:
    return calendar.monthrange(year, month_number(month))[1]


def period_bounds(month: Union[str, int], year: int) -> Tuple[date, date]:
    m = month_number(month)
    return date(year, m, 1), date(year, m, calendar.monthrange(year, m)[1])


@dataclass(frozen=True)
class Proration:
    days_in_month:   int
    payable_days:    float
    is_left_service: bool = False
    exit_remark:     str  = ""

    @property
    def factor(self) -> float:
        return self.payable_days / self.days_in_month if self.days_in_month else 0.0

    @property
    def is_zero(self) -> bool:
        return self.payable_days <= 0


def compute_payable_days(
    employee: Employee,
    attendance: Optional[Attendance],
    month: Union[str, int],
    year: int,
) -> Proration:
    days = days_in_month(month, year)
    start, end = period_bounds(month, year)
    att = attendance or Attendance.full_month(days)

    if employee.dol and employee.dol < start:
        logger.debug("Employee %s left on %s, before %s", employee.id, employee.dol, start)
        return Proration(days, 0, exit_remark=LEFT_PREVIOUS_PERIOD)

    left_in_period = bool(employee.dol and start <= employee.dol <= end)
    remark = f"Left Service: {employee.dol.isoformat()}" if left_in_period else ""

    worked = att.present_days + att.earned_leave + att.sick_leave + att.casual_leave
    payable = min(max(worked, 0), days)
    return Proration(days, payable, is_left_service=left_in_period, exit_remark=remark)


# ---------------------------------------------------------------------------
# Earnings
# ---------------------------------------------------------------------------

def prorate_earnings(
    employee: Employee,
    proration: Proration,
    attendance: Optional[Attendance],
    config: StatutoryConfig,
) -> Earnings:
    """
    Prorate every component on its own and round it; the gross is the sum of
    the rounded components, not a rounded sum.
    """
    factor = proration.factor
    amounts = {c.value: round_rupee(employee.component(c) * factor) for c in EarningComponent}

    bonus = 0
    encashed_days = attendance.encashed_days if attendance else 0
    encashment = leave_encashment(employee, config, proration.days_in_month, encashed_days)
    total = sum(amounts.values()) + bonus + encashment
    return Earnings(bonus=bonus, leave_encashment=encashment, total=total, **amounts)


def leave_wage_base(employee: Employee, config: StatutoryConfig) -> float:
    return employee.components_total(config.leave_wage_components)


def leave_encashment(employee: Employee, config: StatutoryConfig,
                     days: int, encashed_days: float) -> int:
    if not encashed_days or not days:
        return 0
    return round_rupee(leave_wage_base(employee, config) / days * encashed_days)


def standard_monthly_gross(employee: Employee) -> float:
    return employee.components_total(EarningComponent)
