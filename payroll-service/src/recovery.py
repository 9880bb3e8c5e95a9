"""
Recovery Capper — fines and salary advance recovery
Statutory deductions are taken first; what is left of gross ("code gross
wages") bounds the non-statutory recoveries. Fines are always collected in
full. Advance recovery is cut back so that fine + advance never exceeds the
code gross wages, which keeps net pay at or above zero unless the fine on its
own is larger than what remains.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from payroll_models import AdvanceLedger, FineRecord, round_rupee

logger = logging.getLogger(__name__)

RESTRICT_SHARE = 0.5


@dataclass(frozen=True)
class StatutoryTotals:
    epf: int = 0
    vpf: int = 0
    esi: int = 0
    pt:  int = 0
    it:  int = 0
    lwf: float = 0

    @property
    def total(self) -> float:
        return self.epf + self.vpf + self.esi + self.pt + self.it + self.lwf


@dataclass(frozen=True)
class Recovery:
    code_gross_wages: float
    fine:             float
    advance:          float
    total_deductions: float
    net_pay:          float
    remarks:          Tuple[str, ...] = ()


def apply_recoveries(
    gross: float,
    statutory: StatutoryTotals,
    advance: Optional[AdvanceLedger],
    fine: Optional[FineRecord],
    restrict_to_50_percent: bool = False,
) -> Recovery:
    statutory_total = statutory.total
    code_gross = max(0, gross - statutory_total)
    fine_amount = fine.amount if fine else 0

    target = 0
    if advance:
        target = max(0, min(advance.monthly_installment, advance.balance))

    remarks = []
    if restrict_to_50_percent:
        limit = max(0, round_rupee(code_gross * RESTRICT_SHARE) - fine_amount)
        if limit < target:
            remarks.append(f"Advance recovery restricted to {limit:g} (50% of code gross wages)")
            target = limit

    if fine_amount > code_gross:
        advance_recovery = 0
        if target > 0:
            remarks.append("Advance recovery skipped: fine exceeds available wages")
        logger.debug("Fine %s exceeds code gross wages %s", fine_amount, code_gross)
    else:
        advance_recovery = min(target, code_gross - fine_amount)
        if advance_recovery < target:
            remarks.append(f"Advance recovery capped at {advance_recovery:g} (insufficient wages)")

    total = statutory_total + fine_amount + advance_recovery
    return Recovery(
        code_gross_wages = code_gross,
        fine             = fine_amount,
        advance          = advance_recovery,
        total_deductions = total,
        net_pay          = gross - total,
        remarks          = tuple(remarks),
    )
