"""
Leave Snapshot — ledger state frozen with each payroll result.
Attendance is the authority for leave consumed in the period; the snapshot
overwrites availed / encashed from it and recomputes each balance.
"""

from __future__ import annotations

from typing import Optional

from payroll_models import Attendance, CasualLeave, EarnedLeave, LeaveLedger, SickLeave


def build_leave_snapshot(
    ledger: Optional[LeaveLedger],
    attendance: Optional[Attendance],
    employee_id: str = "",
) -> LeaveLedger:
    ledger = ledger or LeaveLedger(employee_id=employee_id)
    att = attendance or Attendance()

    el = EarnedLeave(
        opening  = ledger.el.opening,
        eligible = ledger.el.eligible,
        encashed = att.encashed_days,
        availed  = att.earned_leave,
        balance  = ledger.el.opening + ledger.el.eligible - att.encashed_days - att.earned_leave,
    )
    sl = SickLeave(
        eligible = ledger.sl.eligible,
        availed  = att.sick_leave,
        balance  = ledger.sl.eligible - att.sick_leave,
    )
    cl = CasualLeave(
        accumulation = ledger.cl.accumulation,
        availed      = att.casual_leave,
        balance      = ledger.cl.accumulation - att.casual_leave,
    )
    return LeaveLedger(employee_id=ledger.employee_id or employee_id, el=el, sl=sl, cl=cl)
