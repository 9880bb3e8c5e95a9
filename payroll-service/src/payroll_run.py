"""
Payroll Run Manager — batch processing, draft / freeze / unlock
Coordinates the engine across an establishment for one pay period:

  • Pre-run gates: period lock, config validity, PF compliance type,
    EPS maturity (members aged 58+ must elect a deferred-pension option)
  • Batch calculation into Draft results; a failed batch leaves saved
    records untouched
  • Freeze: Draft → Finalized, with leave and advance ledger rollover
  • Unlock: Finalized → Draft, admin roles only, latest period only

Records are kept in memory per establishment; persistence belongs to the
caller.

Usage:
    manager = PayrollRunManager(config)
    drafts  = manager.run(employees, "April", 2025, attendances=...)
    manager.save_draft("April", 2025, drafts)
    rolled  = manager.freeze("April", 2025, attendances, leave_ledgers, advance_ledgers)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from payroll_engine import calculate, result_to_dict
from payroll_models import (
    AdvanceLedger, Attendance, CalculationOptions, CasualLeave, DeferredPension,
    EarnedLeave, Employee, FineRecord, LeaveLedger, PayrollResult, PayrollStatus,
    SickLeave, advance_ledger_from_dict, attendance_from_dict, employee_from_dict,
    fine_from_dict, leave_ledger_from_dict, month_name, month_number, parse_flag,
)
from proration import period_bounds
from statutory_config import (
    PF_MANDATORY_HEADCOUNT, PayrollError, PFComplianceType, StatutoryConfig,
    config_from_dict, validate_config,
)

logger = logging.getLogger(__name__)

EPS_MATURITY_AGE = 58
UNLOCK_ROLES = ("Administrator", "Developer")

# Monthly accruals credited on freeze
EL_ACCRUAL = 1.5
SL_ACCRUAL = 1.0
CL_ACCRUAL = 1.0

Period = Tuple[int, int]   # (year, month number)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PayrollRunError(PayrollError):
    """A payroll run could not proceed; saved records are unchanged."""


class PeriodLockedError(PayrollRunError):
    pass


class ComplianceError(PayrollRunError):
    pass


class EPSMaturityError(PayrollRunError):
    def __init__(self, employee_ids: List[str]):
        self.employee_ids = employee_ids
        super().__init__(
            f"EPS maturity: {len(employee_ids)} employee(s) aged {EPS_MATURITY_AGE}+ "
            f"without a deferred pension option: {', '.join(employee_ids)}"
        )


class CalculationError(PayrollRunError):
    def __init__(self, employee_id: str, cause: Exception):
        self.employee_id = employee_id
        super().__init__(f"Error during payroll calculation for {employee_id}: {cause}")


class UnlockError(PayrollRunError):
    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def age_on(dob: date, on: date) -> int:
    return on.year - dob.year - ((on.month, on.day) < (dob.month, dob.day))


def _period(month: Union[str, int], year: int) -> Period:
    return int(year), month_number(month)


@dataclass
class RolloverResult:
    leave_ledgers:   List[LeaveLedger]   = field(default_factory=list)
    advance_ledgers: List[AdvanceLedger] = field(default_factory=list)


def rollover_leave(ledger: LeaveLedger, attendance: Optional[Attendance]) -> LeaveLedger:
    """Closing balance from capacity − usage, then next month's accrual."""
    att = attendance or Attendance()
    el_closing = ledger.el.opening + ledger.el.eligible - (att.earned_leave + att.encashed_days)
    sl_closing = ledger.sl.eligible - att.sick_leave
    cl_closing = ledger.cl.accumulation - att.casual_leave
    return LeaveLedger(
        employee_id = ledger.employee_id,
        el = EarnedLeave(opening=el_closing, eligible=EL_ACCRUAL, encashed=0, availed=0,
                         balance=el_closing + EL_ACCRUAL),
        sl = SickLeave(eligible=sl_closing + SL_ACCRUAL, availed=0,
                       balance=sl_closing + SL_ACCRUAL),
        cl = CasualLeave(accumulation=cl_closing + CL_ACCRUAL, availed=0,
                         balance=cl_closing + CL_ACCRUAL),
    )


def rollover_advance(ledger: AdvanceLedger, recovery: float) -> AdvanceLedger:
    closing = ledger.balance - recovery
    return replace(ledger, opening=closing, total_advance=0, paid_amount=0, balance=closing)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class PayrollRunManager:

    def __init__(self, config: StatutoryConfig):
        self.config = config
        self._records: Dict[Period, List[PayrollResult]] = {}

    # ── Gates ───────────────────────────────────────────────────────────────

    def eps_maturity_blockers(self, employees: Iterable[Employee],
                              month: Union[str, int], year: int) -> List[str]:
        _, period_end = period_bounds(month, year)
        return [
            e.id for e in employees
            if not e.is_pf_exempt
            and e.dob is not None
            and age_on(e.dob, period_end) >= EPS_MATURITY_AGE
            and e.deferred_pension == DeferredPension.NONE
        ]

    def check_compliance(self, employees: List[Employee]) -> None:
        if (len(employees) >= PF_MANDATORY_HEADCOUNT
                and self.config.pf_compliance_type != PFComplianceType.STATUTORY):
            raise ComplianceError(
                f"PF compliance must be Statutory for {PF_MANDATORY_HEADCOUNT}+ employees "
                f"(found {len(employees)})"
            )

    # ── Run ─────────────────────────────────────────────────────────────────

    def run(
        self,
        employees: List[Employee],
        month: Union[str, int],
        year: int,
        attendances: Optional[Dict[str, Attendance]] = None,
        leave_ledgers: Optional[Dict[str, LeaveLedger]] = None,
        advance_ledgers: Optional[Dict[str, AdvanceLedger]] = None,
        fines: Optional[List[FineRecord]] = None,
        options: Optional[CalculationOptions] = None,
    ) -> List[PayrollResult]:
        if self.status(month, year) == PayrollStatus.FINALIZED.value:
            raise PeriodLockedError(f"Payroll for {month_name(month)} {year} is finalized; unlock it first")

        validate_config(self.config)
        self.check_compliance(employees)

        blockers = self.eps_maturity_blockers(employees, month, year)
        if blockers:
            logger.warning("Payroll run blocked for %s %s: EPS maturity %s",
                           month_name(month), year, blockers)
            raise EPSMaturityError(blockers)

        attendances = attendances or {}
        leave_ledgers = leave_ledgers or {}
        advance_ledgers = advance_ledgers or {}

        results = []
        for emp in employees:
            try:
                result = calculate(
                    emp, self.config, month, year,
                    attendance     = attendances.get(emp.id),
                    leave_ledger   = leave_ledgers.get(emp.id),
                    advance_ledger = advance_ledgers.get(emp.id),
                    options        = options,
                    fines          = fines,
                )
            except Exception as exc:
                logger.exception("Calculation failed for %s in %s %s", emp.id, month_name(month), year)
                raise CalculationError(emp.id, exc) from exc
            results.append(replace(result, status=PayrollStatus.DRAFT))

        logger.info("Calculated %d payslips for %s %s", len(results), month_name(month), year)
        return results

    # ── Draft / freeze / unlock ─────────────────────────────────────────────

    def save_draft(self, month: Union[str, int], year: int,
                   results: List[PayrollResult]) -> List[PayrollResult]:
        if self.status(month, year) == PayrollStatus.FINALIZED.value:
            raise PeriodLockedError(f"Payroll for {month_name(month)} {year} is finalized")
        if not results:
            raise PayrollRunError("No payroll data calculated; run the payroll first")
        drafts = [replace(r, status=PayrollStatus.DRAFT) for r in results]
        self._records[_period(month, year)] = drafts
        logger.info("Saved %d draft records for %s %s", len(drafts), month_name(month), year)
        return drafts

    def freeze(
        self,
        month: Union[str, int],
        year: int,
        attendances: Optional[Dict[str, Attendance]] = None,
        leave_ledgers: Optional[Iterable[LeaveLedger]] = None,
        advance_ledgers: Optional[Iterable[AdvanceLedger]] = None,
    ) -> RolloverResult:
        """Finalize the period and return next month's ledgers (inputs untouched)."""
        key = _period(month, year)
        records = self._records.get(key)
        if not records:
            raise PayrollRunError(f"No payroll data found to freeze for {month_name(month)} {year}")
        if self.status(month, year) == PayrollStatus.FINALIZED.value:
            raise PeriodLockedError(f"Payroll for {month_name(month)} {year} is already finalized")

        attendances = attendances or {}
        recoveries = {r.employee_id: r.deductions.advance_recovery for r in records}
        rollover = RolloverResult(
            leave_ledgers   = [rollover_leave(l, attendances.get(l.employee_id))
                               for l in leave_ledgers or ()],
            advance_ledgers = [rollover_advance(a, recoveries.get(a.employee_id, 0))
                               for a in advance_ledgers or ()],
        )
        self._records[key] = [replace(r, status=PayrollStatus.FINALIZED) for r in records]
        logger.info("Froze payroll for %s %s (%d records)", month_name(month), year, len(records))
        return rollover

    def unlock(self, month: Union[str, int], year: int, role: str) -> None:
        key = _period(month, year)
        if role not in UNLOCK_ROLES:
            raise UnlockError(f"Role {role!r} cannot unlock finalized payroll")
        if self.status(month, year) != PayrollStatus.FINALIZED.value:
            raise UnlockError(f"Payroll for {month_name(month)} {year} is not finalized")
        later = sorted(p for p in self._records if p > key)
        if later:
            y, m = later[0]
            raise UnlockError(
                f"Cannot unlock {month_name(month)} {year}: {month_name(m)} {y} already has saved payroll"
            )
        self._records[key] = [replace(r, status=PayrollStatus.DRAFT) for r in self._records[key]]
        logger.info("Unlocked payroll for %s %s (role=%s)", month_name(month), year, role)

    # ── Queries ─────────────────────────────────────────────────────────────

    def status(self, month: Union[str, int], year: int) -> str:
        records = self._records.get(_period(month, year))
        if not records:
            return "Unsaved"
        return (records[0].status or PayrollStatus.DRAFT).value

    def records(self, month: Union[str, int], year: int) -> List[PayrollResult]:
        return list(self._records.get(_period(month, year), []))


# ---------------------------------------------------------------------------
# Per-establishment managers + API wrapper
# ---------------------------------------------------------------------------

_managers: Dict[str, PayrollRunManager] = {}


def get_run_manager(establishment: str, config: Optional[StatutoryConfig] = None) -> PayrollRunManager:
    if establishment not in _managers:
        _managers[establishment] = PayrollRunManager(config or StatutoryConfig())
    elif config is not None:
        _managers[establishment].config = config
    return _managers[establishment]


def _by_employee(rows, parser) -> Dict:
    parsed = (parser(r) for r in rows or [] if r)
    return {p.employee_id: p for p in parsed if p}


def payroll_run_api(params: dict) -> dict:
    """JSON wrapper for Flask endpoint."""
    establishment = params.get("establishment") or "default"
    month = params.get("month") or "April"
    action = params.get("action") or "run"

    try:
        year = int(params.get("year") or 2025)
        config = config_from_dict(params["config"]) if params.get("config") else None
        manager = get_run_manager(establishment, config)

        if action in ("run", "save"):
            employees = [employee_from_dict(e) for e in params.get("employees") or [] if e]
            attendances = {str(a.get("employee_id") or ""): attendance_from_dict(a)
                           for a in params.get("attendances") or [] if a}
            results = manager.run(
                employees, month, year,
                attendances     = attendances,
                leave_ledgers   = _by_employee(params.get("leave_ledgers"), leave_ledger_from_dict),
                advance_ledgers = _by_employee(params.get("advance_ledgers"), advance_ledger_from_dict),
                fines           = [fine_from_dict(f) for f in params.get("fines") or [] if f],
                options         = CalculationOptions(
                    restrict_to_50_percent=parse_flag(params.get("restrict_to_50_percent"))),
            )
            if action == "save":
                results = manager.save_draft(month, year, results)
            return {"status": manager.status(month, year),
                    "results": [result_to_dict(r) for r in results]}
        elif action == "freeze":
            attendances = {str(a.get("employee_id") or ""): attendance_from_dict(a)
                           for a in params.get("attendances") or [] if a}
            rollover = manager.freeze(
                month, year, attendances,
                leave_ledgers   = list(_by_employee(params.get("leave_ledgers"), leave_ledger_from_dict).values()),
                advance_ledgers = list(_by_employee(params.get("advance_ledgers"), advance_ledger_from_dict).values()),
            )
            return {"status": manager.status(month, year),
                    "leave_ledgers":   [result_to_dict(l) for l in rollover.leave_ledgers],
                    "advance_ledgers": [result_to_dict(a) for a in rollover.advance_ledgers]}
        elif action == "unlock":
            manager.unlock(month, year, params.get("role") or "")
            return {"status": manager.status(month, year)}
        elif action == "status":
            return {"status": manager.status(month, year)}
        else:
            return {"error": f"Unknown action: {action}"}
    except (PayrollError, ValueError, KeyError, TypeError) as e:
        return {"error": str(e), "error_type": type(e).__name__}
