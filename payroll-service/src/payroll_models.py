"""
Payroll Data Model — Indian statutory payroll
Immutable inputs and outputs shared by every calculator in the engine:

  • Employee master record (pay components, dates, PF / ESI options)
  • Attendance, leave ledger, advance ledger and fine records for a period
  • PayrollResult — fully itemised pay for one employee and month

Money is held in whole rupees once rounded. Rounding follows the statutory
conventions used on Indian pay sheets: half-away-from-zero for wages and
contributions, ceiling for ESI.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union


MONTHS: Tuple[str, ...] = tuple(calendar.month_name[1:])   # "January" … "December"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class EarningComponent(str, Enum):
    """Fixed earnings heads carried on the employee master."""
    BASIC      = "basic"
    DA         = "da"
    RETAINING  = "retaining"
    HRA        = "hra"
    CONVEYANCE = "conveyance"
    WASHING    = "washing"
    ATTIRE     = "attire"
    SPECIAL1   = "special1"
    SPECIAL2   = "special2"
    SPECIAL3   = "special3"


class ContributionType(str, Enum):
    REGULAR = "Regular"
    HIGHER  = "Higher"


class DeferredPension(str, Enum):
    """Election made by members crossing 58 (EPS maturity)."""
    NONE        = "none"
    WITH_EPS    = "WithEPS"
    WITHOUT_EPS = "WithoutEPS"
    OPT_OUT     = "OptOut"


class PayrollStatus(str, Enum):
    DRAFT     = "Draft"
    FINALIZED = "Finalized"


def month_number(month: Union[str, int]) -> int:
    """Accepts "April", "apr" or 4 and returns 4."""
    if isinstance(month, int):
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month}")
        return month
    key = str(month).strip().lower()
    for idx, name in enumerate(MONTHS, start=1):
        if key in (name.lower(), name[:3].lower()):
            return idx
    if key.isdigit():
        return month_number(int(key))
    raise ValueError(f"Invalid month: {month}")


def month_name(month: Union[str, int]) -> str:
    return MONTHS[month_number(month) - 1]


# ---------------------------------------------------------------------------
# Rounding helpers
# ---------------------------------------------------------------------------

def _decimal(value: float) -> Decimal:
    return Decimal(str(value))


def round_rupee(value: float) -> int:
    """Round to the nearest rupee, halves away from zero (2.5 → 3, −2.5 → −3)."""
    return int(_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def ceil_rupee(wage: float, rate: float) -> int:
    """wage × rate rounded up to the next rupee, computed exactly (ESI)."""
    return int((_decimal(wage) * _decimal(rate)).quantize(Decimal("1"), rounding=ROUND_CEILING))


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HigherPension:
    """Higher-pension option impact sub-record (EPFO joint option)."""
    contributed_before_2014: bool             = False
    employee_contribution:   ContributionType = ContributionType.REGULAR
    employer_contribution:   ContributionType = ContributionType.REGULAR
    higher_pension_opted:    bool             = False


@dataclass(frozen=True)
class Employee:
    """Employee master record. Component amounts are full-month figures."""
    id:                  str
    name:                str   = ""
    branch:              str   = ""
    basic:               float = 0.0
    da:                  float = 0.0
    retaining:           float = 0.0
    hra:                 float = 0.0
    conveyance:          float = 0.0
    washing:             float = 0.0
    attire:              float = 0.0
    special1:            float = 0.0
    special2:            float = 0.0
    special3:            float = 0.0
    dob:                 Optional[date] = None
    doj:                 Optional[date] = None
    dol:                 Optional[date] = None
    epf_membership_date: Optional[date] = None
    is_pf_exempt:        bool  = False
    is_esi_exempt:       bool  = False
    vpf_rate:            float = 0.0      # fraction of the PF basis, e.g. 0.05
    higher_pension:      HigherPension   = field(default_factory=HigherPension)
    deferred_pension:    DeferredPension = DeferredPension.NONE

    def component(self, comp: EarningComponent) -> float:
        return float(getattr(self, comp.value) or 0.0)

    def components_total(self, comps: Iterable[EarningComponent]) -> float:
        return sum(self.component(c) for c in comps)

    @property
    def is_pf_opted_out(self) -> bool:
        return self.deferred_pension == DeferredPension.OPT_OUT


@dataclass(frozen=True)
class Attendance:
    present_days:  float = 0.0
    earned_leave:  float = 0.0
    sick_leave:    float = 0.0
    casual_leave:  float = 0.0
    lop_days:      float = 0.0
    encashed_days: float = 0.0

    @classmethod
    def full_month(cls, days: int) -> "Attendance":
        return cls(present_days=days)


@dataclass(frozen=True)
class EarnedLeave:
    opening:  float = 0.0
    eligible: float = 0.0
    encashed: float = 0.0
    availed:  float = 0.0
    balance:  float = 0.0


@dataclass(frozen=True)
class SickLeave:
    eligible: float = 0.0
    availed:  float = 0.0
    balance:  float = 0.0


@dataclass(frozen=True)
class CasualLeave:
    accumulation: float = 0.0
    availed:      float = 0.0
    balance:      float = 0.0


@dataclass(frozen=True)
class LeaveLedger:
    employee_id: str         = ""
    el:          EarnedLeave = field(default_factory=EarnedLeave)
    sl:          SickLeave   = field(default_factory=SickLeave)
    cl:          CasualLeave = field(default_factory=CasualLeave)


@dataclass(frozen=True)
class AdvanceLedger:
    employee_id:         str   = ""
    opening:             float = 0.0    # carried forward from the previous month
    total_advance:       float = 0.0    # new advance granted this month
    monthly_installment: float = 0.0
    paid_amount:         float = 0.0    # manual repayments this month
    balance:             float = 0.0


@dataclass(frozen=True)
class FineRecord:
    employee_id: str
    month:       str
    year:        int
    amount:      float = 0.0
    reason:      str   = ""
    tax:         Optional[float] = None   # manual income-tax (TDS) override

    def matches(self, employee_id: str, month: Union[str, int], year: int) -> bool:
        if self.employee_id != employee_id or int(self.year) != int(year):
            return False
        try:
            return month_number(self.month) == month_number(month)
        except ValueError:
            return False


@dataclass(frozen=True)
class CalculationOptions:
    restrict_to_50_percent: bool = False


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Earnings:
    basic:            int = 0
    da:               int = 0
    retaining:        int = 0
    hra:              int = 0
    conveyance:       int = 0
    washing:          int = 0
    attire:           int = 0
    special1:         int = 0
    special2:         int = 0
    special3:         int = 0
    bonus:            int = 0
    leave_encashment: int = 0
    total:            int = 0

    def component(self, comp: EarningComponent) -> int:
        return getattr(self, comp.value)

    def components_total(self, comps: Iterable[EarningComponent]) -> int:
        return sum(self.component(c) for c in comps)


@dataclass(frozen=True)
class Deductions:
    epf:              int = 0
    vpf:              int = 0
    esi:              int = 0
    pt:               int = 0
    it:               int = 0
    lwf:              int = 0
    fine:             float = 0
    advance_recovery: float = 0
    total:            float = 0


@dataclass(frozen=True)
class EmployerContributions:
    epf: int = 0
    eps: int = 0
    esi: int = 0
    lwf: float = 0


@dataclass(frozen=True)
class StatutoryWages:
    """Wage columns reported on the PF ECR and ESI return."""
    base_pf_wage: int = 0
    epf_wage:     float = 0
    eps_wage:     float = 0
    esi_wage:     int = 0
    pension_rule: Optional[str] = None


@dataclass(frozen=True)
class PayrollResult:
    employee_id:            str
    month:                  str
    year:                   int
    days_in_month:          int
    payable_days:           float
    earnings:               Earnings              = field(default_factory=Earnings)
    deductions:             Deductions            = field(default_factory=Deductions)
    employer_contributions: EmployerContributions = field(default_factory=EmployerContributions)
    wages:                  StatutoryWages        = field(default_factory=StatutoryWages)
    gratuity_accrual:       int   = 0
    net_pay:                float = 0
    is_code88:              bool  = False
    is_esi_code_wages_used: bool  = False
    is_left_service:        bool  = False
    remarks:                Tuple[str, ...] = ()
    fine_reason:            str   = ""
    leave_snapshot:         Optional[LeaveLedger] = None
    status:                 Optional[PayrollStatus] = None


# ---------------------------------------------------------------------------
# JSON parsing helpers (HTTP layer)
# ---------------------------------------------------------------------------

def parse_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _num(d: Dict, key: str) -> float:
    """Numeric field; missing or JSON null reads as 0."""
    return float(d.get(key) or 0)


def parse_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("yes", "true", "1", "y")
    return bool(value)


def component_set(values: Iterable) -> FrozenSet[EarningComponent]:
    """Accepts a list of names or the legacy {"basic": true, …} mapping."""
    if isinstance(values, dict):
        values = [k for k, v in values.items() if v]
    return frozenset(EarningComponent(str(v).lower()) for v in values)


def employee_from_dict(d: Dict) -> Employee:
    hp = d.get("higher_pension") or {}
    return Employee(
        id                  = str(d.get("id") or d.get("employee_id") or ""),
        name                = d.get("name") or "",
        branch              = d.get("branch") or "",
        basic               = _num(d, "basic"),
        da                  = _num(d, "da"),
        retaining           = _num(d, "retaining"),
        hra                 = _num(d, "hra"),
        conveyance          = _num(d, "conveyance"),
        washing             = _num(d, "washing"),
        attire              = _num(d, "attire"),
        special1            = _num(d, "special1"),
        special2            = _num(d, "special2"),
        special3            = _num(d, "special3"),
        dob                 = parse_date(d.get("dob")),
        doj                 = parse_date(d.get("doj")),
        dol                 = parse_date(d.get("dol")),
        epf_membership_date = parse_date(d.get("epf_membership_date")),
        is_pf_exempt        = parse_flag(d.get("is_pf_exempt")),
        is_esi_exempt       = parse_flag(d.get("is_esi_exempt")),
        vpf_rate            = _num(d, "vpf_rate"),
        higher_pension      = HigherPension(
            contributed_before_2014 = parse_flag(hp.get("contributed_before_2014")),
            employee_contribution   = ContributionType(hp.get("employee_contribution") or "Regular"),
            employer_contribution   = ContributionType(hp.get("employer_contribution") or "Regular"),
            higher_pension_opted    = parse_flag(hp.get("higher_pension_opted")),
        ),
        deferred_pension    = DeferredPension(d.get("deferred_pension") or "none"),
    )


def attendance_from_dict(d: Optional[Dict]) -> Optional[Attendance]:
    if not d:
        return None
    return Attendance(
        present_days  = _num(d, "present_days"),
        earned_leave  = _num(d, "earned_leave"),
        sick_leave    = _num(d, "sick_leave"),
        casual_leave  = _num(d, "casual_leave"),
        lop_days      = _num(d, "lop_days"),
        encashed_days = _num(d, "encashed_days"),
    )


def leave_ledger_from_dict(d: Optional[Dict]) -> Optional[LeaveLedger]:
    if not d:
        return None
    el, sl, cl = d.get("el") or {}, d.get("sl") or {}, d.get("cl") or {}
    return LeaveLedger(
        employee_id = str(d.get("employee_id") or ""),
        el = EarnedLeave(**{k: _num(el, k) for k in ("opening", "eligible", "encashed", "availed", "balance")}),
        sl = SickLeave(**{k: _num(sl, k) for k in ("eligible", "availed", "balance")}),
        cl = CasualLeave(**{k: _num(cl, k) for k in ("accumulation", "availed", "balance")}),
    )


def advance_ledger_from_dict(d: Optional[Dict]) -> Optional[AdvanceLedger]:
    if not d:
        return None
    return AdvanceLedger(
        employee_id         = str(d.get("employee_id") or ""),
        opening             = _num(d, "opening"),
        total_advance       = _num(d, "total_advance"),
        monthly_installment = _num(d, "monthly_installment"),
        paid_amount         = _num(d, "paid_amount"),
        balance             = _num(d, "balance"),
    )


def fine_from_dict(d: Dict) -> FineRecord:
    tax = d.get("tax")
    return FineRecord(
        employee_id = str(d.get("employee_id") or ""),
        month       = str(d.get("month") or ""),
        year        = int(d.get("year") or 0),
        amount      = _num(d, "amount"),
        reason      = d.get("reason") or "",
        tax         = float(tax) if tax is not None else None,
    )
