"""
Statutory Configuration — EPF / ESI / PT / LWF parameters
Holds the per-period statutory settings the engine reads:

  • EPF wage ceiling ₹15,000 and 12% / 12% contribution rates
  • ESI wage ceiling ₹21,000, 0.75% employee / 3.25% employer
  • Professional Tax default cycle and slabs (Tamil Nadu half-yearly)
  • Labour Welfare Fund cycle and flat amounts
  • Higher-contribution and leave-wage component selections

StatutoryConfig is frozen: it may change between pay periods but never
within one, and the same value can be shared by concurrent calculations.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from payroll_models import EarningComponent, component_set, parse_flag


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PayrollError(Exception):
    """Base class for payroll failures surfaced to callers."""


class ConfigurationError(PayrollError, ValueError):
    """Structurally invalid statutory configuration (precondition violation)."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PTCycle(str, Enum):
    MONTHLY     = "Monthly"
    HALF_YEARLY = "HalfYearly"


class LWFCycle(str, Enum):
    MONTHLY     = "Monthly"
    HALF_YEARLY = "HalfYearly"
    YEARLY      = "Yearly"


class HigherContributionMode(str, Enum):
    BY_EMPLOYEE              = "By Employee"
    BY_EMPLOYEE_AND_EMPLOYER = "By Employee & Employer"


class IncomeTaxMode(str, Enum):
    AUTO   = "Auto"
    MANUAL = "Manual"


class PFComplianceType(str, Enum):
    STATUTORY = "Statutory"
    VOLUNTARY = "Voluntary"


# ---------------------------------------------------------------------------
# Slabs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PTSlab:
    min:    float
    max:    float
    amount: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class PTRule:
    cycle: PTCycle
    slabs: Tuple[PTSlab, ...]


def slabs(*rows: Tuple[float, float, float]) -> Tuple[PTSlab, ...]:
    return tuple(PTSlab(lo, hi, amt) for lo, hi, amt in rows)


def find_slab(slab_table: Tuple[PTSlab, ...], value: float):
    """First slab whose inclusive [min, max] range holds value, else None."""
    return next((s for s in slab_table if s.contains(value)), None)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

EPF_CEILING        = 15_000
EPF_EMPLOYEE_RATE  = 0.12
EPF_EMPLOYER_RATE  = 0.12
EPS_RATE           = 0.0833   # 8.33% of EPS wages, carved out of employer share

ESI_CEILING        = 21_000
ESI_EMPLOYEE_RATE  = 0.0075
ESI_EMPLOYER_RATE  = 0.0325

PF_MANDATORY_HEADCOUNT = 20   # establishments with 20+ employees must be Statutory

DEFAULT_PT_SLABS = slabs(
    (0,      21_000,    0),
    (21_001, 30_000,    135),
    (30_001, 45_000,    315),
    (45_001, 60_000,    690),
    (60_001, 75_000,    1025),
    (75_001, 9_999_999, 1250),
)

DEFAULT_LEAVE_WAGE_COMPONENTS: FrozenSet[EarningComponent] = frozenset(
    {EarningComponent.BASIC, EarningComponent.DA}
)
DEFAULT_HIGHER_CONTRIBUTION_COMPONENTS: FrozenSet[EarningComponent] = frozenset(
    {EarningComponent.BASIC, EarningComponent.DA, EarningComponent.RETAINING}
)


@dataclass(frozen=True)
class StatutoryConfig:
    epf_ceiling:        float = EPF_CEILING
    epf_employee_rate:  float = EPF_EMPLOYEE_RATE
    epf_employer_rate:  float = EPF_EMPLOYER_RATE
    esi_ceiling:        float = ESI_CEILING
    esi_employee_rate:  float = ESI_EMPLOYEE_RATE
    esi_employer_rate:  float = ESI_EMPLOYER_RATE
    # Professional tax
    enable_professional_tax: bool = True
    pt_cycle:           PTCycle = PTCycle.HALF_YEARLY
    pt_slabs:           Tuple[PTSlab, ...] = DEFAULT_PT_SLABS
    # Labour welfare fund
    enable_lwf:         bool     = True
    lwf_cycle:          LWFCycle = LWFCycle.YEARLY
    lwf_employee_contribution: float = 10
    lwf_employer_contribution: float = 20
    lwf_follow_branch_state:   bool  = False
    # Higher contribution (wages above ceiling)
    enable_higher_contribution: bool = False
    higher_contribution_mode:   HigherContributionMode = HigherContributionMode.BY_EMPLOYEE
    higher_contribution_components: FrozenSet[EarningComponent] = DEFAULT_HIGHER_CONTRIBUTION_COMPONENTS
    leave_wage_components:      FrozenSet[EarningComponent] = DEFAULT_LEAVE_WAGE_COMPONENTS
    income_tax_mode:    IncomeTaxMode    = IncomeTaxMode.AUTO
    pf_compliance_type: PFComplianceType = PFComplianceType.STATUTORY

    @property
    def employer_pays_on_higher_wages(self) -> bool:
        return (self.enable_higher_contribution
                and self.higher_contribution_mode == HigherContributionMode.BY_EMPLOYEE_AND_EMPLOYER)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_RATE_FIELDS = ("epf_employee_rate", "epf_employer_rate", "esi_employee_rate", "esi_employer_rate")
_AMOUNT_FIELDS = ("epf_ceiling", "esi_ceiling", "lwf_employee_contribution", "lwf_employer_contribution")
_FLAG_FIELDS = ("enable_professional_tax", "enable_lwf", "lwf_follow_branch_state",
                "enable_higher_contribution")


def validate_config(config: StatutoryConfig) -> StatutoryConfig:
    """
    Precondition check owned by the caller; run once before a batch.
    Raises ConfigurationError listing every problem found.
    """
    problems = []
    for name in _AMOUNT_FIELDS:
        if getattr(config, name) < 0:
            problems.append(f"{name} must not be negative")
    for name in _RATE_FIELDS:
        rate = getattr(config, name)
        if rate < 0 or rate > 1:
            problems.append(f"{name} must be between 0 and 1 (got {rate})")
    for slab in config.pt_slabs:
        if slab.min > slab.max or slab.amount < 0:
            problems.append(f"invalid PT slab {slab.min}-{slab.max} → {slab.amount}")
    if problems:
        raise ConfigurationError("; ".join(problems))
    return config


# ---------------------------------------------------------------------------
# Dict loader
# ---------------------------------------------------------------------------

def _slabs_from_list(rows) -> Tuple[PTSlab, ...]:
    return tuple(PTSlab(float(r["min"]), float(r["max"]), float(r["amount"])) for r in rows)


def config_from_dict(params: Dict) -> StatutoryConfig:
    """Build a StatutoryConfig from JSON keys; unknown keys are ignored."""
    known = {f.name for f in fields(StatutoryConfig)}
    kwargs = {}
    for key, value in (params or {}).items():
        if key not in known or value is None:
            continue
        if key == "pt_slabs":
            value = _slabs_from_list(value)
        elif key == "pt_cycle":
            value = PTCycle(value)
        elif key == "lwf_cycle":
            value = LWFCycle(value)
        elif key == "higher_contribution_mode":
            value = HigherContributionMode(value)
        elif key == "income_tax_mode":
            value = IncomeTaxMode(value)
        elif key == "pf_compliance_type":
            value = PFComplianceType(value)
        elif key in ("higher_contribution_components", "leave_wage_components"):
            value = component_set(value)
        elif key in _FLAG_FIELDS:
            value = parse_flag(value)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            value = float(value)
        kwargs[key] = value
    return StatutoryConfig(**kwargs)
