"""
EPF / EPS / VPF Contribution Calculator
Implements the EPFO higher-pension decision table driven by five flags:

  A — contributed on wages above the ceiling before 1 Sep 2014
  B — EPF membership date, pre / post 1 Sep 2014
  C — employee contribution type (Regular / Higher)
  D — employer contribution type (Regular / Higher)
  E — higher pension opted (joint option)

The EPS wage rule is looked up from PENSION_RULE_TABLE, an ordered list of
flag patterns; the first matching row wins. EPF and EPS wages are the
figures reported on the PF ECR.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from payroll_models import ContributionType, DeferredPension, Employee, round_rupee
from statutory_config import EPS_RATE, HigherContributionMode, StatutoryConfig
from wage_basis import WageBasis

logger = logging.getLogger(__name__)

EPS_CUTOFF = date(2014, 9, 1)


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

class MembershipEra(str, Enum):
    PRE_2014  = "pre_2014"
    POST_2014 = "post_2014"
    UNKNOWN   = "unknown"       # no membership date on record


def membership_era(membership_date: Optional[date]) -> MembershipEra:
    if membership_date is None:
        return MembershipEra.UNKNOWN
    return MembershipEra.PRE_2014 if membership_date < EPS_CUTOFF else MembershipEra.POST_2014


@dataclass(frozen=True)
class PensionFlags:
    contributed_before_2014: bool
    era:                     MembershipEra
    employee_type:           ContributionType
    employer_type:           ContributionType
    higher_pension_opted:    bool

    @classmethod
    def for_employee(cls, employee: Employee) -> "PensionFlags":
        hp = employee.higher_pension
        return cls(
            contributed_before_2014 = hp.contributed_before_2014,
            era                     = membership_era(employee.epf_membership_date),
            employee_type           = hp.employee_contribution,
            employer_type           = hp.employer_contribution,
            higher_pension_opted    = hp.higher_pension_opted,
        )


# ---------------------------------------------------------------------------
# Pension wage decision table
# ---------------------------------------------------------------------------

class PensionWageRule(str, Enum):
    GRANDFATHERED          = "grandfathered"           # EPS on full EPF wage
    EXCLUDED_ABOVE_CEILING = "excluded_above_ceiling"  # no EPS once wage crosses ceiling
    CAPPED                 = "capped"                  # EPS on wage up to ceiling
    UNCAPPED               = "uncapped"                # EPS on full EPF wage


H, R = ContributionType.HIGHER, ContributionType.REGULAR
PRE, POST = MembershipEra.PRE_2014, MembershipEra.POST_2014

# (A, B, C, D, E) → rule; None matches anything.
PENSION_RULE_TABLE: List[Tuple[Tuple, PensionWageRule]] = [
    ((True,  PRE,  H,    H,    True),  PensionWageRule.GRANDFATHERED),
    ((False, POST, None, None, None),  PensionWageRule.EXCLUDED_ABOVE_CEILING),
    ((None,  None, None, R,    None),  PensionWageRule.CAPPED),
    ((None,  None, None, None, False), PensionWageRule.CAPPED),
    ((False, None, None, None, None),  PensionWageRule.CAPPED),
    ((None,  None, None, None, None),  PensionWageRule.UNCAPPED),
]


def pension_wage_rule(flags: PensionFlags) -> PensionWageRule:
    key = (flags.contributed_before_2014, flags.era, flags.employee_type,
           flags.employer_type, flags.higher_pension_opted)
    for pattern, rule in PENSION_RULE_TABLE:
        if all(p is None or p == k for p, k in zip(pattern, key)):
            return rule
    raise LookupError(f"No pension rule for {key}")  # unreachable: last row is a catch-all


def all_pension_flags() -> List[PensionFlags]:
    return [PensionFlags(a, b, c, d, e) for a, b, c, d, e in itertools.product(
        (True, False), MembershipEra, ContributionType, ContributionType, (True, False))]


# Materialised view of the table over every flag combination (48 rows).
PENSION_WAGE_TABLE: Dict[PensionFlags, PensionWageRule] = {
    flags: pension_wage_rule(flags) for flags in all_pension_flags()
}


def eps_wage(rule: PensionWageRule, epf_wage: float, base_pf_wage: float, ceiling: float) -> float:
    if rule == PensionWageRule.EXCLUDED_ABOVE_CEILING:
        return 0 if base_pf_wage > ceiling else epf_wage
    if rule == PensionWageRule.CAPPED:
        return min(epf_wage, ceiling)
    return epf_wage


# ---------------------------------------------------------------------------
# Contributions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PFContribution:
    base_pf_wage: int
    is_code88:    bool
    epf_wage:     float = 0
    eps_wage:     float = 0
    epf_employee: int = 0
    vpf_employee: int = 0
    epf_employer: int = 0
    eps_employer: int = 0
    rule:         Optional[PensionWageRule] = None


def compute_pf_contribution(
    employee: Employee,
    basis: WageBasis,
    config: StatutoryConfig,
) -> PFContribution:
    base = basis.base_pf_wage
    ceiling = config.epf_ceiling

    if employee.deferred_pension == DeferredPension.OPT_OUT:
        logger.debug("Employee %s opted out of PF after 58", employee.id)
        return PFContribution(base_pf_wage=0, is_code88=False)
    if employee.is_pf_exempt:
        return PFContribution(base_pf_wage=base, is_code88=basis.is_code88)

    flags = PensionFlags.for_employee(employee)
    employer_higher = (flags.employer_type == ContributionType.HIGHER
                       or config.employer_pays_on_higher_wages)

    # J — EPF wages
    if employer_higher or flags.employee_type == ContributionType.HIGHER:
        epf_wage = base
    else:
        epf_wage = min(base, ceiling)

    # K — EPS wages
    rule = pension_wage_rule(flags)
    k_wage = eps_wage(rule, epf_wage, base, ceiling)

    # Employee share
    if config.enable_higher_contribution and config.higher_contribution_mode == HigherContributionMode.BY_EMPLOYEE:
        ee_basis = base
    else:
        ee_basis = epf_wage
    epf_employee = round_rupee(ee_basis * config.epf_employee_rate)
    vpf_employee = round_rupee(ee_basis * employee.vpf_rate) if employee.vpf_rate > 0 else 0

    # Pension fund
    if k_wage == 0:
        eps_employer = 0
    elif flags.higher_pension_opted:
        eps_employer = round_rupee(k_wage * EPS_RATE)
    else:
        eps_employer = round_rupee(min(base, ceiling) * EPS_RATE)

    # Employer EPF share = total employer liability − EPS
    if k_wage == 0:
        epf_employer = round_rupee(epf_wage * config.epf_employer_rate)
    else:
        liability_wage = epf_wage if employer_higher else k_wage
        epf_employer = round_rupee(liability_wage * config.epf_employer_rate) - eps_employer

    if employee.deferred_pension == DeferredPension.WITHOUT_EPS:
        epf_employer += eps_employer
        eps_employer = 0

    return PFContribution(
        base_pf_wage = base,
        is_code88    = basis.is_code88,
        epf_wage     = epf_wage,
        eps_wage     = k_wage,
        epf_employee = epf_employee,
        vpf_employee = vpf_employee,
        epf_employer = epf_employer,
        eps_employer = eps_employer,
        rule         = rule,
    )
