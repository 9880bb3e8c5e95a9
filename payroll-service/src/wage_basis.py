"""
PF / ESI Wage Basis — Code on Wages, 2019 (Clause 88)
Allowances above 50% of gross wages are added back to the PF wage base.

  wageA  = basic + DA + retaining allowance
  wageC  = gross − wageA                (allowances)
  wageD  = wageC − 50% of gross         (only when allowances exceed half)
  PF wage = wageA + wageD

A higher-contribution wage built from admin-selected components replaces the
code wage when it is larger.
"""

from __future__ import annotations

from dataclasses import dataclass

from payroll_models import EarningComponent, Earnings, Employee, round_rupee
from statutory_config import StatutoryConfig

CORE_WAGE_COMPONENTS = frozenset(
    {EarningComponent.BASIC, EarningComponent.DA, EarningComponent.RETAINING}
)
ALLOWANCE_CAP = 0.50


@dataclass(frozen=True)
class WageBasis:
    wage_a:       int     # core wage
    wage_c:       int     # allowances
    wage_d:       int     # allowances folded back into PF wages
    base_pf_wage: int
    is_code88:    bool

    @property
    def code_wage(self) -> int:
        return round_rupee(self.wage_a + self.wage_d)


def compute_wage_basis(earnings: Earnings, config: StatutoryConfig) -> WageBasis:
    gross = earnings.total
    wage_a = earnings.components_total(CORE_WAGE_COMPONENTS)
    wage_c = gross - wage_a

    wage_d = 0
    if gross > 0 and wage_c / gross > ALLOWANCE_CAP:
        wage_d = wage_c - round_rupee(gross * ALLOWANCE_CAP)

    base = round_rupee(wage_a + wage_d)
    is_code88 = wage_d > 0

    if config.enable_higher_contribution:
        higher = earnings.components_total(config.higher_contribution_components)
        if higher > base:
            base = round_rupee(higher)
            is_code88 = False

    return WageBasis(wage_a, wage_c, wage_d, base, is_code88)


def esi_wage_basis(basis: WageBasis, employee: Employee) -> int:
    """ESI wages follow the PF wage; PF opt-outs fall back to the code wage."""
    if employee.is_pf_opted_out:
        return basis.code_wage
    return basis.base_pf_wage
