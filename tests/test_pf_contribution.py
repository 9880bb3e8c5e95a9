"""
EPF / EPS decision table.
Expected EPS wages for every flag combination are checked against the
nested-condition form of the EPFO worksheet (columns J / K).
"""

from datetime import date

import pytest

from payroll_models import ContributionType, DeferredPension, Employee, HigherPension
from pf_contribution import (
    PENSION_WAGE_TABLE, MembershipEra, PensionFlags, PensionWageRule, all_pension_flags,
    compute_pf_contribution, eps_wage, membership_era, pension_wage_rule,
)
from statutory_config import HigherContributionMode, StatutoryConfig
from wage_basis import WageBasis

H, R = ContributionType.HIGHER, ContributionType.REGULAR
CEILING = 15_000


def _basis(base: int, code88: bool = False) -> WageBasis:
    return WageBasis(wage_a=base, wage_c=0, wage_d=0, base_pf_wage=base, is_code88=code88)


def _employee(**hp) -> Employee:
    membership = hp.pop("membership", None)
    deferred = hp.pop("deferred", DeferredPension.NONE)
    vpf = hp.pop("vpf_rate", 0.0)
    exempt = hp.pop("is_pf_exempt", False)
    return Employee(id="E1", epf_membership_date=membership, higher_pension=HigherPension(**hp),
                    deferred_pension=deferred, vpf_rate=vpf, is_pf_exempt=exempt)


def _worksheet_eps_wage(flags: PensionFlags, j: float, base: float) -> float:
    a, e = flags.contributed_before_2014, flags.higher_pension_opted
    pre = flags.era == MembershipEra.PRE_2014
    post = flags.era == MembershipEra.POST_2014
    if a and flags.employee_type == H and flags.employer_type == H and e and pre:
        return j
    elif not a and post and base > CEILING:
        return 0
    else:
        if j > CEILING:
            if flags.employer_type == R:
                return CEILING
            elif not e:
                return CEILING
            elif not a:
                return CEILING
            else:
                return j
        else:
            return j


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

def test_table_covers_every_flag_combination():
    assert len(PENSION_WAGE_TABLE) == 48
    assert set(PENSION_WAGE_TABLE) == set(all_pension_flags())


@pytest.mark.parametrize("flags", all_pension_flags(), ids=str)
@pytest.mark.parametrize("base", [9_000, 15_000, 15_001, 40_000])
def test_eps_wage_matches_worksheet(flags, base):
    j = base if H in (flags.employee_type, flags.employer_type) else min(base, CEILING)
    rule = PENSION_WAGE_TABLE[flags]
    assert eps_wage(rule, j, base, CEILING) == _worksheet_eps_wage(flags, j, base)


def test_only_full_joint_option_pre_2014_is_grandfathered():
    grandfathered = [f for f, r in PENSION_WAGE_TABLE.items() if r == PensionWageRule.GRANDFATHERED]
    assert grandfathered == [PensionFlags(True, MembershipEra.PRE_2014, H, H, True)]


def test_post_2014_new_members_excluded_above_ceiling():
    for flags, rule in PENSION_WAGE_TABLE.items():
        if not flags.contributed_before_2014 and flags.era == MembershipEra.POST_2014:
            assert rule == PensionWageRule.EXCLUDED_ABOVE_CEILING


def test_membership_era_split_on_1_sep_2014():
    assert membership_era(date(2014, 8, 31)) == MembershipEra.PRE_2014
    assert membership_era(date(2014, 9, 1)) == MembershipEra.POST_2014
    assert membership_era(None) == MembershipEra.UNKNOWN


def test_unknown_membership_date_is_never_grandfathered():
    flags = PensionFlags(True, MembershipEra.UNKNOWN, H, H, True)
    assert pension_wage_rule(flags) == PensionWageRule.UNCAPPED


# ---------------------------------------------------------------------------
# Contributions
# ---------------------------------------------------------------------------

def test_regular_member_above_ceiling():
    pf = compute_pf_contribution(_employee(), _basis(20_000), StatutoryConfig())
    assert pf.base_pf_wage == 20_000
    assert pf.epf_wage == 15_000
    assert pf.eps_wage == 15_000
    assert pf.epf_employee == 1_800
    assert pf.eps_employer == 1_250
    assert pf.epf_employer == 550
    assert pf.vpf_employee == 0


def test_post_2014_member_above_ceiling_gets_no_eps():
    emp = _employee(membership=date(2018, 1, 1))
    pf = compute_pf_contribution(emp, _basis(20_000), StatutoryConfig())
    assert pf.rule == PensionWageRule.EXCLUDED_ABOVE_CEILING
    assert pf.eps_wage == 0
    assert pf.eps_employer == 0
    assert pf.epf_employer == 1_800


def test_post_2014_member_within_ceiling_keeps_eps():
    emp = _employee(membership=date(2018, 1, 1))
    pf = compute_pf_contribution(emp, _basis(12_000), StatutoryConfig())
    assert pf.eps_wage == 12_000
    assert pf.epf_employee == 1_440
    assert pf.eps_employer == 1_000
    assert pf.epf_employer == 440


def test_grandfathered_higher_pension_on_full_wage():
    emp = _employee(membership=date(2010, 1, 1), contributed_before_2014=True,
                    employee_contribution=H, employer_contribution=H, higher_pension_opted=True)
    pf = compute_pf_contribution(emp, _basis(30_000), StatutoryConfig())
    assert pf.rule == PensionWageRule.GRANDFATHERED
    assert pf.epf_wage == 30_000
    assert pf.eps_wage == 30_000
    assert pf.epf_employee == 3_600
    assert pf.eps_employer == 2_499
    assert pf.epf_employer == 1_101


def test_higher_employer_without_pension_option_caps_eps():
    emp = _employee(membership=date(2010, 1, 1), contributed_before_2014=True,
                    employee_contribution=H, employer_contribution=H, higher_pension_opted=False)
    pf = compute_pf_contribution(emp, _basis(30_000), StatutoryConfig())
    assert pf.eps_wage == 15_000
    assert pf.eps_employer == 1_250
    assert pf.epf_employer == 2_350     # 12% of 30,000 − EPS


def test_higher_employee_regular_employer_liability_on_eps_wage():
    emp = _employee(employee_contribution=H)
    pf = compute_pf_contribution(emp, _basis(30_000), StatutoryConfig())
    assert pf.epf_wage == 30_000
    assert pf.epf_employee == 3_600
    assert pf.eps_employer == 1_250
    assert pf.epf_employer == 550       # 12% of 15,000 − EPS


def test_vpf_on_employee_basis():
    pf = compute_pf_contribution(_employee(vpf_rate=0.05), _basis(20_000), StatutoryConfig())
    assert pf.vpf_employee == 750


def test_higher_contribution_by_employee_uses_full_base_for_employee_share():
    cfg = StatutoryConfig(enable_higher_contribution=True,
                          higher_contribution_mode=HigherContributionMode.BY_EMPLOYEE)
    pf = compute_pf_contribution(_employee(), _basis(20_000), cfg)
    assert pf.epf_wage == 15_000
    assert pf.epf_employee == 2_400
    assert pf.epf_employer == 550


def test_higher_contribution_by_employee_and_employer():
    cfg = StatutoryConfig(enable_higher_contribution=True,
                          higher_contribution_mode=HigherContributionMode.BY_EMPLOYEE_AND_EMPLOYER)
    pf = compute_pf_contribution(_employee(), _basis(20_000), cfg)
    assert pf.epf_wage == 20_000
    assert pf.eps_wage == 15_000
    assert pf.epf_employee == 2_400
    assert pf.eps_employer == 1_250
    assert pf.epf_employer == 1_150


def test_opt_out_zeroes_everything():
    emp = _employee(deferred=DeferredPension.OPT_OUT)
    pf = compute_pf_contribution(emp, _basis(20_000, code88=True), StatutoryConfig())
    assert pf.base_pf_wage == 0
    assert not pf.is_code88
    assert (pf.epf_employee, pf.vpf_employee, pf.epf_employer, pf.eps_employer) == (0, 0, 0, 0)


def test_without_eps_merges_pension_into_employer_epf():
    emp = _employee(deferred=DeferredPension.WITHOUT_EPS)
    pf = compute_pf_contribution(emp, _basis(20_000), StatutoryConfig())
    assert pf.eps_employer == 0
    assert pf.epf_employer == 1_800
    assert pf.epf_employee == 1_800


def test_pf_exempt_keeps_wage_but_no_contribution():
    emp = _employee(is_pf_exempt=True)
    pf = compute_pf_contribution(emp, _basis(20_000, code88=True), StatutoryConfig())
    assert pf.base_pf_wage == 20_000
    assert pf.is_code88
    assert pf.epf_employee == 0
    assert pf.epf_employer == 0
