"""
Jurisdiction Resolver — branch text → state → PT / LWF preset
Professional Tax and Labour Welfare Fund are state levies; the state is
inferred from the free-text branch or city label on the employee master.
Unmatched branches fall back to the configured default cycle and slabs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from statutory_config import LWFCycle, PTCycle, PTRule, StatutoryConfig, slabs


# ---------------------------------------------------------------------------
# Keyword table — checked in order, first state with a matching keyword wins
# ---------------------------------------------------------------------------

STATE_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("Tamil Nadu",     ("chennai", "coimbatore", "madurai", "salem", "tiruchirappalli",
                        "kanchipuram", "hosur", "tamil")),
    ("Karnataka",      ("bangalore", "bengaluru", "mysore", "mangalore", "hubli",
                        "belgaum", "udupi", "karnataka")),
    ("Maharashtra",    ("mumbai", "pune", "nagpur", "nashik", "aurangabad", "thane",
                        "maharashtra")),
    ("West Bengal",    ("kolkata", "howrah", "durgapur", "siliguri", "bengal")),
    ("Telangana",      ("hyderabad", "warangal", "nizamabad", "telangana")),
    ("Andhra Pradesh", ("visakhapatnam", "vizag", "vijayawada", "guntur", "tirupati",
                        "andhra")),
    ("Kerala",         ("kochi", "cochin", "trivandrum", "thiruvananthapuram", "kozhikode",
                        "calicut", "kerala")),
    ("Gujarat",        ("ahmedabad", "surat", "vadodara", "baroda", "rajkot", "gandhinagar",
                        "gujarat")),
]


# ---------------------------------------------------------------------------
# State presets
# ---------------------------------------------------------------------------

PT_STATE_PRESETS: Dict[str, PTRule] = {
    "Tamil Nadu": PTRule(PTCycle.HALF_YEARLY, slabs(
        (0,      21_000,    0),
        (21_001, 30_000,    135),
        (30_001, 45_000,    315),
        (45_001, 60_000,    690),
        (60_001, 75_000,    1025),
        (75_001, 9_999_999, 1250),
    )),
    "Karnataka": PTRule(PTCycle.MONTHLY, slabs(
        (0,      14_999,    0),
        (15_000, 9_999_999, 200),
    )),
    # Maharashtra levies ₹300 in February; the flat monthly slab is used here.
    "Maharashtra": PTRule(PTCycle.MONTHLY, slabs(
        (0,      7_500,     0),
        (7_501,  10_000,    175),
        (10_001, 9_999_999, 200),
    )),
    "West Bengal": PTRule(PTCycle.MONTHLY, slabs(
        (0,      10_000,    0),
        (10_001, 15_000,    110),
        (15_001, 25_000,    130),
        (25_001, 40_000,    150),
        (40_001, 9_999_999, 200),
    )),
    "Telangana": PTRule(PTCycle.MONTHLY, slabs(
        (0,      15_000,    0),
        (15_001, 20_000,    150),
        (20_001, 9_999_999, 200),
    )),
    "Andhra Pradesh": PTRule(PTCycle.MONTHLY, slabs(
        (0,      15_000,    0),
        (15_001, 20_000,    150),
        (20_001, 9_999_999, 200),
    )),
    "Kerala": PTRule(PTCycle.HALF_YEARLY, slabs(
        (0,       11_999,    0),
        (12_000,  17_999,    120),
        (18_000,  29_999,    180),
        (30_000,  44_999,    300),
        (45_000,  59_999,    450),
        (60_000,  74_999,    600),
        (75_000,  99_999,    750),
        (100_000, 124_999,   1000),
        (125_000, 9_999_999, 1250),
    )),
    "Gujarat": PTRule(PTCycle.MONTHLY, slabs(
        (0,      12_000,    0),
        (12_001, 9_999_999, 200),
    )),
}


@dataclass(frozen=True)
class LWFRule:
    cycle:    LWFCycle
    employee: float
    employer: float


LWF_STATE_PRESETS: Dict[str, LWFRule] = {
    "Tamil Nadu":     LWFRule(LWFCycle.YEARLY,      10,   20),
    "Andhra Pradesh": LWFRule(LWFCycle.YEARLY,      30,   70),
    "Telangana":      LWFRule(LWFCycle.YEARLY,      30,   70),
    "Karnataka":      LWFRule(LWFCycle.YEARLY,      20,   40),
    "Maharashtra":    LWFRule(LWFCycle.HALF_YEARLY, 12,   36),
    "Kerala":         LWFRule(LWFCycle.HALF_YEARLY, 20,   20),
    "Gujarat":        LWFRule(LWFCycle.HALF_YEARLY, 6,    12),
    "West Bengal":    LWFRule(LWFCycle.HALF_YEARLY, 3,    15),
    "Delhi":          LWFRule(LWFCycle.HALF_YEARLY, 0.75, 2.25),
    "Haryana":        LWFRule(LWFCycle.MONTHLY,     25,   50),
}


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_state(branch: Optional[str]) -> Optional[str]:
    """Map a branch / city label to an Indian state, or None if unknown."""
    text = (branch or "").lower().strip()
    if not text:
        return None
    for state, keywords in STATE_KEYWORDS:
        if any(k in text for k in keywords):
            return state
    return None


def resolve_pt_rule(branch: Optional[str], config: StatutoryConfig) -> PTRule:
    state = resolve_state(branch)
    if state and state in PT_STATE_PRESETS:
        return PT_STATE_PRESETS[state]
    return PTRule(config.pt_cycle, config.pt_slabs)


def resolve_lwf_rule(branch: Optional[str], config: StatutoryConfig) -> LWFRule:
    default = LWFRule(config.lwf_cycle,
                      config.lwf_employee_contribution,
                      config.lwf_employer_contribution)
    if not config.lwf_follow_branch_state:
        return default
    return LWF_STATE_PRESETS.get(resolve_state(branch) or "", default)
