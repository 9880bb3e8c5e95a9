"""Shared fixtures for the payroll engine tests."""

from datetime import date

import pytest

from payroll_models import Attendance, Employee
from statutory_config import StatutoryConfig


@pytest.fixture
def config() -> StatutoryConfig:
    return StatutoryConfig()


@pytest.fixture
def employee() -> Employee:
    """₹20,000 basic, no allowances, unmatched branch (default PT slabs)."""
    return Employee(id="E001", name="Meena Raghavan", basic=20_000, doj=date(2020, 6, 1))


@pytest.fixture
def full_january() -> Attendance:
    return Attendance(present_days=31)
