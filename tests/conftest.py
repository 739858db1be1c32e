from __future__ import annotations

from typing import List

import pytest

from core.data import Row
from tests.helpers import make_row


@pytest.fixture
def sample_rows() -> List[Row]:
    return [
        make_row("Sales", "East", "Boston", "A-1", "Submitted"),
        make_row("Sales", "East", "Boston", "A-2", "Approved"),
        make_row("Sales", "East", "NYC", "A-3", "Draft"),
        make_row("Sales", "West", "LA", "A-4", "Approved"),
        make_row("Engineering", "Platform", "Infra", "A-5", "Rejected"),
        make_row("Engineering", "Platform", "Infra", "A-6", "Submitted"),
        make_row("Engineering", "Apps", "Mobile", "", "Submitted"),
        make_row("(blank)", "(blank)", "(blank)", "A-7", "Zeta"),
        make_row("Admin", "HR", "Payroll", "A-8", "Cancelled"),
    ]


@pytest.fixture
def prior_rows() -> List[Row]:
    rows = [make_row("Sales", "East", "Boston", f"P-{i}", "Approved") for i in range(7)]
    rows += [make_row("Engineering", "Platform", "Infra", f"Q-{i}", "Submitted") for i in range(3)]
    rows.append(make_row("Legacy", "Old", "Old", "R-1", "Approved"))
    rows.append(make_row("Sales", "East", "Boston", "", "Draft"))
    return rows
