import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jobshop.config import SolverConfig  # noqa: E402
from jobshop.instance import Instance  # noqa: E402


@pytest.fixture
def scenario_a() -> Instance:
    """2 jobs, 3 machines; the optimal makespan is 9."""
    data = Instance(name="Test")
    j1 = data.make_job()
    j2 = data.make_job()
    m1 = data.make_machine()
    m2 = data.make_machine()
    m3 = data.make_machine()
    j1.add_task([m1, m2], [3, 6])
    j1.add_task([m1, m2], [3, 3])
    j2.add_task([m1, m2], [3, 6])
    j2.add_task([m2, m3], [3, 2])
    j2.add_task([m3], [3])
    return data


@pytest.fixture
def fast_config() -> SolverConfig:
    return SolverConfig(time_limit_seconds=10)
