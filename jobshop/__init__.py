"""FlexShop — Flexible Job Shop Scheduling via OR-Tools CP-SAT."""
from .errors import *  # noqa: F401,F403
from .instance import Instance, Job, Machine, Task  # noqa: F401
from .models import *  # noqa: F401,F403
from .config import SolverConfig  # noqa: F401
from .engine import solve, solve_schedule  # noqa: F401
from .validator import validate_schedule, validate_tasks  # noqa: F401
