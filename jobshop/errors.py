"""
FlexShop — Errors
Every failure the solver reports derives from JobShopError.
"""


class JobShopError(Exception):
    """Base class for FlexShop failures."""


class InvalidInstance(JobShopError):
    """A task was built with a malformed list of alternatives."""


class BuildError(JobShopError):
    """The instance cannot be compiled into a CP model."""


class NoSolutionFound(JobShopError):
    """Search ended without retaining a feasible assignment."""

    def __init__(self, message: str, status):
        super().__init__(message)
        self.status = status
