"""
Error types for plan creation, storage and retrieval.

The generator itself never raises; these are raised by the validation
helpers, the duplication workflow and the plan stores so callers can tell
the failure kinds apart.
"""


class PlanError(Exception):
    """Base class for all plan errors."""


class PlanValidationError(PlanError, ValueError):
    """Input rejected before a plan was generated or saved."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class PlanNotFoundError(PlanError, LookupError):
    """No plan exists with the requested id."""

    def __init__(self, plan_id: str):
        super().__init__(f"Training plan not found: {plan_id}")
        self.plan_id = plan_id


class PlanPermissionError(PlanError, PermissionError):
    """The plan exists but belongs to another user."""

    def __init__(self, plan_id: str, user_id: str):
        super().__init__(f"User {user_id} does not own training plan {plan_id}")
        self.plan_id = plan_id
        self.user_id = user_id


class PlanStorageError(PlanError):
    """The backing store failed to read or write a plan."""
