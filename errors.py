"""
Exception hierarchy for the cutting planner.
"""


class CuttingError(Exception):
    """Base error for everything raised by the cutting engine"""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


class InvalidInput(CuttingError, ValueError):
    """Caller supplied stock, demand or cost parameters that cannot be planned"""

    def __init__(self, message: str, field: str = None, value=None):
        details = {}
        if field is not None:
            details["field"] = field
            details["value"] = value
        super().__init__(message, code="INVALID_INPUT", details=details)


class PlanInvariantError(CuttingError):
    """The engine produced something that breaks a cutting-plan invariant"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="PLAN_INVARIANT", details=details)
