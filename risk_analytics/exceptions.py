"""
Exceptions raised by the risk-analytics engine.
"""


class RiskEngineError(Exception):
    """Base exception for the risk-analytics engine."""
    pass


class DomainError(RiskEngineError, ValueError):
    """Raised when a numeric input lies outside the domain of a model."""

    def __init__(self, parameter: str, value: object, requirement: str):
        self.parameter = parameter
        self.value = value
        self.requirement = requirement
        super().__init__(f"{parameter} {requirement}, got {parameter}={value}")


class SimulationError(RiskEngineError):
    """Raised when a Monte Carlo simulation cannot be carried out."""

    def __init__(self, method: str, reason: str):
        self.method = method
        self.reason = reason
        super().__init__(f"Monte Carlo simulation ({method}) failed: {reason}")


class InsufficientDataError(RiskEngineError):
    """Raised when there's insufficient data for a risk calculation."""

    def __init__(self, operation: str, required: int, actual: int):
        self.operation = operation
        self.required = required
        self.actual = actual
        super().__init__(
            f"Insufficient data for {operation}: "
            f"required {required}, got {actual}"
        )
