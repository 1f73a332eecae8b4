"""
Error conditions raised by the analytics core.

Each class maps to one failure category of the derivation layer.
"""


class InvalidInput(ValueError):
    """Raised when a numeric input violates the caller contract.

    Negative, non-finite or non-integral values passed to the cost
    estimator or the formatters are programming errors, not runtime
    conditions, so they are propagated rather than recovered.
    """


class UpstreamUnavailable(RuntimeError):
    """Raised when a data source fails or returns malformed data for a view."""
    def __init__(self, view: str, reason: str):
        super().__init__(f"{view}: {reason}")
        self.view = view
        self.reason = reason


class AmbiguousGrowthInput(ArithmeticError):
    """Raised when growth is requested against a zero previous-period value."""
    def __init__(self, current: float):
        super().__init__(
            f"Growth from a zero baseline to {current} is undefined"
        )
        self.current = current
