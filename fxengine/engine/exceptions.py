"""
Custom exceptions for the rate engine.

Every engine failure is terminal for the current computation: no partial
rate is ever returned alongside one of these errors.
"""

from typing import Any, Dict, Optional


class RateEngineError(Exception):
    """Base exception for rate engine errors."""

    error_code: str = "RATE_ENGINE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging or transport."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InsufficientDataError(RateEngineError):
    """Raised when fewer quotes than required are found for a key pattern."""

    error_code = "INSUFFICIENT_DATA"

    def __init__(self, pattern: str, minimum: int, found: int):
        super().__init__(
            f"Insufficient data: at least {minimum} sources required for "
            f"'{pattern}' (available: {found})",
            details={"pattern": pattern, "minimum": minimum, "found": found},
        )
        self.pattern = pattern
        self.minimum = minimum
        self.found = found


class UnknownCalcNameError(RateEngineError):
    """Raised when a calculation identifier is not a configured pair."""

    error_code = "UNKNOWN_CALC_NAME"

    def __init__(self, calc_name: Any):
        super().__init__(
            f"Unknown calculation name: {calc_name!r}",
            details={"calc_name": calc_name},
        )
        self.calc_name = calc_name


class ConfigurationError(RateEngineError):
    """Raised when engine configuration is missing or invalid."""

    error_code = "CONFIGURATION_ERROR"


class CalculationError(RateEngineError):
    """Raised by the calculator service when a named rate cannot be computed."""

    error_code = "CALCULATION_ERROR"

    def __init__(self, rate_name: str, cause: RateEngineError):
        super().__init__(
            f"Error calculating '{rate_name}': {cause.message}",
            details={"rate_name": rate_name, "cause": cause.to_dict()},
        )
        self.rate_name = rate_name
