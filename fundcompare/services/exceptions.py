# fundcompare/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidRequestError
    ├── NotFoundError
    │   └── InstrumentNotFoundError
    ├── InsufficientDataError
    ├── UpstreamDataError
    └── CalculationDegradedError
        └── RiskDataUnavailableError

Nothing here is retried by the engine. Retry policy, if any, belongs to
the caller or the provider implementation.
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when programmatic validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidRequestError(ValidationError):
    """
    Raised when an investment request or its inputs are invalid.

    Examples:
    - Non-positive amount
    - End date on or before start date for SIP
    - Unknown investment mode
    - Price series that is unsorted, has duplicates or non-positive prices

    Checked eagerly, before any simulation runs.
    """
    pass


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Instrument")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class InstrumentNotFoundError(NotFoundError):
    """
    Raised by a price series provider for an unknown instrument.

    Attributes:
        instrument_id: Identifier that was not recognized
    """

    def __init__(self, instrument_id: str) -> None:
        self.instrument_id = instrument_id
        super().__init__(
            f"Instrument '{instrument_id}' not found",
            resource_type="Instrument",
            resource_id=instrument_id,
        )


# =============================================================================
# DATA AVAILABILITY ERRORS
# =============================================================================


class InsufficientDataError(ServiceError):
    """
    Raised when a price series has no usable observation for the window.

    This is a legitimate data gap, not a transient fault. It is NOT retried.

    Attributes:
        instrument_id: Instrument whose series was insufficient (if known)
        requested_date: The date that could not be priced (if applicable)
    """

    def __init__(
            self,
            message: str,
            instrument_id: str | None = None,
            requested_date: date | None = None,
    ) -> None:
        self.instrument_id = instrument_id
        self.requested_date = requested_date
        super().__init__(message)


class UpstreamDataError(ServiceError):
    """
    Raised when a provider call fails or returns malformed data.

    Distinct from InsufficientDataError: this indicates an environmental
    fault (network, provider outage, bad payload), not a data gap.

    Attributes:
        provider: Name of the provider that failed
        reason: Specific reason for failure
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"Provider '{provider}' failed: {reason}")


# =============================================================================
# CALCULATION ERRORS
# =============================================================================


class CalculationDegradedError(ServiceError):
    """
    Base exception for metrics that cannot be computed from real data.

    These always propagate. A fabricated placeholder is never returned.
    """
    pass


class RiskDataUnavailableError(CalculationDegradedError):
    """
    Raised when risk/volatility cannot be computed for a category.

    Typical causes:
    - Category has no known benchmark mapping
    - The benchmark's volatility could not be fetched or derived

    Attributes:
        category: Instrument category that could not be scored
        benchmark_key: Proxy benchmark involved (if any)
    """

    def __init__(
            self,
            category: str,
            benchmark_key: str | None = None,
            reason: str | None = None,
    ) -> None:
        self.category = category
        self.benchmark_key = benchmark_key
        msg = f"Risk metrics unavailable for category '{category}'"
        if benchmark_key:
            msg += f" (benchmark '{benchmark_key}')"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidRequestError",
    # Not Found
    "NotFoundError",
    "InstrumentNotFoundError",
    # Data availability
    "InsufficientDataError",
    "UpstreamDataError",
    # Calculation
    "CalculationDegradedError",
    "RiskDataUnavailableError",
]
