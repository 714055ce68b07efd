"""Custom exception hierarchy for regiodata.

Every error raised while resolving an indicator derives from
``RegioDataError`` so the resolver can catch a whole indicator's failure
with a single except block and report it without aborting the batch.

Exception Hierarchy:
    RegioDataError (base)
    ├── ConfigurationError
    ├── IndicatorDefinitionError
    │   └── UnknownOperatorError
    ├── DataProviderError
    │   ├── TransportError
    │   └── DecodeError
    ├── CubeError
    │   ├── MalformedCubeError
    │   └── DimensionMismatchError
    ├── ComposeInputError
    └── PersistenceError
"""
from __future__ import annotations

from typing import Optional, Dict, Any


class RegioDataError(Exception):
    """Base exception for all regiodata errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses and reports."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RegioDataError):
    """Raised when there's a configuration problem.

    Examples:
        - Invalid configuration value
        - Indicator catalog file missing or unreadable
    """
    pass


# Indicator definition errors
class IndicatorDefinitionError(RegioDataError):
    """Raised when an indicator definition breaks its invariants.

    Attributes:
        indicator: Name of the offending indicator
    """

    def __init__(
        self,
        message: str,
        indicator: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.indicator = indicator
        details = details or {}
        if indicator:
            details["indicator"] = indicator
        super().__init__(message, code, details)


class UnknownOperatorError(IndicatorDefinitionError):
    """Raised when a reducer or composer tag is not in the registry."""
    pass


# Data provider errors
class DataProviderError(RegioDataError):
    """Base class for fetch collaborator errors.

    Attributes:
        url: The request URL that failed
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.url = url
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, code, details)


class TransportError(DataProviderError):
    """Raised on network failure or a non-2xx response.

    Attributes:
        status_code: HTTP status, when a response was received
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, url, code, details)


class DecodeError(DataProviderError):
    """Raised when a response body is not valid JSON-stat data."""
    pass


# Cube errors
class CubeError(RegioDataError):
    """Base class for errors in the shape of decoded cubes."""
    pass


class MalformedCubeError(CubeError):
    """Raised when dimension sizes disagree with the index tables.

    Examples:
        - ``size`` for geo says 3 but the geo index lists 4 regions
        - The time dimension is missing from the response
        - A dimension the query did not pin comes back with several categories
        - A composed series carries non-annual time labels
    """
    pass


class DimensionMismatchError(CubeError):
    """Raised when combined sub-series do not share one key space."""
    pass


class ComposeInputError(RegioDataError):
    """Raised when a composer is handed an absent operand.

    The composition step never calls a composer with absent values, so this
    signals a broken caller rather than bad upstream data.
    """
    pass


class PersistenceError(RegioDataError):
    """Raised when the indicator store cannot read or write."""
    pass


def get_error_response(error: Exception) -> Dict[str, Any]:
    """Convert any exception to a serializable error description.

    Args:
        error: The exception to convert

    Returns:
        Dictionary suitable for API responses and resolution reports
    """
    if isinstance(error, RegioDataError):
        return error.to_dict()

    return {
        "error": "InternalError",
        "message": str(error),
        "details": {},
    }
