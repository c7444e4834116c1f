"""Structured exception hierarchy for SQL generation.

Every failure the generator can raise is a build-time failure: it aborts the
whole generation pass before any SQL is emitted. The exceptions carry enough
context (property, parameter array, field) to fix the declaration.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

__all__ = [
    "GeneratorError",
    "ConfigurationError",
    "ValidationError",
]


class GeneratorError(Exception):
    """Base exception for all generator errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        property_name: Optional[str] = None,
        array: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.property_name = property_name
        self.array = array
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if property_name or array:
            context = ".".join(p for p in (property_name, array) if p)
            parts.insert(0, f"[{context}]")

        if self.details:
            parts.append("\nDetails:")
            parts.extend(f"  {k}: {v}" for k, v in self.details.items())

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "property_name": self.property_name,
            "array": self.array,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(GeneratorError):
    """Error in generator configuration.

    Raised when a configuration layer, the parameter catalog or a refresh
    window is invalid. Never raised per row.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value

        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details=details, **kwargs)


class ValidationError(ConfigurationError):
    """Several configuration problems reported together.

    Raised by validate-style entry points that collect every issue
    instead of stopping at the first one.
    """

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        self.issues = issues or []

        details = kwargs.pop("details", None) or {}
        if self.issues:
            details["issue_count"] = len(self.issues)
            issue_lines = "\n".join(f"  - {issue}" for issue in self.issues)
            message = f"{message}\n\nIssues found:\n{issue_lines}"

        super().__init__(message, details=details, **kwargs)
