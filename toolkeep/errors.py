"""Exceptions and error formatting for toolkeep.

Persistence and invariant failures are raised as exceptions derived from
``ToolkeepError``. Outcomes a caller branches on routinely ("not safe to
remove", "not tracked" during planning) are never raised; they are carried
as data inside a removal plan.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Use present tense: 'is already tracked', 'is not tracked'
- Include actionable hints where helpful
"""


class ToolkeepError(Exception):
    """Base class for all toolkeep failures."""


class ManifestError(ToolkeepError):
    """Raised when the ledger cannot be read, parsed, written or backed up."""


class UnsupportedSchemaError(ManifestError):
    """Raised when a ledger document carries an unknown schema version."""

    def __init__(self, version: str, source: str = ""):
        self.version = version
        self.source = source
        message = f"Unsupported schema version: {version!r}"
        super().__init__(f"{source}: {message}" if source else message)


class TrackingError(ToolkeepError):
    """Raised when a tracking invariant would be violated."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(message)


class AlreadyTrackedError(TrackingError):
    def __init__(self, name: str):
        super().__init__(name, f"tool {name} is already tracked")


class NotTrackedError(TrackingError):
    def __init__(self, name: str):
        super().__init__(name, f"tool {name} is not tracked")


class BundleError(ToolkeepError):
    """Raised for structural problems in the bundle catalog."""


class BundleNotFoundError(BundleError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"bundle not found: {name}")


class CircularBundleError(BundleError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"circular dependency detected in bundle: {name}")


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("tool fd is not tracked")
        'Error: tool fd is not tracked'
    """
    return f"Error: {message}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("tool fd is not tracked", "run 'toolkeep status' to see tracked tools")
        "Error: tool fd is not tracked. Hint: run 'toolkeep status' to see tracked tools"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "ToolkeepError",
    "ManifestError",
    "UnsupportedSchemaError",
    "TrackingError",
    "AlreadyTrackedError",
    "NotTrackedError",
    "BundleError",
    "BundleNotFoundError",
    "CircularBundleError",
    "format_error",
    "format_suggestion",
]
