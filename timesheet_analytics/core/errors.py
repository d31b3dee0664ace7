"""Domain exceptions raised by the analytics engine."""


class AnalyticsError(Exception):
    """Base class for analytics engine failures."""


class InvalidFilterCriteria(AnalyticsError, ValueError):
    """Filter criteria violate their own invariants (e.g. inverted date range)."""


class InvalidDrillDownTransition(AnalyticsError):
    """A drill-down gesture is not allowed from the current state."""


class UnsupportedExportFormat(AnalyticsError, ValueError):
    """No serializer is registered for the requested format."""


class UnknownReportKey(AnalyticsError, LookupError):
    """The requested report does not exist."""
