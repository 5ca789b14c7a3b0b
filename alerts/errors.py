"""Alert subsystem errors.

Apart from AlertRequestError, every error here is absorbed inside the
subsystem with a safe default (fallback schedule, drop, degrade, defaults).
"""


class AlertError(Exception):
    """Base class for alert subsystem errors."""


class SchedulingDenied(AlertError):
    """Exact wake primitive unavailable - caller falls back to inexact."""


class NotificationSurfaceUnavailable(AlertError):
    """Host notification service absent - the alert is dropped."""


class OutputDriverError(AlertError):
    """Audio or vibration driver could not be acquired."""


class MalformedPersistedState(AlertError):
    """A stored snapshot could not be parsed."""


class AlertRequestError(AlertError):
    """Invalid request on the external scheduling contract."""
