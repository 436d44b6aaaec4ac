"""Exception hierarchy for the taste timeline engine."""


class TasteTimelineError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(TasteTimelineError, ValueError):
    """A request was rejected before any aggregation ran."""


class InvalidDateRangeError(InvalidInputError):
    """Start date after end date, or a date that could not be parsed."""


class UnknownGranularityError(InvalidInputError):
    """Granularity is not one of day, week, month, year."""


class InvalidWindowError(InvalidInputError):
    """A comparison window is missing a bound or runs backwards."""


class EmptyPeriodError(TasteTimelineError):
    """No listening or feedback activity in the period of a snapshot."""


class SnapshotPersistenceError(TasteTimelineError):
    """The snapshot store failed while saving a snapshot."""
