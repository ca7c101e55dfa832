class BookingError(Exception):
    """Base class for errors surfaced to callers of the booking services."""


class InvalidInput(BookingError, ValueError):
    pass


class NotFound(BookingError, KeyError):
    def __str__(self) -> str:
        # KeyError repr()s its argument
        return str(self.args[0]) if self.args else "Not found"


class Conflict(BookingError, ValueError):
    pass


class SlotUnavailable(Conflict):
    pass


class PermissionDenied(BookingError):
    pass


class DataAccessFailure(BookingError):
    """The backing store was unreachable, timed out, or returned malformed data.

    Never folded into an empty result: "unknown" is not "fully booked".
    """


class MalformedData(DataAccessFailure):
    """The store answered, but with a record the engine cannot use. Retrying will not help."""
