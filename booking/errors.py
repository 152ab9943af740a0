"""Exceptions raised by the booking flow."""


class BookingError(Exception):
    """Base class for failures surfaced to the guest as a banner."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubmissionError(BookingError):
    """The reservation could not be created; the guest may retry."""


class CapacityError(SubmissionError):
    """The chosen area cannot seat the party any more."""
