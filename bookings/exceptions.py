# bookings/exceptions.py


class BookingError(Exception):
    """A booking could not be finalised. Nothing was saved."""

    def __init__(self, message, reason=None):
        super().__init__(message)
        self.message = message
        self.reason = reason
