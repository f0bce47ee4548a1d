"""
Exceptions raised by the crop engine.

Both derive from ValueError so callers that only care about "bad input"
can catch one type.  Clamping during drag, resize and zoom never raises.
"""


class InvalidImageError(ValueError):
    """The supplied bytes cannot be used as a source image."""


class DegenerateCropError(ValueError):
    """The crop rectangle maps to an empty or out-of-bounds source region."""

    def __init__(self, message: str, source: tuple[float, float, float, float] | None = None):
        super().__init__(message)
        self.source = source
