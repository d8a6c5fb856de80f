"""
Error kinds raised by the color assignment engine.

All of them are ValueErrors, so callers that already guard numeric input with
``except ValueError`` keep working.
"""


class ColorAssignmentError(ValueError):
    """Base class for every error raised at the public call boundary."""


class InvalidArgumentError(ColorAssignmentError):
    """Out-of-range or contradictory numeric parameters."""


class InsufficientColorsError(ColorAssignmentError):
    """More distinct colors requested than the constrained color space holds."""


class DimensionMismatchError(ColorAssignmentError):
    """Group labels don't match the row count, or rows have ragged lengths."""


class OutOfGamutError(ColorAssignmentError):
    """A Lab color has no sRGB equivalent. Internal; callers clamp instead."""
