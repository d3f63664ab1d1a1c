"""
Exceptions and warnings raised by the image codecs.

Precondition failures use the builtin ValueError / IndexError / TypeError and
I/O failures propagate as the builtin OSError family.
"""


class ImageFormatError(ValueError):
    """A file or byte stream does not match the expected image layout."""


class ValueClampedWarning(UserWarning):
    """Pixel values were clamped to the range an external format can store."""
