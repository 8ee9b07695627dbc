"""Custom exceptions used across ahbcompare."""

__all__ = ["AhbCompareError", "DocumentReadError", "DocumentNotFoundError"]


class AhbCompareError(Exception):
    """Base class for errors raised outside the pure structuring/diff core."""

    pass


class DocumentReadError(AhbCompareError):
    """Raised when a PDF cannot be opened or its text cannot be extracted."""

    pass


class DocumentNotFoundError(AhbCompareError, LookupError):
    """Raised when a stored document id does not exist."""

    pass
