"""Exception types raised by the reconciliation core."""


class ParseError(ValueError):
    """A whole file could not be read; no transactions are returned for it."""


class UnsupportedFormatError(ParseError):
    """The uploaded file extension has no parser."""


class ReconciliationValidationError(ValueError):
    """A manual reconciliation request was rejected.

    Attributes:
        reason (str): Human readable explanation suitable for display
    """

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason
