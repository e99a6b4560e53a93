"""Exceptions raised by the multi-factor engine."""


class MultiFactorError(Exception):
    """Base class for mfactor errors."""


class UnknownSecurityError(MultiFactorError, KeyError):
    """Symbol is not part of the engine's universe."""

    def __init__(self, symbol):
        super().__init__(f"Unknown security: {symbol!r}")
        self.symbol = symbol


class UnknownDateError(MultiFactorError, KeyError):
    """Date is not on the engine's reference calendar."""

    def __init__(self, date):
        super().__init__(f"Unknown date: {date!r}")
        self.date = date
