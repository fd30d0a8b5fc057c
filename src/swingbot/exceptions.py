"""Custom exceptions for the swing trading bot.

All store-level and strategy-level exceptions live here
to avoid circular imports between modules.
"""


class SwingBotError(Exception):
    """Base exception for all bot errors."""


class ValidationError(SwingBotError):
    """Raised when settings or parameters carry invalid values."""


class NotFoundError(SwingBotError):
    """Raised when pair settings or a trade id cannot be found."""


class ConflictError(SwingBotError):
    """Raised when a trade lifecycle transition is not allowed.

    Closing a trade that is not OPEN, or opening a second OPEN trade
    for a pair that already has one.
    """


class StoreNotInitializedError(SwingBotError):
    """Raised when a required table is missing from the database."""
