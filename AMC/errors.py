"""
Console error taxonomy.

Every failure at the stream service boundary is translated into one of these
before it reaches the UI, where it becomes a non-blocking notification.
"""


class ConsoleError(Exception):
    """Base class for recoverable console errors"""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class InvalidPattern(ConsoleError):
    """A user supplied regular expression does not compile"""

    def __init__(self, pattern: str, cause: Exception = None):
        super().__init__(f"Invalid regular expression '{pattern}'", cause)
        self.pattern = pattern


class StreamUnavailable(ConsoleError):
    """The managed service log cannot be tailed"""


class StreamStartFailed(ConsoleError):
    pass


class StreamStopFailed(ConsoleError):
    pass


class FetchFailed(ConsoleError):
    """Initial bulk load of the log failed"""


class ExportFailed(ConsoleError):
    pass
