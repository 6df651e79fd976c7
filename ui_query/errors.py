"""
Error Types
Exceptions raised while building selectors or acquiring the UI tree.

"No match" is never an exception: the engine reports it as a result.
"""


class UiQueryError(Exception):
    """Base class for all ui_query errors"""


class MalformedSelectorError(UiQueryError, ValueError):
    """A selector link was declared without a body, or a value is out of range"""


class SelectorSyntaxError(UiQueryError, ValueError):
    """Raised when a UiSelector expression or selector file cannot be parsed"""

    def __init__(self, message: str, position: int = -1):
        self.position = position
        if position >= 0:
            message = f"{message} (at position {position})"
        super().__init__(message)


class TreeUnavailableError(UiQueryError):
    """Root acquisition gave up after exhausting its retries"""

    def __init__(self, message: str, attempts: int = 0, last_error: str = ""):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message)
