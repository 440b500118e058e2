"""
Exceptions raised by the simple-ssg pipeline.
"""

from typing import Optional


class SsgError(Exception):
    """Base class for all simple-ssg errors."""


class ConfigError(SsgError):
    """Invalid settings, command-line arguments or generation target."""


class CleanError(SsgError):
    """The output root could not be removed. Fatal for the whole run."""


class ConversionError(SsgError):
    """A markup document could not be converted to HTML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message, line, column)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"line {self.line}: {self.message}"
        return f"line {self.line}, column {self.column}: {self.message}"


INDEX_PAGE_NOT_FOUND = (
    "index.{md|dj|djot} not found! Consider creating one in the base target "
    "directory as the default page."
)
