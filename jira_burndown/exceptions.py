"""Data exceptions for Jira Burndown.

These are raised while reconstructing item histories from changelog data.
They are fatal for a report run: silently skipping a malformed event would
understate or distort the completion values.
"""


class BurndownDataError(Exception):
    """
    Exception raised for malformed issue or changelog data.

    Carries enough context (issue key, field name, raw value) to diagnose
    the offending record without re-running the whole pipeline.
    """

    def __init__(self, message, key=None, field=None, value=None):
        super().__init__(message)
        self.key = key
        self.field = field
        self.value = value


class TimestampParseError(BurndownDataError):
    """
    Exception raised when a changelog timestamp is not in the expected format.
    """


class ValueParseError(BurndownDataError):
    """
    Exception raised when a numeric field value cannot be parsed.
    """
