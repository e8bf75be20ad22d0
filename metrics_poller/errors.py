"""Exception hierarchy for gather cycles."""

from typing import List, Sequence

import httpx


class PollerError(Exception):
    """Base class for errors raised while gathering metrics."""


class InvalidServerURLError(PollerError):
    """Configured server URL cannot be used for a request."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f'Invalid server URL "{url}"')


class InvalidMetricListError(PollerError):
    """Configured metric names cannot be serialized into a request body."""

    def __init__(self, metrics):
        self.metrics = metrics
        super().__init__(f"Invalid list of Metrics {metrics!r}")


class UnexpectedStatusError(PollerError):
    """Server answered with a status other than the expected one."""

    def __init__(self, url: str, status_code: int, expected: int = 200):
        self.url = url
        self.status_code = status_code
        self.expected = expected
        super().__init__(
            f'Response from url "{url}" has status code {status_code} '
            f'({httpx.codes.get_reason_phrase(status_code)}), '
            f'expected {expected} ({httpx.codes.get_reason_phrase(expected)})'
        )


class GatherError(PollerError):
    """
    Combined failure of one gather cycle.

    Holds every per-server error message in configured server order;
    the string form joins them with newlines.
    """

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("\n".join(self.errors))


def describe_error(error: BaseException) -> str:
    """Return a non-empty, human readable message for an exception."""
    message = str(error)
    return message if message else type(error).__name__
