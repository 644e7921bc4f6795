"""Outcome types returned by EtherCalcClient operations.

Client operations never raise on remote failure. An awaited call yields one of:

- the decoded response body (JSON value, ``str`` or ``bytes``)
- ``HTTPErrorResult`` when the server answered with a non-2xx status
- the raw ``httpx.RequestError`` when no response was received
  (or the ``OSError`` raised opening an upload file, or the
  ``httpx.InvalidURL`` raised when a room id cannot form a URL)
- ``FormatError`` when ``overwrite`` is given an unknown format

Use ``is_failure`` to tell the success variant from the others.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import httpx


class FormatError(ValueError):
    """Returned (not raised) when an overwrite format is not recognized."""

    def __init__(self, fmt: str) -> None:
        self.format = fmt
        super().__init__("Format must be one of socialcalc, xlsx or csv!")


@dataclass(frozen=True)
class HTTPErrorResult:
    """A non-2xx answer from the server."""

    status: int
    message: str

    @classmethod
    def from_response(cls, response: httpx.Response) -> HTTPErrorResult:
        return cls(status=response.status_code, message=response.reason_phrase)

    def as_dict(self) -> dict[str, Any]:
        return {"status": self.status, "message": self.message}


JSONValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]
Body = Union[JSONValue, bytes]
Failure = Union[
    HTTPErrorResult, httpx.RequestError, httpx.InvalidURL, OSError, FormatError
]
Outcome = Union[Body, Failure]

_FAILURE_TYPES = (
    HTTPErrorResult,
    httpx.RequestError,
    httpx.InvalidURL,
    OSError,
    FormatError,
)


def is_failure(outcome: Outcome) -> bool:
    """Check whether an operation outcome is one of the failure variants."""
    return isinstance(outcome, _FAILURE_TYPES)
