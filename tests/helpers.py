"""Assertion helpers shared across test modules."""

from typing import Any
from unittest.mock import MagicMock


def logged_request(request_logger: MagicMock) -> dict[str, Any]:
    """Return the fields of the single request_completed event.

    Raises:
        AssertionError: If the logger did not receive exactly one event
    """
    request_logger.info.assert_called_once()
    call = request_logger.info.call_args
    assert call.args == ("request_completed",)
    return dict(call.kwargs)
