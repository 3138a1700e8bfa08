"""Exception types raised by the concierge core.

Tool failures and model outages are not exceptions at this level: tools
return ToolResult.fail() and the orchestrator absorbs model errors. The
types here cover the cases the caller has to handle.
"""

from __future__ import annotations


class ConciergeError(Exception):
    """Base class for all concierge errors."""


class InvalidRequestError(ConciergeError, ValueError):
    """Raised when a run request is rejected before any trace is created.

    Covers empty messages and malformed run context (e.g. unknown channel).
    """


class TraceNotFoundError(ConciergeError, LookupError):
    """Raised when a trace id does not exist in the trace store.

    Attributes:
        trace_id: The id that was looked up.
    """

    def __init__(self, trace_id: str) -> None:
        self.trace_id = trace_id
        super().__init__(f"Trace '{trace_id}' not found")
