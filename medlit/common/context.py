"""
Cancellation and deadline signal passed through every collaborator call.
"""

import threading
import time
from typing import Optional

from .errors import DeadlineExceeded, InputValidationError, OperationCancelled, UpstreamError


class CallContext:
    """Cancellation flag plus optional deadline for one pipeline call.

    A context may be cancelled from another thread; the pipelines poll it
    between stages and between documents.
    """

    def __init__(self, deadline: Optional[float] = None):
        # deadline is a time.monotonic() value
        self.deadline = deadline
        self._event = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: Optional[float]) -> "CallContext":
        if seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self, default: Optional[float] = None) -> Optional[float]:
        """Seconds left before the deadline, or ``default`` when there is none."""
        if self.deadline is None:
            return default
        left = max(0.0, self.deadline - time.monotonic())
        if default is not None:
            return min(left, default)
        return left

    def raise_if_done(self) -> None:
        if self.cancelled:
            raise OperationCancelled("operation cancelled")
        if self.expired:
            raise DeadlineExceeded("deadline exceeded")


def ensure_context(ctx: Optional[CallContext]) -> CallContext:
    return ctx if ctx is not None else CallContext()


def run_stage(stage: str, ctx: CallContext, fn, *args, **kwargs):
    """Call a collaborator, tagging any failure with the pipeline stage.

    Cancellation and input errors pass through untouched; everything else is
    wrapped in UpstreamError so callers can tell which stage broke.
    """
    ctx.raise_if_done()
    try:
        return fn(*args, **kwargs)
    except (OperationCancelled, InputValidationError):
        raise
    except Exception as e:
        raise UpstreamError(stage, e) from e
