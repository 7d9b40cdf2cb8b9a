"""Tests for CallContext cancellation and stage tagging."""

import time
import pytest
from unittest.mock import Mock

from medlit.common.context import CallContext, run_stage
from medlit.common.errors import (
    DeadlineExceeded,
    InputValidationError,
    OperationCancelled,
    UpstreamError,
)


class TestCallContext:
    def test_fresh_context_is_live(self):
        ctx = CallContext()
        ctx.raise_if_done()
        assert not ctx.cancelled
        assert ctx.remaining() is None
        assert ctx.remaining(default=3.0) == 3.0

    def test_cancel(self):
        ctx = CallContext()
        ctx.cancel()
        with pytest.raises(OperationCancelled):
            ctx.raise_if_done()

    def test_expired_deadline(self):
        ctx = CallContext(deadline=time.monotonic() - 1)
        with pytest.raises(DeadlineExceeded):
            ctx.raise_if_done()
        assert ctx.remaining() == 0.0

    def test_remaining_is_capped_by_default(self):
        ctx = CallContext.with_timeout(100.0)
        assert ctx.remaining(default=5.0) == 5.0


class TestRunStage:
    def test_wraps_collaborator_failure_with_stage(self):
        fn = Mock(side_effect=ConnectionError("reset"))
        with pytest.raises(UpstreamError) as exc:
            run_stage("search", CallContext(), fn, "q")
        assert exc.value.stage == "search"
        assert isinstance(exc.value.cause, ConnectionError)

    def test_cancellation_passes_through(self):
        fn = Mock(side_effect=OperationCancelled("stop"))
        with pytest.raises(OperationCancelled):
            run_stage("fetch", CallContext(), fn)

    def test_input_errors_pass_through(self):
        fn = Mock(side_effect=InputValidationError("at least one PMID is required"))
        with pytest.raises(InputValidationError):
            run_stage("fetch", CallContext(), fn)

    def test_cancelled_context_skips_call(self):
        fn = Mock()
        ctx = CallContext()
        ctx.cancel()
        with pytest.raises(OperationCancelled):
            run_stage("search", ctx, fn)
        fn.assert_not_called()
