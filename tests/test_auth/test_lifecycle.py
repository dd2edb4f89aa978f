"""Tests for the single-fire flow lifecycle signal."""

from __future__ import annotations

import threading

from faas_login.auth.lifecycle import FlowLifecycleSignal
from faas_login.models import CallbackOutcome


class TestFlowLifecycleSignal:
    def test_starts_pending(self) -> None:
        signal = FlowLifecycleSignal()
        assert not signal.is_done()
        assert signal.outcome is None
        assert signal.wait(0.01) is False

    def test_first_completion_wins(self) -> None:
        signal = FlowLifecycleSignal()
        first = CallbackOutcome(token_found=True, access_token="abc")
        second = CallbackOutcome(token_found=False)

        assert signal.complete(first) is True
        assert signal.complete(second) is False
        assert signal.outcome == first
        assert signal.is_done()
        assert signal.wait(0) is True

    def test_concurrent_completion_fires_once(self) -> None:
        signal = FlowLifecycleSignal()
        results: list[bool] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def _complete(i: int) -> None:
            barrier.wait()
            fired = signal.complete(CallbackOutcome(token_found=True, access_token=str(i)))
            with lock:
                results.append(fired)

        threads = [threading.Thread(target=_complete, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)

        assert results.count(True) == 1
        assert len(results) == 8

    def test_wait_wakes_on_completion(self) -> None:
        signal = FlowLifecycleSignal()
        timer = threading.Timer(0.05, signal.complete, args=(CallbackOutcome(token_found=False),))
        timer.start()
        try:
            assert signal.wait(5) is True
        finally:
            timer.cancel()
