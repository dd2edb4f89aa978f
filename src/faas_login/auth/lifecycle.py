"""Single-fire completion signal shared by the flow and the callback handler."""

from __future__ import annotations

import threading
from typing import Optional

from faas_login.models import CallbackOutcome


class FlowLifecycleSignal:
    """Moves from *pending* to *done* exactly once and carries the outcome.

    The callback handler calls :meth:`complete` from a listener thread; the
    coordinator blocks in :meth:`wait` on the main thread. Only the first
    :meth:`complete` call records its outcome, so duplicate capture
    requests (browser retries, a second tab) cannot overwrite it.

    Example::

        signal = FlowLifecycleSignal()
        signal.complete(CallbackOutcome(token_found=False))   # True
        signal.complete(CallbackOutcome(token_found=True))    # False, ignored
        signal.outcome.token_found                            # False
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._outcome: Optional[CallbackOutcome] = None

    @property
    def outcome(self) -> Optional[CallbackOutcome]:
        """The recorded outcome, or ``None`` while pending."""
        return self._outcome

    def is_done(self) -> bool:
        return self._done.is_set()

    def complete(self, outcome: CallbackOutcome) -> bool:
        """Record *outcome* and fire the signal.

        Returns:
            ``True`` if this call fired the signal, ``False`` if it had
            already fired (the call is then a no-op).
        """
        with self._lock:
            if self._done.is_set():
                return False
            self._outcome = outcome
            self._done.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the signal fires or *timeout* seconds pass.

        Returns:
            ``True`` if the signal fired, ``False`` on timeout.
        """
        return self._done.wait(timeout)
