"""Single-slot gate allowing at most one text recognition job in flight."""

import threading
from typing import Optional


class GateTicket:
    """
    Proof of holding the gate.

    Releasing is idempotent, so a ticket can be released from every exit
    path of a job (and from a late user acknowledgment) without ever
    reopening a slot that a newer job holds.
    """

    def __init__(self, gate: "RecognitionGate"):
        self._gate = gate
        self._lock = threading.Lock()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._gate._reopen()

    def __enter__(self) -> "GateTicket":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class RecognitionGate:
    """Lock-protected ready flag shared by the capture and recognition threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ready = True

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._ready

    def try_acquire(self) -> Optional[GateTicket]:
        """Close the gate and return a ticket, or None if a job already holds it."""
        with self._lock:
            if not self._ready:
                return None
            self._ready = False
        return GateTicket(self)

    def _reopen(self) -> None:
        with self._lock:
            self._ready = True
