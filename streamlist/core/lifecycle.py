"""
Process lifecycle: a registry of shutdown hooks fired once on termination.

Stores register their emergency flush here instead of touching ``signal``
themselves. The registry listens for normal interpreter exit (atexit) and for
SIGINT, SIGTERM, SIGHUP and SIGBREAK where the platform has them; the ASGI
lifespan shutdown calls ``trigger`` directly as the "about to exit"
notification. Whichever comes first runs every hook, exactly once.

Known race: Python runs signal handlers on the main thread between
bytecodes, so a handler can interleave with a store's in-loop bookkeeping.
Stores therefore guard the file itself with a lock rather than trusting
their own flags.
"""
from __future__ import annotations

import atexit
import logging
import signal
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP", "SIGBREAK")

ShutdownHook = Callable[[str], Any]


class ShutdownRegistry:
    """Runs registered hooks once, on the first termination trigger."""

    def __init__(self) -> None:
        self._hooks: list[ShutdownHook] = []
        self._lock = threading.RLock()
        self._fired = False
        self._installed = False
        self.reason: str | None = None

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def installed(self) -> bool:
        return self._installed

    def register(self, hook: ShutdownHook) -> None:
        with self._lock:
            self._hooks.append(hook)

    def unregister(self, hook: ShutdownHook) -> None:
        with self._lock:
            try:
                self._hooks.remove(hook)
            except ValueError:
                pass

    def install(self) -> None:
        """Hook atexit and the termination signals. Safe to call repeatedly."""
        with self._lock:
            if self._installed:
                return
            self._installed = True
        atexit.register(self.trigger, "exit")
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Not on the main thread; only the atexit hook was installed")
            return
        for name in TERMINATION_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            try:
                signal.signal(signum, self._handle_signal)
            except (ValueError, OSError) as exc:
                logger.warning("Could not install %s handler: %s", name, exc)

    def trigger(self, reason: str) -> bool:
        """
        Run every hook with ``reason`` if no trigger has fired yet.

        All hooks run even when one raises; the first failure is re-raised
        once they are done. Returns True when this call ran the hooks.
        """
        with self._lock:
            if self._fired:
                return False
            self._fired = True
            self.reason = reason
            hooks = list(self._hooks)

        first_error: BaseException | None = None
        for hook in hooks:
            try:
                hook(reason)
            except Exception as exc:
                logger.error("Shutdown hook %r failed on %s: %s", hook, reason, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
        return True

    def _handle_signal(self, signum: int, frame: Any) -> None:
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = f"signal {signum}"
        self.trigger(name)
        raise SystemExit(0)


shutdown_registry = ShutdownRegistry()
