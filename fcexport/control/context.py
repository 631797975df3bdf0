"""Cooperative pause/cancel control shared by all pipeline stages."""
import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, Optional


CANCELLED_MESSAGE = "Process cancelled by user"


class Cancelled(Exception):
    """Raised at a checkpoint once the operator has cancelled the run."""

    def __init__(self, message: str = CANCELLED_MESSAGE):
        super().__init__(message)


class ControlContext:
    """
    Pause/cancel state for one export run.

    A context is created by the caller and passed explicitly to every stage.
    Stages call :meth:`checkpoint` before each batch; operator commands
    (:meth:`pause`, :meth:`resume`, :meth:`cancel`) only take effect while a
    run is active and are silently ignored otherwise.

    Commands must be invoked on the event loop thread. Commands arriving
    from another thread go through ``loop.call_soon_threadsafe`` (see
    :class:`~fcexport.control.commands.CommandListener`).
    """

    def __init__(self, poll_interval: float = 0.5, logger: Optional[logging.Logger] = None):
        """
        Initialize control context.

        Args:
            poll_interval: Upper bound in seconds between re-checks while paused
            logger: Logger instance
        """
        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger("fcexport")

        self.paused = False
        self.cancelled = False
        self.active = False

        self._changed: Optional[asyncio.Event] = None

    def _event(self) -> asyncio.Event:
        if self._changed is None:
            self._changed = asyncio.Event()
        return self._changed

    def _notify(self) -> None:
        if self._changed is not None:
            self._changed.set()

    def begin(self) -> None:
        """Reset state and mark a run as active."""
        self.reset()
        self.active = True

    def end(self) -> None:
        """Mark the run as finished; later commands become no-ops."""
        self.active = False

    @contextmanager
    def running(self) -> Iterator["ControlContext"]:
        """Context manager wrapping :meth:`begin` and :meth:`end`."""
        self.begin()
        try:
            yield self
        finally:
            self.end()

    def pause(self) -> bool:
        """
        Request a pause at the next checkpoint.

        Returns:
            True if the command was applied
        """
        if not self.active or self.cancelled:
            return False
        if not self.paused:
            self.paused = True
            self.logger.warning("Process PAUSED by user")
        return True

    def resume(self) -> bool:
        """
        Release a pause.

        Returns:
            True if the command was applied
        """
        if not self.active:
            return False
        if self.paused:
            self.paused = False
            self.logger.info("Process RESUMED by user")
            self._notify()
        return True

    def cancel(self) -> bool:
        """
        Cancel the run. Also clears a pause so waiting checkpoints fail promptly.

        Returns:
            True if the command was applied
        """
        if not self.active:
            return False
        if not self.cancelled:
            self.cancelled = True
            self.paused = False
            self.logger.warning("Process CANCELLED by user")
            self._notify()
        return True

    def reset(self) -> bool:
        """
        Clear both flags. Refused while a run is active.

        Returns:
            True if the state was reset
        """
        if self.active:
            self.logger.warning("Ignoring reset: an export run is in progress")
            return False
        self.paused = False
        self.cancelled = False
        # A fresh event binds to whichever loop drives the next run
        self._changed = None
        return True

    def status(self) -> dict[str, bool]:
        """Snapshot of the control flags."""
        return {
            "active": self.active,
            "paused": self.paused,
            "cancelled": self.cancelled
        }

    async def checkpoint(self, stage: str = "") -> None:
        """
        Wait here while paused; fail if cancelled.

        Args:
            stage: Stage name for log messages

        Raises:
            Cancelled: If the run has been cancelled
        """
        if self.cancelled:
            raise Cancelled()

        if not self.paused:
            return

        label = f"[{stage}] " if stage else ""
        self.logger.info(f"{label}Paused, waiting for resume...")

        while self.paused and not self.cancelled:
            event = self._event()
            event.clear()
            try:
                await asyncio.wait_for(event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

        if self.cancelled:
            raise Cancelled()

        self.logger.info(f"{label}Resumed")
