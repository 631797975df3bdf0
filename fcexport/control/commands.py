"""Operator command channel for a running export."""
import asyncio
import logging
import signal
import sys
import threading
from typing import Optional, TextIO

from .context import ControlContext


class CommandListener:
    """
    Reads ``pause`` / ``resume`` / ``cancel`` / ``status`` lines from a stream.

    The stream is read on a daemon thread; each command is handed to the
    event loop with ``call_soon_threadsafe`` so the control context is only
    ever touched from the loop thread.
    """

    COMMANDS = ("pause", "resume", "cancel", "status")

    def __init__(
        self,
        control: ControlContext,
        stream: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.control = control
        self.stream = stream or sys.stdin
        self.logger = logger or logging.getLogger("fcexport")
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Start reading commands in the background.

        Args:
            loop: Loop to dispatch onto (defaults to the running loop)
        """
        self._loop = loop or asyncio.get_running_loop()
        self._thread = threading.Thread(
            target=self._read_commands,
            name="fcexport-commands",
            daemon=True
        )
        self._thread.start()
        self.logger.info(f"Commands: {', '.join(self.COMMANDS)} (one per line)")

    def install_signal_handler(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> bool:
        """
        Map SIGINT to cancel while a run is active.

        Returns:
            True if the handler was installed
        """
        loop = loop or asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.control.cancel)
        except (NotImplementedError, RuntimeError):
            # Not supported by the Windows event loops
            return False
        return True

    def _read_commands(self) -> None:
        for line in self.stream:
            command = line.strip().lower()
            if not command:
                continue
            try:
                self._loop.call_soon_threadsafe(self.dispatch, command)
            except RuntimeError:
                # Loop already closed
                return

    def dispatch(self, command: str) -> bool:
        """
        Apply one command to the control context.

        Args:
            command: Command name

        Returns:
            True if the command was recognised and applied
        """
        if command == "status":
            self.logger.info(f"Status: {self.control.status()}")
            return True

        if command not in self.COMMANDS:
            self.logger.warning(f"Unknown command: {command!r}")
            return False

        applied = getattr(self.control, command)()
        if not applied:
            reason = "run already cancelled" if self.control.active else "no active export run"
            self.logger.info(f"Ignoring {command!r}: {reason}")
        return applied
