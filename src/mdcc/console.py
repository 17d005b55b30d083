from __future__ import annotations

import sys
import threading
from typing import Protocol, TextIO


class StatusSink(Protocol):
    """Where the pipeline prints finished blocks and progress status."""

    def print_line(self, text: str) -> None: ...

    def print_status(self, text: str) -> None: ...

    def erase_status(self) -> None: ...


class ConsoleSink:
    """Print blocks on stdout and, when verbose, a transient status line on stderr.

    Writes are serialized with a lock because instruction runs finish on worker threads.
    """

    def __init__(
        self,
        *,
        verbose: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self.verbose = verbose
        self.out = sys.stdout if out is None else out
        self.err = sys.stderr if err is None else err
        self._status_width = 0
        self._lock = threading.Lock()

    def print_line(self, text: str) -> None:
        with self._lock:
            self._erase()
            self.out.write(text + "\n")
            self.out.flush()

    def print_status(self, text: str) -> None:
        if not self.verbose:
            return
        with self._lock:
            self._erase()
            self.err.write("\r" + text)
            self.err.flush()
            self._status_width = len(text)

    def erase_status(self) -> None:
        with self._lock:
            self._erase()

    def _erase(self) -> None:
        if self._status_width:
            self.err.write("\r" + " " * self._status_width + "\r")
            self.err.flush()
            self._status_width = 0


class NullSink:
    """Discard everything (library use, tests)."""

    def print_line(self, text: str) -> None:
        pass

    def print_status(self, text: str) -> None:
        pass

    def erase_status(self) -> None:
        pass
