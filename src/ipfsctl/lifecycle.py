"""LifecycleGuard — SIGINT handling, profiling, and the single exit path.

State machine::

    IDLE --install()--> RUNNING --exit(code) / SIGINT--> DRAINING --> TERMINATED

:meth:`LifecycleGuard.exit` is the only way an invocation ends.  Its
teardown runs exactly once, whether it was reached through normal
completion, a fatal error, or an interrupt delivered mid-command.  In
debug mode teardown stops the CPU profiler, writes its stats to
``cpu.prof``, and dumps a heap snapshot to ``ipfs.mprof``.
"""

from __future__ import annotations

import cProfile
import enum
import logging
import marshal
import signal
import sys
import threading
import tracemalloc
from pathlib import Path
from types import FrameType
from typing import IO, TYPE_CHECKING, Any, NoReturn

from ipfsctl.errors import ProfilingError

if TYPE_CHECKING:
    from ipfsctl.config.settings import RunSettings

logger = logging.getLogger(__name__)

CPU_PROFILE = "cpu.prof"
HEAP_PROFILE = "ipfs.mprof"


class LifecycleState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class LifecycleGuard:
    """Owns process teardown for one ipfsctl run.

    Args:
        cpu_profile: Where the CPU profile sink is opened in debug mode.
        heap_profile: Where the heap snapshot is written in debug mode.
    """

    def __init__(
        self,
        *,
        cpu_profile: Path | str = CPU_PROFILE,
        heap_profile: Path | str = HEAP_PROFILE,
    ) -> None:
        self.cpu_profile = Path(cpu_profile)
        self.heap_profile = Path(heap_profile)
        self.state = LifecycleState.IDLE
        self.exit_code: int | None = None
        self.interrupted = threading.Event()
        self.teardown_count = 0
        self._lock = threading.RLock()
        self._profiler: cProfile.Profile | None = None
        self._sink: IO[bytes] | None = None
        self._previous_handler: Any = None

    @property
    def profiling(self) -> bool:
        return self._profiler is not None

    def install(self) -> None:
        """Enter RUNNING and route SIGINT through :meth:`exit`."""
        self._previous_handler = signal.signal(signal.SIGINT, self._handle_interrupt)
        self.state = LifecycleState.RUNNING

    def uninstall(self) -> None:
        """Restore the SIGINT handler that was active before :meth:`install`."""
        if self._previous_handler is not None:
            signal.signal(signal.SIGINT, self._previous_handler)
            self._previous_handler = None

    def _handle_interrupt(self, signum: int, frame: FrameType | None) -> None:
        if self.state in (LifecycleState.DRAINING, LifecycleState.TERMINATED):
            return
        logger.info("Received interrupt signal, terminating...")
        self.interrupted.set()
        self.exit(0)

    def start_profiling(self, settings: RunSettings) -> None:
        """Open the CPU-profile sink and start sampling when debug is on.

        A sink that cannot be opened is logged and profiling is skipped;
        the command still runs.
        """
        if not settings.debug or self._profiler is not None:
            return
        try:
            self._sink = self.cpu_profile.open("wb")
        except OSError as exc:
            error = ProfilingError(f"cannot open CPU profile {self.cpu_profile}: {exc}")
            logger.critical("%s", error.message)
            return
        tracemalloc.start()
        self._profiler = cProfile.Profile()
        self._profiler.enable()
        logger.debug("Profiling to %s", self.cpu_profile)

    def exit(self, code: int) -> NoReturn:
        """Tear down once, then end the process with *code*.

        A second call (e.g. an interrupt arriving while a fatal error is
        being reported) skips teardown and exits with the first status.
        """
        with self._lock:
            first = self.state not in (LifecycleState.DRAINING, LifecycleState.TERMINATED)
            if first:
                self.state = LifecycleState.DRAINING
                self.exit_code = code
        if first:
            try:
                self._teardown()
            finally:
                self.state = LifecycleState.TERMINATED
        sys.exit(self.exit_code)

    def _teardown(self) -> None:
        self.teardown_count += 1
        if self._profiler is None:
            return

        self._profiler.disable()
        self._profiler.create_stats()
        assert self._sink is not None
        try:
            marshal.dump(self._profiler.stats, self._sink)  # type: ignore[attr-defined]
        except (OSError, ValueError) as exc:
            logger.critical("cannot write CPU profile %s: %s", self.cpu_profile, exc)
        finally:
            self._sink.close()
            self._profiler = None

        try:
            self.write_heap_profile()
        except ProfilingError as exc:
            logger.critical("%s", exc.message)
        finally:
            tracemalloc.stop()

    def write_heap_profile(self) -> None:
        """Dump a tracemalloc snapshot to the heap profile path."""
        try:
            tracemalloc.take_snapshot().dump(str(self.heap_profile))
        except (OSError, RuntimeError) as exc:
            msg = f"cannot write heap profile {self.heap_profile}: {exc}"
            raise ProfilingError(msg) from exc
