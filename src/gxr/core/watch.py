"""Watch mode: debounce file events and serialize build passes.

State machine, derived from the ``WatchSession`` fields::

    IDLE --change--> DEBOUNCING (start timer)
    DEBOUNCING --change--> DEBOUNCING (reset timer)
    DEBOUNCING --timer, no build running--> BUILDING
    DEBOUNCING --timer, build running--> BUILDING_WITH_PENDING_CHANGE
    BUILDING --change--> BUILDING_WITH_PENDING_CHANGE
    BUILDING --done--> IDLE
    BUILDING_WITH_PENDING_CHANGE --done--> DEBOUNCING (pending cleared)

At most one build pass runs at a time; a change during a build is recorded as
pending and never cancels the build in flight.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gxr.core.build import run_build
from gxr.core.ports.bundler import Bundler
from gxr.core.ports.watcher import FileWatcherPort
from gxr.models import BuildConfig, BuildResult

logger = logging.getLogger(__name__)

BuildRunner = Callable[[BuildConfig], Awaitable[BuildResult]]
ChangeCallback = Callable[[set[Path]], Awaitable[None]]
WatcherFactory = Callable[[Path, ChangeCallback], FileWatcherPort]


class WatchState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    BUILDING = "building"
    BUILDING_WITH_PENDING_CHANGE = "building_with_pending_change"


@dataclass
class WatchSession:
    config: BuildConfig
    debounce_handle: asyncio.TimerHandle | None = None
    build_in_progress: bool = False
    rebuild_pending: bool = False
    builds: int = 0
    last_result: BuildResult | None = None

    @property
    def state(self) -> WatchState:
        if self.build_in_progress:
            return WatchState.BUILDING_WITH_PENDING_CHANGE if self.rebuild_pending else WatchState.BUILDING
        if self.debounce_handle is not None:
            return WatchState.DEBOUNCING
        return WatchState.IDLE


def log_result(result: BuildResult) -> None:
    for target in result.failed_targets:
        logger.error("%s (%s): %s", target.component.key, target.component.path, target.error)
    for error in result.errors:
        logger.error("%s", error)
    if result.success:
        logger.info("Built %d component(s) in %.2fs", result.components, result.duration)
    else:
        logger.error("Build failed; previous manifest kept")


class WatchCoordinator:
    """Drive build passes for a ``WatchSession`` from a stream of change notifications.

    Must be used from a single event loop; the session flags are the only
    mutual exclusion between passes.
    """

    def __init__(self, session: WatchSession, build: BuildRunner) -> None:
        self._session = session
        self._build = build
        self._task: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def session(self) -> WatchSession:
        return self._session

    @property
    def state(self) -> WatchState:
        return self._session.state

    def notify(self, paths: Iterable[Path] = ()) -> None:
        """Record a file change."""
        if self._closed:
            return
        session = self._session
        if session.build_in_progress:
            if not session.rebuild_pending:
                logger.debug("Change during build; queueing another pass")
            session.rebuild_pending = True
            return
        self._schedule()

    async def run_initial_build(self) -> BuildResult | None:
        if self._session.build_in_progress:
            raise RuntimeError("A build pass is already running")
        self._session.build_in_progress = True
        self._idle.clear()
        await self._run_build()
        return self._session.last_result

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def close(self) -> None:
        """Cancel any pending timer and let a running build finish."""
        self._closed = True
        session = self._session
        if session.debounce_handle is not None:
            session.debounce_handle.cancel()
            session.debounce_handle = None
        session.rebuild_pending = False
        if self._task is not None:
            await self._task
            self._task = None
        self._idle.set()

    def _schedule(self) -> None:
        session = self._session
        if session.debounce_handle is not None:
            session.debounce_handle.cancel()
        loop = asyncio.get_running_loop()
        session.debounce_handle = loop.call_later(session.config.debounce, self._on_timer)
        self._idle.clear()

    def _on_timer(self) -> None:
        session = self._session
        session.debounce_handle = None
        if session.build_in_progress:
            session.rebuild_pending = True
            return
        session.build_in_progress = True
        self._task = asyncio.get_running_loop().create_task(self._run_build())

    async def _run_build(self) -> None:
        session = self._session
        logger.info("Rebuilding...")
        try:
            result = await self._build(session.config)
        except Exception:
            logger.exception("Build pass crashed")
        else:
            session.last_result = result
            log_result(result)
        finally:
            session.builds += 1
            session.build_in_progress = False
            if session.rebuild_pending and not self._closed:
                session.rebuild_pending = False
                self._schedule()
            elif session.debounce_handle is None:
                self._idle.set()


def _default_watcher(directory: Path, on_change: ChangeCallback) -> FileWatcherPort:
    from gxr.watcher.watchfiles_adapter import WatchfilesWatcher

    return WatchfilesWatcher(directory, on_change)


async def run_watch(
    config: BuildConfig,
    bundler: Bundler | None = None,
    watcher_factory: WatcherFactory | None = None,
) -> None:
    """Run the initial build, then rebuild on every change until cancelled."""

    async def _build(cfg: BuildConfig) -> BuildResult:
        return await run_build(cfg, bundler)

    session = WatchSession(config=config)
    coordinator = WatchCoordinator(session, _build)
    await coordinator.run_initial_build()

    components_dir = config.components_dir
    if not components_dir.is_dir():
        logger.warning("Components directory %s not found; not watching", components_dir)
        return

    async def _on_change(paths: set[Path]) -> None:
        for path in sorted(paths):
            logger.info("Changed: %s", path)
        coordinator.notify(paths)

    watcher = (watcher_factory or _default_watcher)(components_dir, _on_change)
    await watcher.start()
    logger.info("Watching %s for changes. Press Ctrl+C to stop.", components_dir)
    try:
        await asyncio.Event().wait()
    finally:
        await watcher.stop()
        await coordinator.close()
