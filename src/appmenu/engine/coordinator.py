"""Serialized, coalescing menu rebuilds driven by watch notifications."""

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol

from appmenu.config.models import secondary_root_for
from appmenu.engine.state import MenuSnapshots, Phase, PublishedMenus, RebuildState
from appmenu.fs.watch import ChangeEvent
from appmenu.menu.builder import MAX_DEPTH, FileSystem, TreeBuilder
from appmenu.menu.classify import Classifier
from appmenu.menu.merge import UTILITIES_TITLE, TreeMerger
from appmenu.runtime_logging import get_runtime_logger

SETTLE_DELAY_S = 0.25


class Scheduler(Protocol):
    def submit(self, task: Callable[[], None]) -> None: ...

    def call_later(self, delay_s: float, task: Callable[[], None]) -> None: ...


class WatchRegistry(Protocol):
    def add(self, path: str) -> object: ...

    def clear(self) -> None: ...


class RebuildCoordinator:
    """At most one rebuild runs at a time; requests during a rebuild coalesce.

    A request while idle starts a rebuild on the scheduler. Requests while a
    rebuild is in flight (or settling) only set ``pending``. After each pass a
    check runs ``settle_delay_s`` later: a set ``pending`` flag is cleared and
    buys exactly one more pass, otherwise the coordinator goes idle.
    """

    def __init__(
        self,
        *,
        fs: FileSystem,
        watches: WatchRegistry,
        scheduler: Scheduler,
        state: RebuildState,
        snapshots: MenuSnapshots | None = None,
        on_publish: Callable[[PublishedMenus], None] | None = None,
        settle_delay_s: float = SETTLE_DELAY_S,
        max_depth: int = MAX_DEPTH,
        category_title: str = UTILITIES_TITLE,
        yield_point: Callable[[], None] | None = None,
    ) -> None:
        self.fs = fs
        self.watches = watches
        self.scheduler = scheduler
        self.state = state
        self.snapshots = snapshots or MenuSnapshots()
        self.on_publish = on_publish
        self.settle_delay_s = settle_delay_s
        self.max_depth = max_depth
        self.category_title = category_title
        self.yield_point = yield_point
        self.rebuild_count = 0
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._logger = get_runtime_logger(component="coordinator")

    @property
    def phase(self) -> Phase:
        with self._lock:
            return self.state.phase

    def latest(self) -> PublishedMenus:
        return self.snapshots.latest()

    def configure(self, *, root_path: str | None = None, ignoring_parenthesized: bool | None = None) -> None:
        """Takes effect on the next pass; callers request the rebuild themselves."""
        with self._lock:
            if root_path is not None:
                self.state.root_path = root_path
                self.state.secondary_root_path = secondary_root_for(root_path)
            if ignoring_parenthesized is not None:
                self.state.ignoring_parenthesized = ignoring_parenthesized

    def handle_change(self, change: ChangeEvent) -> None:
        self._logger.debug("rebuild.change", path=change.path, kind=change.kind, event_type=change.event_type)
        self.request_rebuild(reason=f"watch.{change.kind}")

    def request_rebuild(self, reason: str = "manual") -> None:
        with self._lock:
            if self.state.in_progress:
                self.state.pending = True
                self._logger.debug("rebuild.coalesced", reason=reason)
                return
            self.state.in_progress = True
            self._idle.clear()
        self._logger.info("rebuild.requested", reason=reason)
        self.scheduler.submit(self._run_pass)

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._idle.wait(timeout)

    def _run_pass(self) -> None:
        try:
            self._rebuild()
        finally:
            self.scheduler.call_later(self.settle_delay_s, self._check_for_more)

    def _check_for_more(self) -> None:
        with self._lock:
            again = self.state.take_pending()
            if not again:
                self.state.in_progress = False
                self._idle.set()
        if again:
            self._logger.debug("rebuild.follow_up")
            self._run_pass()
        else:
            self._logger.debug("rebuild.idle")

    def _rebuild(self) -> None:
        with self._lock:
            root = self.state.root_path
            secondary = self.state.secondary_root_path
            ignoring = self.state.ignoring_parenthesized

        started = time.monotonic()
        self._logger.info("rebuild.started", root=root, secondary=secondary, ignoring_parens=ignoring)
        try:
            self.watches.clear()
            builder = TreeBuilder(
                self.fs,
                Classifier(self.fs.stat_package, ignoring_parens=ignoring),
                watcher=self.watches,
                max_depth=self.max_depth,
                yield_point=self.yield_point,
            )
            merger = TreeMerger(builder, category_title=self.category_title)
            menu_bar = merger.merge(root, secondary, listen=True)
            # The dock copy is a separate walk so it never owns watches.
            dock = merger.merge(root, secondary, listen=False)
        except Exception as exc:
            self._logger.error("rebuild.failed", root=root, error=str(exc))
            return

        published = self.snapshots.publish(menu_bar, dock)
        self.rebuild_count += 1
        self._logger.info(
            "rebuild.published",
            generation=published.generation,
            top_level=len(menu_bar),
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        if self.on_publish is not None:
            try:
                self.on_publish(published)
            except Exception as exc:
                self._logger.error("rebuild.on_publish.failed", error=str(exc))
