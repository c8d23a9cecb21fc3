"""Per-directory watchdog watches sharing one change callback."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Literal

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from appmenu.runtime_logging import get_runtime_logger

ChangeKind = Literal["modified", "invalidated"]

# Read-only access reports; the rebuild walk itself produces these.
_PASSIVE_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    path: str
    kind: ChangeKind
    event_type: str = ""
    src_path: str = ""


@dataclass(slots=True)
class WatchHandle:
    path: str
    liveness: Literal["active", "invalidated"] = "active"
    watch: Any = None


def canonical_path(path: str) -> str:
    return os.path.realpath(os.path.expanduser(path))


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return os.fsdecode(value)
    return str(value or "")


def classify_event(watched: str, event: FileSystemEvent) -> ChangeKind:
    """Deleting, renaming or replacing the watched directory itself invalidates its watch."""
    event_type = getattr(event, "event_type", "")
    target = watched.rstrip(os.sep)
    src = _text(getattr(event, "src_path", "")).rstrip(os.sep)
    dest = _text(getattr(event, "dest_path", "")).rstrip(os.sep)
    if event_type in {"deleted", "moved"} and src == target:
        return "invalidated"
    if event_type == "moved" and dest == target:
        return "invalidated"
    return "modified"


class _DirectoryHandler(FileSystemEventHandler):
    def __init__(self, owner: "WatchSet", path: str) -> None:
        super().__init__()
        self.owner = owner
        self.path = path

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _PASSIVE_EVENT_TYPES:
            return
        self.owner._dispatch(self.path, event)  # noqa: SLF001


class WatchSet:
    """Active watches keyed by canonical path, at most one per path.

    Change notifications from every watch go through the single ``on_change``
    callback. Invalidating notifications drop the handle before the callback
    runs; the next rebuild re-registers whatever still exists.
    """

    def __init__(
        self,
        on_change: Callable[[ChangeEvent], None] | None = None,
        *,
        observer: Any = None,
    ) -> None:
        self.on_change = on_change
        self._observer = observer if observer is not None else Observer()
        self._lock = threading.Lock()
        self._add_lock = threading.Lock()
        self._handles: dict[str, WatchHandle] = {}
        self._logger = get_runtime_logger(component="watch")
        if not self._observer.is_alive():
            self._observer.start()
        self._logger.info("watch.set.started")

    def add(self, path: str) -> WatchHandle | None:
        key = canonical_path(path)
        # Never hold _lock across schedule(): dispatch calls remove() under the observer lock.
        with self._add_lock:
            existing = self.lookup(key)
            if existing is not None and existing.liveness == "active":
                return existing
            try:
                watch = self._observer.schedule(_DirectoryHandler(self, key), key, recursive=False)
            except OSError as exc:
                self._logger.warning("watch.add.failed", path=key, error=str(exc))
                return None
            handle = WatchHandle(path=key, watch=watch)
            with self._lock:
                self._handles[key] = handle
        self._logger.debug("watch.add", path=key, watch_count=len(self._handles))
        return handle

    def lookup(self, path: str) -> WatchHandle | None:
        with self._lock:
            return self._handles.get(canonical_path(path))

    def remove(self, path: str) -> None:
        key = canonical_path(path)
        with self._lock:
            handle = self._handles.pop(key, None)
        if handle is not None:
            self._release(handle)
            self._logger.debug("watch.remove", path=key)

    def clear(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            self._release(handle)
        self._logger.debug("watch.cleared", released=len(handles))

    def paths(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def close(self) -> None:
        self.clear()
        self._observer.stop()
        self._observer.join(timeout=2)
        self._logger.info("watch.set.closed")

    def _release(self, handle: WatchHandle) -> None:
        handle.liveness = "invalidated"
        if handle.watch is None:
            return
        try:
            self._observer.unschedule(handle.watch)
        except (KeyError, OSError) as exc:
            # The observer drops watches on vanished directories by itself.
            self._logger.debug("watch.unschedule.skipped", path=handle.path, error=str(exc))

    def _dispatch(self, path: str, event: FileSystemEvent) -> None:
        kind = classify_event(path, event)
        change = ChangeEvent(
            path=path,
            kind=kind,
            event_type=str(getattr(event, "event_type", "")),
            src_path=_text(getattr(event, "src_path", "")),
        )
        self._logger.debug("watch.event", path=path, kind=kind, event_type=change.event_type, src_path=change.src_path)
        if kind == "invalidated":
            self.remove(path)
        callback = self.on_change
        if callback is None:
            return
        try:
            callback(change)
        except Exception as exc:
            self._logger.error("watch.callback.failed", path=path, error=str(exc))


class NullWatchSet:
    """No-op watch set for tests and restricted environments."""

    on_change: Callable[[ChangeEvent], None] | None = None

    def add(self, path: str) -> WatchHandle | None:  # noqa: ARG002
        return None

    def lookup(self, path: str) -> WatchHandle | None:  # noqa: ARG002
        return None

    def remove(self, path: str) -> None:  # noqa: ARG002
        return

    def clear(self) -> None:
        return

    def paths(self) -> list[str]:
        return []

    def __len__(self) -> int:
        return 0

    def close(self) -> None:
        return
