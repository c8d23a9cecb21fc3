"""Recursive classify-and-collapse walk from a directory to menu nodes."""

from __future__ import annotations

import time
from typing import Callable, Protocol

from appmenu.menu.classify import APP_BUNDLE_SUFFIX, Classifier, EntryKind
from appmenu.menu.model import FileEntry, MenuNode, finder_sorted
from appmenu.runtime_logging import get_runtime_logger

MAX_DEPTH = 6
YIELD_INTERVAL_S = 0.2


class FileSystem(Protocol):
    def list_directory(self, path: str) -> list[FileEntry]: ...

    def stat_package(self, path: str) -> str | None: ...

    def localized_display_name(self, path: str) -> str | None: ...


class Watcher(Protocol):
    def add(self, path: str) -> object: ...


def is_guid_name(name: str) -> bool:
    return name.startswith("{") and name.endswith("}")


def strip_bundle_suffix(name: str) -> str:
    if name.lower().endswith(APP_BUNDLE_SUFFIX):
        return name[: -len(APP_BUNDLE_SUFFIX)]
    return name


class CooperativeYield:
    """Rate-limited check-in point called once per walked entry.

    ``hook`` runs at most once per ``interval_s``; without a hook the walk
    never suspends.
    """

    def __init__(
        self,
        hook: Callable[[], None] | None = None,
        *,
        interval_s: float = YIELD_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.hook = hook
        self.interval_s = interval_s
        self.clock = clock
        self._last = clock()
        self.count = 0

    def __call__(self) -> None:
        if self.hook is None:
            return
        if self.clock() - self._last < self.interval_s:
            return
        self.hook()
        self.count += 1
        self._last = self.clock()


class TreeBuilder:
    def __init__(
        self,
        fs: FileSystem,
        classifier: Classifier,
        *,
        watcher: Watcher | None = None,
        max_depth: int = MAX_DEPTH,
        yield_point: Callable[[], None] | None = None,
    ) -> None:
        self.fs = fs
        self.classifier = classifier
        self.watcher = watcher
        self.max_depth = max_depth
        self.yield_point = yield_point or CooperativeYield()
        self._logger = get_runtime_logger(component="builder")

    def build(self, path: str, depth: int = 0, listen: bool = False) -> tuple[MenuNode, ...]:
        if listen and self.watcher is not None:
            self.watcher.add(path)

        items: list[MenuNode] = []
        for entry in self.fs.list_directory(path):
            node: MenuNode | None
            match self.classifier.classify(entry):
                case EntryKind.APP_BUNDLE:
                    node = self._app_bundle(entry)
                case EntryKind.LEGACY_APP:
                    node = MenuNode.leaf(entry.name, entry.full_path)
                case EntryKind.SUBDIRECTORY:
                    node = self._subdirectory(entry, depth, listen)
                case EntryKind.IGNORE:
                    node = None
            if node is not None:
                items.append(node)
            self.yield_point()
        return finder_sorted(items)

    def _app_bundle(self, entry: FileEntry) -> MenuNode | None:
        title = self._display_name(entry.full_path) or strip_bundle_suffix(entry.name)
        # Installer leftovers with GUID names carry no useful title.
        if is_guid_name(title):
            self._logger.debug("builder.skip_guid", path=entry.full_path)
            return None
        return MenuNode.leaf(title, entry.full_path)

    def _subdirectory(self, entry: FileEntry, depth: int, listen: bool) -> MenuNode | None:
        children: tuple[MenuNode, ...] = ()
        if depth < self.max_depth:
            children = self.build(entry.full_path, depth + 1, listen)
        if not children:
            return None
        if len(children) == 1:
            return children[0]
        title = self._display_name(entry.full_path) or entry.name
        return MenuNode.submenu(title, entry.full_path, children)

    def _display_name(self, path: str) -> str | None:
        try:
            return self.fs.localized_display_name(path)
        except (OSError, ValueError) as exc:
            self._logger.debug("builder.display_name.failed", path=path, error=str(exc))
            return None
