"""Wires settings, watches and the rebuild coordinator together."""

from __future__ import annotations

import os
from typing import Callable, Literal

import click

from appmenu.config.models import AppMenuSettings
from appmenu.config.store import SettingsStore
from appmenu.engine.coordinator import SETTLE_DELAY_S, RebuildCoordinator, Scheduler
from appmenu.engine.scheduler import SerialExecutor
from appmenu.engine.state import PublishedMenus, RebuildState
from appmenu.fs.local import LocalFileSystem
from appmenu.fs.watch import NullWatchSet, WatchSet
from appmenu.menu.classify import Classifier, EntryKind
from appmenu.menu.model import FileEntry, MenuNode
from appmenu.runtime_logging import get_runtime_logger

RootStatus = Literal["good", "nonexistent"]


def validate_root(path: str, fs: LocalFileSystem | None = None) -> RootStatus:
    """An empty path means the default root; anything else must be a plain folder."""
    path = os.path.expanduser(path.strip())
    if not path:
        return "good"
    fs = fs or LocalFileSystem()
    entry = FileEntry(
        name=os.path.basename(path.rstrip(os.sep)) or path,
        full_path=path,
        is_dir=os.path.isdir(path),
        is_symlink=os.path.islink(path),
    )
    if Classifier(fs.stat_package).classify(entry) is EntryKind.SUBDIRECTORY:
        return "good"
    return "nonexistent"


def launch_path(path: str) -> None:
    click.launch(path)


class AppMenuService:
    def __init__(
        self,
        *,
        settings_store: SettingsStore | None = None,
        fs: LocalFileSystem | None = None,
        watch_set: WatchSet | NullWatchSet | None = None,
        scheduler: Scheduler | None = None,
        opener: Callable[[str], None] = launch_path,
        enable_watchers: bool = True,
        settle_delay_s: float = SETTLE_DELAY_S,
        on_publish: Callable[[PublishedMenus], None] | None = None,
    ) -> None:
        self.logger = get_runtime_logger(component="service")
        self.settings_store = settings_store or SettingsStore()
        self.settings: AppMenuSettings = self.settings_store.load()
        self.fs = fs or LocalFileSystem()
        self.opener = opener
        self.on_publish = on_publish
        self.watcher_startup_error: str | None = None

        if watch_set is not None:
            self.watch_set = watch_set
        elif enable_watchers:
            try:
                self.watch_set = WatchSet()
            except OSError as exc:
                self.watcher_startup_error = str(exc)
                self.logger.warning("service.watchers.unavailable", error=str(exc))
                self.watch_set = NullWatchSet()
        else:
            self.watch_set = NullWatchSet()

        self.scheduler = scheduler or SerialExecutor()
        self.coordinator = RebuildCoordinator(
            fs=self.fs,
            watches=self.watch_set,
            scheduler=self.scheduler,
            state=RebuildState.for_root(
                self.settings.effective_root_path(),
                ignoring_parenthesized=self.settings.ignoring_parens,
            ),
            on_publish=self._published,
            settle_delay_s=settle_delay_s,
        )
        self.watch_set.on_change = self.coordinator.handle_change
        self.logger.info(
            "service.initialized",
            root=self.settings.effective_root_path(),
            ignoring_parens=self.settings.ignoring_parens,
            watchers=type(self.watch_set).__name__,
        )

    def start(self) -> None:
        self.coordinator.request_rebuild(reason="startup")

    def rebuild(self) -> None:
        self.coordinator.request_rebuild(reason="manual")

    def latest(self) -> PublishedMenus:
        return self.coordinator.latest()

    @property
    def root_path(self) -> str:
        return self.settings.effective_root_path()

    def toggle_ignoring_parens(self) -> bool:
        value = not self.settings.ignoring_parens
        self.settings = self.settings_store.update("ignoring_parens", value)
        self.coordinator.configure(ignoring_parenthesized=value)
        self.coordinator.request_rebuild(reason="settings.ignoring_parens")
        return value

    def set_root_path(self, value: str) -> bool:
        """Persist a new root; rebuild only when it differs from the stored one."""
        candidate = AppMenuSettings(root_path=value).root_path
        if candidate == self.settings.root_path:
            return False
        self.settings = self.settings_store.update("root_path", candidate)
        self.coordinator.configure(root_path=self.settings.effective_root_path())
        self.coordinator.request_rebuild(reason="settings.root_path")
        return True

    def open_item(self, node: MenuNode) -> bool:
        if not node.target_path:
            return False
        self.logger.info("service.open", path=node.target_path)
        self.opener(node.target_path)
        return True

    def close(self) -> None:
        close_scheduler = getattr(self.scheduler, "close", None)
        if close_scheduler is not None:
            close_scheduler()
        self.watch_set.close()
        self.logger.info("service.closed")

    def _published(self, published: PublishedMenus) -> None:
        if self.on_publish is not None:
            self.on_publish(published)
