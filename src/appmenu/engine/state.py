"""Rebuild bookkeeping and the published menu snapshots."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Literal

from appmenu.config.models import secondary_root_for
from appmenu.menu.model import MenuNode

Phase = Literal["idle", "rebuilding", "rebuilding_with_pending"]

WORKING_TITLE = "Working…"


@dataclass(slots=True)
class RebuildState:
    root_path: str
    secondary_root_path: str = ""
    ignoring_parenthesized: bool = False
    in_progress: bool = False
    pending: bool = False

    @classmethod
    def for_root(cls, root_path: str, *, ignoring_parenthesized: bool = False) -> "RebuildState":
        return cls(
            root_path=root_path,
            secondary_root_path=secondary_root_for(root_path),
            ignoring_parenthesized=ignoring_parenthesized,
        )

    @property
    def phase(self) -> Phase:
        if not self.in_progress:
            return "idle"
        return "rebuilding_with_pending" if self.pending else "rebuilding"

    def take_pending(self) -> bool:
        pending = self.pending
        self.pending = False
        return pending


@dataclass(frozen=True, slots=True)
class PublishedMenus:
    menu_bar: tuple[MenuNode, ...]
    dock: tuple[MenuNode, ...]
    generation: int = 0

    @property
    def is_placeholder(self) -> bool:
        return self.generation == 0


def working_menus() -> PublishedMenus:
    return PublishedMenus(
        menu_bar=(MenuNode.leaf(WORKING_TITLE, ""),),
        dock=(MenuNode.leaf(WORKING_TITLE, ""),),
        generation=0,
    )


class MenuSnapshots:
    """Holds the latest published pair; readers never see a half-built tree."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = working_menus()

    def publish(self, menu_bar: tuple[MenuNode, ...], dock: tuple[MenuNode, ...]) -> PublishedMenus:
        with self._lock:
            self._current = PublishedMenus(menu_bar=menu_bar, dock=dock, generation=self._current.generation + 1)
            return self._current

    def latest(self) -> PublishedMenus:
        with self._lock:
            return self._current
