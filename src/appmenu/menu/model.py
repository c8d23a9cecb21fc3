"""Immutable menu tree nodes and directory entries."""

from __future__ import annotations

import locale
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

NodeKind = Literal["leaf", "submenu"]


@dataclass(frozen=True, slots=True)
class FileEntry:
    name: str
    full_path: str
    is_dir: bool
    is_symlink: bool = False


@dataclass(frozen=True, slots=True)
class MenuNode:
    title: str
    kind: NodeKind
    target_path: str
    icon_key: str = ""
    children: tuple["MenuNode", ...] = field(default_factory=tuple)

    @classmethod
    def leaf(cls, title: str, target_path: str) -> "MenuNode":
        return cls(title=title, kind="leaf", target_path=target_path, icon_key=target_path)

    @classmethod
    def submenu(cls, title: str, target_path: str, children: Iterable["MenuNode"]) -> "MenuNode":
        return cls(
            title=title,
            kind="submenu",
            target_path=target_path,
            icon_key=target_path,
            children=tuple(children),
        )

    @property
    def is_submenu(self) -> bool:
        return self.kind == "submenu"

    def with_children(self, children: Iterable["MenuNode"]) -> "MenuNode":
        return MenuNode(
            title=self.title,
            kind=self.kind,
            target_path=self.target_path,
            icon_key=self.icon_key,
            children=tuple(children),
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"title": self.title, "kind": self.kind, "path": self.target_path}
        if self.is_submenu:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


def title_key(node: MenuNode) -> str:
    return locale.strxfrm(node.title.casefold())


def finder_sorted(nodes: Iterable[MenuNode]) -> tuple[MenuNode, ...]:
    """Sort case-insensitively in locale order; equal titles keep encounter order."""
    return tuple(sorted(nodes, key=title_key))
