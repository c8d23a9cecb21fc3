"""Merge the primary and secondary application roots into one tree."""

from __future__ import annotations

from appmenu.menu.builder import TreeBuilder
from appmenu.menu.model import MenuNode, finder_sorted

UTILITIES_TITLE = "Utilities"


class TreeMerger:
    """Build both roots and fold the secondary category into the primary one.

    Secondary top-level entries join the result as they are, except its
    category node: that one only contributes children to a primary node of
    the same title and is dropped when the primary root has none.
    """

    def __init__(self, builder: TreeBuilder, *, category_title: str = UTILITIES_TITLE) -> None:
        self.builder = builder
        self.category_title = category_title

    def merge(self, primary_root: str, secondary_root: str = "", listen: bool = False) -> tuple[MenuNode, ...]:
        items: list[MenuNode] = []
        secondary_category: MenuNode | None = None
        if secondary_root:
            secondary = self.builder.build(secondary_root, 0, listen)
            secondary_category = self._category(secondary)
            items.extend(node for node in secondary if node is not secondary_category)

        merged = False
        for node in self.builder.build(primary_root, 0, listen):
            if secondary_category is not None and not merged and self._is_category(node):
                node = node.with_children(merge_children(node.children, secondary_category.children))
                merged = True
            items.append(node)
        return finder_sorted(items)

    def _is_category(self, node: MenuNode) -> bool:
        return node.is_submenu and node.title == self.category_title

    def _category(self, nodes: tuple[MenuNode, ...]) -> MenuNode | None:
        for node in nodes:
            if self._is_category(node):
                return node
        return None


def merge_children(primary: tuple[MenuNode, ...], secondary: tuple[MenuNode, ...]) -> tuple[MenuNode, ...]:
    """Append secondary nodes not already present by identity, then re-sort."""
    combined = list(primary)
    for node in secondary:
        if not any(node is existing for existing in combined):
            combined.append(node)
    return finder_sorted(combined)
