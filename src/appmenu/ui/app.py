"""Textual front-end mirroring the menu-bar snapshot."""

from __future__ import annotations

from pathlib import Path

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header, Tree
from textual.widgets.tree import TreeNode

from appmenu.engine.state import PublishedMenus
from appmenu.menu.model import MenuNode
from appmenu.runtime_logging import configure_runtime_logging
from appmenu.service import AppMenuService


class AppMenuApp(App[None]):
    TITLE = "appmenu"
    SUB_TITLE = "Applications menu"

    BINDINGS = [
        ("r", "rebuild", "Rebuild"),
        ("p", "toggle_parens", "Toggle (…) folders"),
        ("o", "open_folder", "Open folder"),
        ("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        layout: vertical;
    }

    #menu {
        height: 1fr;
        border: round $surface-lighten-2;
    }
    """

    def __init__(
        self,
        *,
        service: AppMenuService | None = None,
        enable_watchers: bool = True,
        log_level: str | None = None,
        log_file: str | Path | None = None,
    ) -> None:
        self.logger = configure_runtime_logging(level=log_level, log_file=log_file)
        self.service = service or AppMenuService(enable_watchers=enable_watchers)
        super().__init__()

    def compose(self) -> ComposeResult:
        yield Header()
        yield Tree("Apps", id="menu")
        yield Footer()

    def on_mount(self) -> None:
        self.service.on_publish = self._on_published
        self.render_menus(self.service.latest())
        if self.service.watcher_startup_error:
            self.notify(
                f"File watching is off ({self.service.watcher_startup_error}); press r to refresh.",
                severity="warning",
            )
        self.service.start()
        self.logger.info("ui.mounted", root=self.service.root_path)

    def on_unmount(self) -> None:
        self.service.on_publish = None
        self.service.close()

    def _on_published(self, published: PublishedMenus) -> None:
        try:
            self.call_from_thread(self.render_menus, published)
        except RuntimeError:
            # Already on the app thread (inline scheduler).
            self.render_menus(published)

    def render_menus(self, published: PublishedMenus) -> None:
        tree: Tree[MenuNode] = self.query_one("#menu", Tree)
        tree.clear()
        tree.root.set_label(Path(self.service.root_path).name or self.service.root_path)
        self._add_nodes(tree.root, published.menu_bar)
        tree.root.expand()
        if published.is_placeholder:
            self.sub_title = "Working…"
        else:
            ignoring = " · hiding (…)" if self.service.settings.ignoring_parens else ""
            self.sub_title = f"{self.service.root_path}{ignoring}"

    def _add_nodes(self, parent: TreeNode[MenuNode], nodes: tuple[MenuNode, ...]) -> None:
        for node in nodes:
            if node.is_submenu:
                branch = parent.add(node.title, data=node, expand=False)
                self._add_nodes(branch, node.children)
            else:
                parent.add_leaf(node.title, data=node)

    def on_tree_node_selected(self, event: Tree.NodeSelected[MenuNode]) -> None:
        node = event.node.data
        if node is None or node.is_submenu:
            return
        if self.service.open_item(node):
            self.notify(f"Opening {node.title}")

    def action_open_folder(self) -> None:
        cursor = self.query_one("#menu", Tree).cursor_node
        node = cursor.data if cursor is not None else None
        if node is None or not node.is_submenu:
            return
        if self.service.open_item(node):
            self.notify(f"Opening folder {node.title}")

    def action_rebuild(self) -> None:
        self.service.rebuild()

    def action_toggle_parens(self) -> None:
        hiding = self.service.toggle_ignoring_parens()
        self.notify("Hiding parenthesized folders" if hiding else "Showing parenthesized folders")
