"""CLI entrypoint for AppMenu."""

from __future__ import annotations

import json

import click

from appmenu.config.models import secondary_root_for
from appmenu.config.store import SettingsStore
from appmenu.fs.local import LocalFileSystem
from appmenu.menu.builder import TreeBuilder
from appmenu.menu.classify import Classifier
from appmenu.menu.merge import TreeMerger
from appmenu.menu.model import MenuNode
from appmenu.paths import settings_path
from appmenu.runtime_logging import configure_runtime_logging
from appmenu.service import validate_root
from appmenu.ui.app import AppMenuApp
from appmenu.version import __version__


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.pass_context
def main(ctx: click.Context) -> None:
    """AppMenu: a live, hierarchical menu of installed applications."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@click.option("--no-watch", is_flag=True, help="Do not watch folders for changes")
@click.option("--log-level", default=None, help="off, error, warning, info or debug")
def run(no_watch: bool, log_level: str | None) -> None:
    """Run the interactive menu."""
    app = AppMenuApp(enable_watchers=not no_watch, log_level=log_level)
    app.run()


@main.command()
@click.argument("root", required=False)
@click.option("--secondary", default=None, help="Second root merged into ROOT")
@click.option("--ignore-parens/--show-parens", default=None, help="Skip folders named like '(Old Stuff)'")
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON")
def tree(root: str | None, secondary: str | None, ignore_parens: bool | None, as_json: bool) -> None:
    """Build the menu once and print it."""
    configure_runtime_logging()
    settings = SettingsStore().load()
    if root is None:
        root = settings.effective_root_path()
    if validate_root(root) != "good":
        raise click.ClickException(f"Not a folder: {root}")
    if secondary is None:
        secondary = secondary_root_for(root)
    if ignore_parens is None:
        ignore_parens = settings.ignoring_parens

    fs = LocalFileSystem()
    builder = TreeBuilder(fs, Classifier(fs.stat_package, ignoring_parens=ignore_parens))
    nodes = TreeMerger(builder).merge(root, secondary, listen=False)

    if as_json:
        click.echo(json.dumps([node.to_dict() for node in nodes], indent=2))
        return
    for line in outline(nodes):
        click.echo(line)


@main.command("validate-root")
@click.argument("path")
def validate_root_command(path: str) -> None:
    """Check that PATH can be used as the menu root."""
    status = validate_root(path)
    if status != "good":
        raise click.ClickException(f"{path}: {status}")
    click.echo("ok")


@main.command("settings-path")
def settings_path_command() -> None:
    """Print settings file path."""
    click.echo(str(settings_path()))


@main.command()
def about() -> None:
    """Show version and project summary."""
    payload = {
        "name": "appmenu",
        "version": __version__,
        "description": "Live hierarchical menu of installed applications",
    }
    click.echo(json.dumps(payload, indent=2))


def outline(nodes: tuple[MenuNode, ...], indent: int = 0) -> list[str]:
    lines: list[str] = []
    for node in nodes:
        marker = "▸ " if node.is_submenu else "  "
        lines.append(f"{'    ' * indent}{marker}{node.title}")
        if node.is_submenu:
            lines.extend(outline(node.children, indent + 1))
    return lines


if __name__ == "__main__":
    main()
