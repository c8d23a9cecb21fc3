"""Decide what a directory entry contributes to the menu."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from appmenu.menu.model import FileEntry

APP_BUNDLE_SUFFIX = ".app"
APPLICATION_PACKAGE_TYPE = "APPL"


class EntryKind(Enum):
    IGNORE = "ignore"
    APP_BUNDLE = "app_bundle"
    SUBDIRECTORY = "subdirectory"
    LEGACY_APP = "legacy_app"


def has_bundle_suffix(name: str) -> bool:
    return name.lower().endswith(APP_BUNDLE_SUFFIX)


def is_parenthesized(name: str) -> bool:
    return name.startswith("(") and name.endswith(")")


class Classifier:
    """Classify listed entries; only directories are ever menu material.

    ``stat_package`` returns the package type declared by a directory's
    descriptor (``"APPL"`` for applications) or ``None``.
    """

    def __init__(
        self,
        stat_package: Callable[[str], str | None],
        *,
        ignoring_parens: bool = False,
    ) -> None:
        self.stat_package = stat_package
        self.ignoring_parens = ignoring_parens

    def classify(self, entry: FileEntry) -> EntryKind:
        name = entry.name
        if not name or name.startswith("."):
            return EntryKind.IGNORE
        if self.ignoring_parens and is_parenthesized(name):
            return EntryKind.IGNORE
        if not entry.is_dir:
            return EntryKind.IGNORE
        if entry.is_symlink:
            # Links are never walked; one pointing at an app bundle stays an opaque leaf.
            return EntryKind.APP_BUNDLE if has_bundle_suffix(name) else EntryKind.IGNORE
        if has_bundle_suffix(name):
            return EntryKind.APP_BUNDLE
        if self.stat_package(entry.full_path) == APPLICATION_PACKAGE_TYPE:
            return EntryKind.LEGACY_APP
        return EntryKind.SUBDIRECTORY
