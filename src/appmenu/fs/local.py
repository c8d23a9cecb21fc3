"""Local implementations of the filesystem capabilities the builder consumes."""

from __future__ import annotations

import os
import plistlib
from pathlib import Path

from appmenu.menu.model import FileEntry
from appmenu.runtime_logging import get_runtime_logger


class LocalFileSystem:
    """Fail-soft directory listing and package probing on the real disk.

    ``localized_display_name`` has no portable source; it returns ``None`` so
    callers fall back to names derived from the entry itself. Subclass it to
    plug in a platform lookup.
    """

    def __init__(self) -> None:
        self._logger = get_runtime_logger(component="fs")

    def list_directory(self, path: str) -> list[FileEntry]:
        entries: list[FileEntry] = []
        try:
            with os.scandir(path) as scan:
                for item in scan:
                    try:
                        is_link = item.is_symlink()
                        is_dir = item.is_dir(follow_symlinks=True)
                    except OSError:
                        continue
                    entries.append(FileEntry(item.name, item.path, is_dir=is_dir, is_symlink=is_link))
        except OSError as exc:
            self._logger.debug("fs.list.failed", path=path, error=str(exc))
            return []
        return entries

    def stat_package(self, path: str) -> str | None:
        contents = Path(path) / "Contents"
        info_plist = contents / "Info.plist"
        try:
            with info_plist.open("rb") as handle:
                info = plistlib.load(handle)
        except FileNotFoundError:
            return self._pkginfo_type(contents / "PkgInfo")
        except (OSError, plistlib.InvalidFileException, ValueError) as exc:
            self._logger.debug("fs.package.unreadable", path=path, error=str(exc))
            return None
        package_type = info.get("CFBundlePackageType") if isinstance(info, dict) else None
        return package_type if isinstance(package_type, str) else None

    def _pkginfo_type(self, pkginfo: Path) -> str | None:
        try:
            head = pkginfo.read_bytes()[:4]
        except OSError:
            return None
        if len(head) < 4:
            return None
        return head.decode("ascii", errors="replace")

    def localized_display_name(self, path: str) -> str | None:  # noqa: ARG002
        return None
