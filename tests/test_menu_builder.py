from __future__ import annotations

import os
import plistlib
import tempfile
import unittest
from pathlib import Path

from appmenu.fs.local import LocalFileSystem
from appmenu.menu.builder import CooperativeYield, TreeBuilder, is_guid_name, strip_bundle_suffix
from appmenu.menu.classify import Classifier, EntryKind
from appmenu.menu.model import FileEntry, MenuNode, finder_sorted


def make_layout(root: Path, paths: list[str]) -> None:
    """Trailing slash creates a directory, anything else an empty file."""
    for rel in paths:
        target = root / rel
        if rel.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("", encoding="utf-8")


def make_legacy_app(path: Path, package_type: str = "APPL") -> None:
    contents = path / "Contents"
    contents.mkdir(parents=True)
    with (contents / "Info.plist").open("wb") as handle:
        plistlib.dump({"CFBundlePackageType": package_type}, handle)


class NamedFileSystem(LocalFileSystem):
    def __init__(self, names: dict[str, str]) -> None:
        super().__init__()
        self.names = names

    def localized_display_name(self, path: str) -> str | None:
        return self.names.get(os.path.basename(path))


class ListedFileSystem:
    """Directory listings given verbatim so encounter order is controlled."""

    def __init__(self, listings: dict[str, list[FileEntry]]) -> None:
        self.listings = listings

    def list_directory(self, path: str) -> list[FileEntry]:
        return list(self.listings.get(path, []))

    def stat_package(self, path: str) -> str | None:  # noqa: ARG002
        return None

    def localized_display_name(self, path: str) -> str | None:  # noqa: ARG002
        return None


class RecordingWatcher:
    def __init__(self) -> None:
        self.paths: list[str] = []

    def add(self, path: str) -> None:
        self.paths.append(path)


def titles(nodes: tuple[MenuNode, ...]) -> list[str]:
    return [node.title for node in nodes]


class ClassifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.packages: dict[str, str] = {}
        self.classifier = Classifier(self.packages.get)

    def test_hidden_and_empty_names_are_ignored(self) -> None:
        self.assertIs(self.classifier.classify(FileEntry("", "/a/", is_dir=True)), EntryKind.IGNORE)
        self.assertIs(self.classifier.classify(FileEntry(".Trash", "/a/.Trash", is_dir=True)), EntryKind.IGNORE)

    def test_plain_files_are_ignored(self) -> None:
        entry = FileEntry("Notes.app", "/a/Notes.app", is_dir=False)
        self.assertIs(self.classifier.classify(entry), EntryKind.IGNORE)

    def test_bundle_suffix_is_case_insensitive(self) -> None:
        entry = FileEntry("Chess.APP", "/a/Chess.APP", is_dir=True)
        self.assertIs(self.classifier.classify(entry), EntryKind.APP_BUNDLE)

    def test_package_type_marks_legacy_app(self) -> None:
        self.packages["/a/Old Thing"] = "APPL"
        self.packages["/a/Framework"] = "FMWK"
        self.assertIs(self.classifier.classify(FileEntry("Old Thing", "/a/Old Thing", is_dir=True)), EntryKind.LEGACY_APP)
        self.assertIs(self.classifier.classify(FileEntry("Framework", "/a/Framework", is_dir=True)), EntryKind.SUBDIRECTORY)

    def test_parenthesized_only_ignored_when_flag_set(self) -> None:
        entry = FileEntry("(Old Stuff)", "/a/(Old Stuff)", is_dir=True)
        self.assertIs(self.classifier.classify(entry), EntryKind.SUBDIRECTORY)
        self.classifier.ignoring_parens = True
        self.assertIs(self.classifier.classify(entry), EntryKind.IGNORE)
        half = FileEntry("(Draft", "/a/(Draft", is_dir=True)
        self.assertIs(self.classifier.classify(half), EntryKind.SUBDIRECTORY)

    def test_guid_names_are_not_filtered_here(self) -> None:
        entry = FileEntry("{1234-ABCD}.app", "/a/{1234-ABCD}.app", is_dir=True)
        self.assertIs(self.classifier.classify(entry), EntryKind.APP_BUNDLE)

    def test_symlinks_are_never_subdirectories(self) -> None:
        linked_app = FileEntry("Tool.app", "/a/Tool.app", is_dir=True, is_symlink=True)
        linked_dir = FileEntry("More", "/a/More", is_dir=True, is_symlink=True)
        self.assertIs(self.classifier.classify(linked_app), EntryKind.APP_BUNDLE)
        self.assertIs(self.classifier.classify(linked_dir), EntryKind.IGNORE)


class SortingTests(unittest.TestCase):
    def test_case_insensitive_and_stable(self) -> None:
        nodes = [
            MenuNode.leaf("banana", "/1"),
            MenuNode.leaf("Apple", "/2"),
            MenuNode.leaf("mail", "/3"),
            MenuNode.leaf("Mail", "/4"),
            MenuNode.leaf("cherry", "/5"),
        ]
        ordered = finder_sorted(nodes)
        self.assertEqual(titles(ordered), ["Apple", "banana", "cherry", "mail", "Mail"])
        self.assertEqual([node.target_path for node in ordered][3:], ["/3", "/4"])

    def test_helpers(self) -> None:
        self.assertTrue(is_guid_name("{0A1B}"))
        self.assertFalse(is_guid_name("{0A1B"))
        self.assertEqual(strip_bundle_suffix("Mail.App"), "Mail")
        self.assertEqual(strip_bundle_suffix("Mail"), "Mail")


class TreeBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name) / "Apps"
        self.root.mkdir()
        self.fs = LocalFileSystem()

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def _builder(self, fs=None, *, ignoring_parens: bool = False, **kwargs) -> TreeBuilder:  # noqa: ANN001, ANN003
        fs = fs or self.fs
        return TreeBuilder(fs, Classifier(fs.stat_package, ignoring_parens=ignoring_parens), **kwargs)

    def test_apps_folder_scenario(self) -> None:
        make_layout(self.root, ["Mail.app/", "Utilities/Terminal.app/", "Utilities/Console.app/", "Games/Chess.app/", "README.txt"])
        nodes = self._builder().build(str(self.root))

        self.assertEqual(titles(nodes), ["Chess", "Mail", "Utilities"])
        chess, mail, utilities = nodes
        self.assertEqual(chess.kind, "leaf")
        self.assertEqual(chess.target_path, str(self.root / "Games" / "Chess.app"))
        self.assertEqual(mail.icon_key, str(self.root / "Mail.app"))
        self.assertTrue(utilities.is_submenu)
        self.assertEqual(utilities.target_path, str(self.root / "Utilities"))
        self.assertEqual(titles(utilities.children), ["Console", "Terminal"])

    def test_single_app_chain_hoists_to_one_leaf(self) -> None:
        make_layout(self.root, ["A/B/C/D/Deep.app/"])
        nodes = self._builder().build(str(self.root))
        self.assertEqual(len(nodes), 1)
        self.assertEqual(nodes[0].title, "Deep")
        self.assertEqual(nodes[0].kind, "leaf")
        self.assertEqual(nodes[0].target_path, str(self.root / "A/B/C/D/Deep.app"))

    def test_empty_directories_contribute_nothing(self) -> None:
        make_layout(self.root, ["Empty/", "Docs/readme.txt", "Nested/Also Empty/"])
        self.assertEqual(self._builder().build(str(self.root)), ())

    def test_unlistable_root_is_empty(self) -> None:
        self.assertEqual(self._builder().build(str(self.root / "missing")), ())

    def test_depth_limit(self) -> None:
        six = "/".join(f"d{i}" for i in range(1, 7))
        seven = "/".join(f"e{i}" for i in range(1, 8))
        make_layout(self.root, [f"{six}/Reachable.app/", f"{seven}/TooDeep.app/"])
        nodes = self._builder().build(str(self.root))
        self.assertEqual(titles(nodes), ["Reachable"])

    def test_max_depth_is_overridable(self) -> None:
        make_layout(self.root, ["One/Two/App.app/"])
        self.assertEqual(self._builder(max_depth=1).build(str(self.root)), ())
        self.assertEqual(titles(self._builder(max_depth=2).build(str(self.root))), ["App"])

    def test_guid_app_bundles_are_dropped(self) -> None:
        make_layout(self.root, ["{4A5B-11C2}.app/", "Keep.app/"])
        self.assertEqual(titles(self._builder().build(str(self.root))), ["Keep"])

    def test_guid_names_survive_outside_app_bundles(self) -> None:
        make_legacy_app(self.root / "{Legacy}")
        make_layout(self.root, ["{Folder}/One.app/", "{Folder}/Two.app/"])
        nodes = self._builder().build(str(self.root))
        self.assertEqual(titles(nodes), ["{Folder}", "{Legacy}"])

    def test_localized_name_can_produce_guid(self) -> None:
        make_layout(self.root, ["Uninstall.app/", "Keep.app/"])
        fs = NamedFileSystem({"Uninstall.app": "{ABC}"})
        self.assertEqual(titles(self._builder(fs).build(str(self.root))), ["Keep"])

    def test_localized_names_for_apps_and_folders(self) -> None:
        make_layout(self.root, ["Utilities/A.app/", "Utilities/B.app/", "Calc.app/"])
        fs = NamedFileSystem({"Utilities": "Dienstprogramme", "Calc.app": "Rechner"})
        nodes = self._builder(fs).build(str(self.root))
        self.assertEqual(titles(nodes), ["Dienstprogramme", "Rechner"])

    def test_legacy_app_uses_raw_name(self) -> None:
        make_legacy_app(self.root / "Old Editor")
        nodes = self._builder().build(str(self.root))
        self.assertEqual(titles(nodes), ["Old Editor"])
        self.assertEqual(nodes[0].kind, "leaf")

    def test_ignoring_parenthesized_folders(self) -> None:
        make_layout(self.root, ["(Old Stuff)/Ancient.app/", "Mail.app/"])
        self.assertEqual(titles(self._builder().build(str(self.root))), ["Ancient", "Mail"])
        self.assertEqual(titles(self._builder(ignoring_parens=True).build(str(self.root))), ["Mail"])

    def test_symlinked_folders_are_not_walked(self) -> None:
        outside = Path(self.tmp.name) / "Outside"
        make_layout(outside, ["Hidden.app/", "Other.app/"])
        (self.root / "Linked").symlink_to(outside, target_is_directory=True)
        (self.root / "Alias.app").symlink_to(outside / "Hidden.app", target_is_directory=True)
        nodes = self._builder().build(str(self.root))
        self.assertEqual(titles(nodes), ["Alias"])

    def test_listen_registers_visited_directories(self) -> None:
        make_layout(self.root, ["Utilities/A.app/", "Utilities/B.app/", "Games/Chess.app/", "Deep/d2/Far.app/"])
        watcher = RecordingWatcher()
        self._builder(watcher=watcher, max_depth=1).build(str(self.root), listen=True)
        expected = {str(self.root), str(self.root / "Utilities"), str(self.root / "Games"), str(self.root / "Deep")}
        self.assertEqual(set(watcher.paths), expected)

    def test_no_registration_without_listen(self) -> None:
        make_layout(self.root, ["Games/Chess.app/"])
        watcher = RecordingWatcher()
        self._builder(watcher=watcher).build(str(self.root), listen=False)
        self.assertEqual(watcher.paths, [])

    def test_equal_titles_keep_listing_order(self) -> None:
        listings = {
            "/r": [
                FileEntry("mail.app", "/r/mail.app", is_dir=True),
                FileEntry("Zoo.app", "/r/Zoo.app", is_dir=True),
                FileEntry("Mail.app", "/r/Mail.app", is_dir=True),
            ]
        }
        fs = ListedFileSystem(listings)
        nodes = self._builder(fs).build("/r")
        self.assertEqual([node.target_path for node in nodes], ["/r/mail.app", "/r/Mail.app", "/r/Zoo.app"])

    def test_yield_point_runs_per_entry(self) -> None:
        make_layout(self.root, ["A.app/", "B.app/", "C.app/"])
        calls: list[int] = []
        self._builder(yield_point=lambda: calls.append(1)).build(str(self.root))
        self.assertEqual(len(calls), 3)


class CooperativeYieldTests(unittest.TestCase):
    def test_rate_limited(self) -> None:
        now = [0.0]
        hooks: list[float] = []
        point = CooperativeYield(lambda: hooks.append(now[0]), interval_s=0.25, clock=lambda: now[0])
        for step in range(10):
            now[0] = step * 0.1
            point()
        self.assertEqual(point.count, 3)
        self.assertEqual(len(hooks), 3)

    def test_without_hook_is_noop(self) -> None:
        point = CooperativeYield()
        point()
        self.assertEqual(point.count, 0)


if __name__ == "__main__":
    unittest.main()
