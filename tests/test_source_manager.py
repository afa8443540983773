from __future__ import annotations

from pathlib import Path
import sys
import tempfile
import threading
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from launchpass.config.paths import AppPaths
from launchpass.core.descriptor_store import MalformedDescriptorError
from launchpass.core.loaders import LaunchBoxLibrary, LibraryLoader
from launchpass.core.locator import SourceLocator
from launchpass.core.models import LibraryType, SourceLocation
from launchpass.core.settings_store import JsonSettingsStore, MemorySettingsStore
from launchpass.core.source_manager import SourceManager

PLATFORMS_XML = """<?xml version="1.0"?>
<LaunchBox>
  <Platform><Name>Nintendo 64</Name></Platform>
  <PlatformFolder>
    <MediaType>Box - Front</MediaType>
    <FolderPath>Images\\Nintendo 64\\Box - Front</FolderPath>
    <Platform>Nintendo 64</Platform>
  </PlatformFolder>
</LaunchBox>
"""

NINTENDO_64_XML = """<?xml version="1.0"?>
<LaunchBox>
  <Game>
    <ID>mario</ID>
    <Title>Super Mario 64</Title>
    <ApplicationPath>Games\\Nintendo 64\\Mario.z64</ApplicationPath>
    <FrontImagePath>Images\\Nintendo 64\\Box - Front\\Mario.png</FrontImagePath>
    <ManualPath>Manuals\\Nintendo 64\\Mario.pdf</ManualPath>
  </Game>
  <Game>
    <ID>zelda</ID>
    <Title>Ocarina of Time</Title>
    <ApplicationPath>Games\\Nintendo 64\\Zelda.z64</ApplicationPath>
  </Game>
</LaunchBox>
"""


def _build_launchbox_stick(stick: Path) -> None:
    launchbox = stick / "LaunchBox"
    (launchbox / "Data" / "Platforms").mkdir(parents=True)
    (launchbox / "Games" / "Nintendo 64").mkdir(parents=True)
    (launchbox / "Images" / "Nintendo 64" / "Box - Front").mkdir(parents=True)
    (launchbox / "Junk").mkdir()
    (stick / "LaunchPass.xml").write_text(
        "<LaunchPassConfig><type>LaunchBox</type><relativePath>./LaunchBox</relativePath></LaunchPassConfig>",
        encoding="utf-8",
    )
    (launchbox / "Data" / "Platforms.xml").write_text(PLATFORMS_XML, encoding="utf-8")
    (launchbox / "Data" / "Platforms" / "Nintendo 64.xml").write_text(NINTENDO_64_XML, encoding="utf-8")
    (launchbox / "Games" / "Nintendo 64" / "Mario.z64").write_bytes(b"mario")
    (launchbox / "Games" / "Nintendo 64" / "Zelda.z64").write_bytes(b"zelda")
    (launchbox / "Images" / "Nintendo 64" / "Box - Front" / "Mario.png").write_bytes(b"png")
    (launchbox / "Junk" / "unrelated.txt").write_text("not part of the library", encoding="utf-8")


class RecordingThumbnailCache:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def set(self, library, location: SourceLocation) -> None:
        self.calls.append(("set", library, location))

    def invalidate(self, location: SourceLocation) -> None:
        self.calls.append(("invalidate", location))


class SourceManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        base = Path(self._temp_dir.name)
        self.stick = base / "stick"
        _build_launchbox_stick(self.stick)
        self.paths = AppPaths(home=base / "home", removable_roots=(self.stick,))
        self.thumbnails = RecordingThumbnailCache()
        self.manager = SourceManager.from_paths(self.paths, thumbnail_cache=self.thumbnails)

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def _import(self) -> list[float]:
        progress: list[float] = []
        self.manager.events.progress.connect(progress.append)
        self.assertIsNotNone(self.manager.scan().removable)
        self.assertTrue(self.manager.import_library(timeout=10))
        return progress

    def test_import_mirrors_only_catalogued_content(self) -> None:
        progress = self._import()

        mirror = self.paths.local_mirror_root
        self.assertTrue((mirror / "Data" / "Platforms.xml").is_file())
        self.assertTrue((mirror / "Data" / "Platforms" / "Nintendo 64.xml").is_file())
        self.assertEqual((mirror / "Games" / "Nintendo 64" / "Mario.z64").read_bytes(), b"mario")
        self.assertEqual((mirror / "Games" / "Nintendo 64" / "Zelda.z64").read_bytes(), b"zelda")
        self.assertTrue((mirror / "Images" / "Nintendo 64" / "Box - Front" / "Mario.png").is_file())
        self.assertFalse((mirror / "Junk").exists())
        self.assertFalse((mirror / "Manuals").exists())
        self.assertEqual(len(progress), 6)
        self.assertEqual(progress[-1], 100.0)
        self.assertTrue(self.manager.import_finished)
        self.assertTrue(self.manager.has_source(SourceLocation.LOCAL))

    def test_activate_local_after_import(self) -> None:
        self._import()

        library = self.manager.activate(SourceLocation.LOCAL)

        assert library is not None
        self.assertIsInstance(library, LaunchBoxLibrary)
        self.assertEqual(library.root_folder, self.paths.local_mirror_root)
        self.assertEqual(sorted(game.title for game in library.games), ["Ocarina of Time", "Super Mario 64"])
        self.assertEqual(self.thumbnails.calls, [("set", library, SourceLocation.LOCAL)])
        self.assertIs(self.manager.get_active(), library)
        self.assertEqual(self.manager.active_location, SourceLocation.LOCAL)
        persisted = JsonSettingsStore(self.paths.settings_file)
        self.assertEqual(persisted.get("ActiveDataSourceLocationKey"), "Local")

    def test_get_active_restores_persisted_location(self) -> None:
        self.manager.scan()
        self.manager.activate(SourceLocation.REMOVABLE)

        thumbnails = RecordingThumbnailCache()
        restarted = SourceManager.from_paths(self.paths, thumbnail_cache=thumbnails)
        library = restarted.get_active()

        assert library is not None
        self.assertEqual(library.root_folder, self.stick / "LaunchBox")
        self.assertEqual(len(library.games), 2)
        self.assertEqual(thumbnails.calls, [("set", library, SourceLocation.REMOVABLE)])
        self.assertIs(restarted.get_active(), library)
        self.assertEqual(len(thumbnails.calls), 1)

    def test_scan_messages_reach_progress_callback_on_import_and_activate(self) -> None:
        messages: list[str] = []
        manager = SourceManager.from_paths(self.paths, progress_callback=messages.append)
        manager.scan()

        self.assertTrue(manager.import_library(timeout=10))
        self.assertEqual(
            messages,
            ["[scan] LaunchBox platforms discovered: 1", "[scan] Reading LaunchBox platform 'Nintendo 64'"],
        )

        messages.clear()
        manager.activate(SourceLocation.LOCAL)
        self.assertIn("[scan] Reading LaunchBox platform 'Nintendo 64'", messages)

    def test_activate_none_clears_active_library(self) -> None:
        self.assertIsNone(self.manager.activate(SourceLocation.NONE))
        self.assertEqual(self.manager.active_location, SourceLocation.NONE)
        self.assertEqual(self.thumbnails.calls, [("set", None, SourceLocation.NONE)])

    def test_activate_malformed_local_reports_source_error(self) -> None:
        self.paths.ensure()
        self.paths.local_descriptor_path.write_text("<LaunchPassConfig>", encoding="utf-8")
        errors: list[None] = []
        self.manager.source_error.connect(lambda: errors.append(None))
        self.manager.scan()

        with self.assertRaises(MalformedDescriptorError):
            self.manager.activate(SourceLocation.LOCAL)

        self.assertEqual(len(errors), 1)
        self.assertEqual(self.thumbnails.calls, [])

    def test_delete_local_source_removes_everything_local(self) -> None:
        self._import()
        library = self.manager.activate(SourceLocation.LOCAL)
        assert library is not None and library.play_later is not None
        library.play_later.add("mario")
        play_later_file = library.play_later.path
        self.assertTrue(play_later_file.is_file())

        self.manager.delete_local_source()

        self.assertFalse(self.paths.local_mirror_root.exists())
        self.assertFalse(self.paths.local_descriptor_path.exists())
        self.assertFalse(play_later_file.exists())
        self.assertEqual(self.manager.active_location, SourceLocation.NONE)
        self.assertFalse(self.manager.has_source(SourceLocation.LOCAL))
        self.assertTrue(self.manager.import_finished)
        self.assertEqual(self.thumbnails.calls[-1], ("invalidate", SourceLocation.LOCAL))
        self.assertTrue((self.stick / "LaunchBox" / "Games" / "Nintendo 64" / "Mario.z64").is_file())

        self.manager.delete_local_source()
        self.assertIsNone(self.manager.scan().local)

    def test_delete_local_source_keeps_removable_selection(self) -> None:
        self._import()
        self.manager.activate(SourceLocation.REMOVABLE)

        self.manager.delete_local_source()

        self.assertEqual(self.manager.active_location, SourceLocation.REMOVABLE)
        self.assertFalse(self.paths.local_mirror_root.exists())

    def test_delete_local_source_cancels_running_import(self) -> None:
        entered = threading.Event()
        gate = threading.Event()

        class GatedLibrary(LaunchBoxLibrary):
            def _load(self, progress_callback) -> None:
                entered.set()
                gate.wait(10)
                super()._load(progress_callback)

        self.paths.ensure()
        settings = MemorySettingsStore()
        locator = SourceLocator(self.paths.local_cache_root, removable_roots=[self.stick])
        loader = LibraryLoader(adapters={LibraryType.LAUNCHBOX: GatedLibrary}, settings=settings)
        manager = SourceManager(locator, loader, settings)

        job = manager.start_import()
        assert job is not None
        self.assertTrue(entered.wait(10))
        opener = threading.Timer(0.2, gate.set)
        opener.start()
        try:
            manager.delete_local_source()
        finally:
            opener.join()

        self.assertTrue(job.done)
        self.assertFalse(job.result)
        self.assertFalse(manager.is_import_in_progress())
        self.assertTrue(manager.import_finished)
        self.assertFalse(self.paths.local_mirror_root.exists())
        self.assertFalse(self.paths.local_descriptor_path.exists())


if __name__ == "__main__":
    unittest.main()
