from __future__ import annotations

import argparse
import logging
import sys

from launchpass.config.paths import AppPaths
from launchpass.core.errors import LaunchPassError
from launchpass.core.locator import removable_volume_roots
from launchpass.core.models import SourceLocation
from launchpass.core.search import SEARCH_CRITERIA, search_games
from launchpass.core.source_manager import SourceManager
from launchpass.core.theme_settings import prepare_launchpass_folder

logger = logging.getLogger("launchpass")

_LOCATION_CHOICES = {
    "none": SourceLocation.NONE,
    "local": SourceLocation.LOCAL,
    "removable": SourceLocation.REMOVABLE,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="launchpass", description="Manage LaunchPass game library sources.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("scan", help="Look for library descriptors on local and removable storage.")
    commands.add_parser("status", help="Show the active source and import state.")

    activate = commands.add_parser("activate", help="Select the active library source.")
    activate.add_argument("location", choices=sorted(_LOCATION_CHOICES))

    commands.add_parser("import", help="Copy the removable library into the local cache.")
    commands.add_parser("delete-local", help="Delete the local library copy.")
    commands.add_parser("prepare", help="Create descriptor and theme settings next to a removable LaunchBox folder.")

    search = commands.add_parser("search", help="Search games of the active library.")
    search.add_argument("text")
    search.add_argument("--by", default="Title", choices=sorted(SEARCH_CRITERIA))
    return parser


def _print_scan(manager: SourceManager) -> None:
    result = manager.scan()
    for location, resolved in ((SourceLocation.LOCAL, result.local), (SourceLocation.REMOVABLE, result.removable)):
        if resolved is not None:
            print(f"{location.value}: {resolved.descriptor_path} ({resolved.descriptor.library_type.value})")
        elif location in result.errors:
            print(f"{location.value}: {result.errors[location]}")
        else:
            print(f"{location.value}: not found")


def _run_import(manager: SourceManager) -> int:
    manager.scan()
    if not manager.has_source(SourceLocation.REMOVABLE):
        print("No removable library found.")
        return 1
    manager.events.progress.connect(lambda percent: print(f"[import] {percent:5.1f}%"))
    job = manager.start_import()
    if job is None:
        print("An import is already running.")
        return 1
    try:
        finished = job.wait()
    except KeyboardInterrupt:
        manager.cancel_import()
        finished = job.wait()
    print(
        f"Import {'finished' if finished else 'did not finish'}:"
        f" copied={job.files_copied}, skipped={job.files_skipped}, missing={job.assets_missing}"
    )
    return 0 if finished else 1


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    paths = AppPaths.from_environment()
    manager = SourceManager.from_paths(paths, progress_callback=print)
    try:
        if args.command == "scan":
            _print_scan(manager)
        elif args.command == "status":
            print(f"Active source: {manager.active_location.value}")
            print(f"Import finished: {manager.import_finished}")
        elif args.command == "activate":
            manager.scan()
            library = manager.activate(_LOCATION_CHOICES[args.location])
            print(f"Activated: {library.root_folder if library is not None else 'nothing'}")
        elif args.command == "import":
            return _run_import(manager)
        elif args.command == "delete-local":
            manager.delete_local_source()
            print("Local library deleted.")
        elif args.command == "prepare":
            prepared = prepare_launchpass_folder(paths.removable_roots or removable_volume_roots())
            print(f"Prepared: {prepared.root}" if prepared is not None else "No removable LaunchBox folder found.")
        elif args.command == "search":
            library = manager.get_active()
            if library is None:
                print("No active library.")
                return 1
            for item in search_games(library.playlists, args.text, args.by):
                print(f"{item.playlist_name}: {item.game.title}")
    except LaunchPassError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
