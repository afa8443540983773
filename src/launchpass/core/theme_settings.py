from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Iterable
import xml.etree.ElementTree as ET

from launchpass.config.defaults import (
    DEFAULT_BACKGROUND_VIDEO,
    DEFAULT_BOX_ART_TYPE,
    DEFAULT_FONT,
    LAUNCHBOX_DIRNAME,
    LAUNCHBOX_RELATIVE_PATH,
    THEME_BACKGROUNDS_DIRNAME,
    THEME_DIRNAME,
    THEME_FONTS_DIRNAME,
    THEME_SETTINGS_FILENAME,
    THEMED_PAGES,
)
from launchpass.core.descriptor_store import descriptor_path, write_descriptor
from launchpass.core.errors import LaunchPassError
from launchpass.core.fileio import safe_text, write_xml
from launchpass.core.models import Descriptor, LibraryType

logger = logging.getLogger(__name__)


class MalformedThemeSettingsError(LaunchPassError):
    """Raised when the user settings file exists but cannot be parsed."""


@dataclass(slots=True)
class Background:
    page: str
    file: str


@dataclass(slots=True)
class ThemeSettings:
    font: str = DEFAULT_FONT
    backgrounds: list[Background] = field(default_factory=list)
    box_art_type: str = DEFAULT_BOX_ART_TYPE

    @classmethod
    def defaults(cls) -> ThemeSettings:
        return cls(backgrounds=[Background(page=page, file=DEFAULT_BACKGROUND_VIDEO) for page in THEMED_PAGES])

    def background_for(self, page: str) -> str | None:
        for background in self.backgrounds:
            if background.page == page:
                return background.file
        return None

    def media_path(self, launchpass_folder: Path, page: str) -> Path | None:
        if not page:
            return None
        file_name = self.background_for(page)
        if file_name is None:
            return None
        return launchpass_folder / THEME_BACKGROUNDS_DIRNAME / file_name

    def font_path(self, launchpass_folder: Path) -> Path:
        return launchpass_folder / THEME_FONTS_DIRNAME / self.font


@dataclass(frozen=True, slots=True)
class PreparedRoot:
    root: Path
    launchpass_folder: Path
    theme: ThemeSettings
    descriptor_created: bool = False


def read_theme_settings(path: Path) -> ThemeSettings | None:
    if not path.is_file():
        return None
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise MalformedThemeSettingsError(f"Malformed theme settings '{path}': {exc}") from exc

    settings = ThemeSettings(
        font=safe_text(root.find("Font")) or DEFAULT_FONT,
        box_art_type=safe_text(root.find("BoxArtType")) or DEFAULT_BOX_ART_TYPE,
    )
    for node in root.findall("Backgrounds/Background"):
        page = safe_text(node.find("Page"))
        file_name = safe_text(node.find("File"))
        if page and file_name:
            settings.backgrounds.append(Background(page=page, file=file_name))
    return settings


def write_theme_settings(path: Path, settings: ThemeSettings) -> None:
    root = ET.Element("LaunchPass")
    backgrounds = ET.SubElement(root, "Backgrounds")
    for background in settings.backgrounds:
        node = ET.SubElement(backgrounds, "Background")
        ET.SubElement(node, "Page").text = background.page
        ET.SubElement(node, "File").text = background.file
    ET.SubElement(root, "Font").text = settings.font
    ET.SubElement(root, "BoxArtType").text = settings.box_art_type
    write_xml(path, root)


def prepare_launchpass_folder(removable_roots: Iterable[Path]) -> PreparedRoot | None:
    """Find-or-create the descriptor and user settings next to a LaunchBox install.

    Only the first removable root that holds a LaunchBox folder is prepared.
    """
    for root in removable_roots:
        if not (root / LAUNCHBOX_DIRNAME).is_dir():
            continue

        descriptor_created = False
        if not descriptor_path(root).exists():
            write_descriptor(
                root,
                Descriptor(library_type=LibraryType.LAUNCHBOX, relative_path=LAUNCHBOX_RELATIVE_PATH),
            )
            descriptor_created = True
            logger.info("Created descriptor for LaunchBox library on %s", root)

        launchpass_folder = root / THEME_DIRNAME
        for folder in (
            launchpass_folder,
            launchpass_folder / THEME_BACKGROUNDS_DIRNAME,
            launchpass_folder / THEME_FONTS_DIRNAME,
        ):
            folder.mkdir(parents=True, exist_ok=True)

        settings_path = launchpass_folder / THEME_SETTINGS_FILENAME
        theme = read_theme_settings(settings_path)
        if theme is None:
            theme = ThemeSettings.defaults()
            write_theme_settings(settings_path, theme)
            logger.info("Created default theme settings at %s", settings_path)

        return PreparedRoot(
            root=root,
            launchpass_folder=launchpass_folder,
            theme=theme,
            descriptor_created=descriptor_created,
        )
    return None
