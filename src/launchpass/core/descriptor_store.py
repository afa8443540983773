from __future__ import annotations

import logging
from pathlib import Path
import xml.etree.ElementTree as ET

from launchpass.config.defaults import DESCRIPTOR_FILENAME, DESCRIPTOR_ROOT_TAG
from launchpass.core.errors import LaunchPassError
from launchpass.core.fileio import safe_text, write_xml
from launchpass.core.models import Descriptor, LibraryType

logger = logging.getLogger(__name__)

_TYPE_TAG = "type"
_RELATIVE_PATH_TAG = "relativePath"
_EMULATOR_TAG = "retroarch"


class MalformedDescriptorError(LaunchPassError):
    """Raised when a descriptor file exists but cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Malformed descriptor '{path}': {reason}")
        self.path = path
        self.reason = reason


def descriptor_path(folder: Path) -> Path:
    return folder / DESCRIPTOR_FILENAME


def read_descriptor(folder: Path) -> Descriptor | None:
    """Read the descriptor stored in `folder`.

    Returns None when the folder or the file does not exist. Content that
    cannot be parsed raises MalformedDescriptorError.
    """
    path = descriptor_path(folder)
    if not path.is_file():
        return None
    return parse_descriptor(path.read_bytes(), path)


def parse_descriptor(payload: bytes, path: Path) -> Descriptor:
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise MalformedDescriptorError(path, str(exc)) from exc

    if root.tag != DESCRIPTOR_ROOT_TAG:
        raise MalformedDescriptorError(path, f"unexpected root element <{root.tag}>")

    type_text = safe_text(root.find(_TYPE_TAG))
    try:
        library_type = LibraryType(type_text)
    except ValueError as exc:
        raise MalformedDescriptorError(path, f"unknown library type {type_text!r}") from exc

    relative_path = safe_text(root.find(_RELATIVE_PATH_TAG))
    if not relative_path:
        raise MalformedDescriptorError(path, "missing relativePath")

    emulator_node = root.find(_EMULATOR_TAG)
    emulator_settings = None
    if emulator_node is not None:
        emulator_node.tail = None
        emulator_settings = ET.tostring(emulator_node, encoding="unicode")

    return Descriptor(
        library_type=library_type,
        relative_path=relative_path,
        emulator_settings=emulator_settings,
    )


def write_descriptor(folder: Path, descriptor: Descriptor) -> Path:
    """Atomically replace the descriptor file in `folder`."""
    root = ET.Element(DESCRIPTOR_ROOT_TAG)
    ET.SubElement(root, _TYPE_TAG).text = descriptor.library_type.value
    ET.SubElement(root, _RELATIVE_PATH_TAG).text = descriptor.relative_path
    if descriptor.emulator_settings:
        root.append(ET.fromstring(descriptor.emulator_settings))

    path = descriptor_path(folder)
    # Not re-indented: the emulator section must round-trip unchanged.
    write_xml(path, root, indent=False)
    logger.debug("Wrote descriptor %s (relativePath=%s)", path, descriptor.relative_path)
    return path
