from __future__ import annotations

import os
from pathlib import Path
import tempfile
import xml.etree.ElementTree as ET


def atomic_write_bytes(path: Path, payload: bytes) -> None:
    """Replace `path` with `payload` so readers never observe a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise


def atomic_write_text(path: Path, text: str) -> None:
    atomic_write_bytes(path, text.encode("utf-8"))


def write_xml(path: Path, root: ET.Element, indent: bool = True) -> None:
    if indent:
        ET.indent(ET.ElementTree(root), space="  ")
    atomic_write_bytes(path, ET.tostring(root, encoding="utf-8", xml_declaration=True))


def safe_text(node: ET.Element | None) -> str | None:
    if node is None or node.text is None:
        return None
    value = node.text.strip()
    return value or None
