from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

from launchpass.config.defaults import (
    DESCRIPTOR_FILENAME,
    LOCAL_MIRROR_DIRNAME,
    PLAY_LATER_DIRNAME,
    SETTINGS_FILENAME,
)

HOME_ENV_VAR = "LAUNCHPASS_HOME"
REMOVABLE_ROOTS_ENV_VAR = "LAUNCHPASS_REMOVABLE_ROOTS"
_DEFAULT_HOME_DIRNAME = ".launchpass"


@dataclass(frozen=True, slots=True)
class AppPaths:
    """Filesystem layout of one LaunchPass installation.

    `removable_roots` is optional: when empty, removable volumes are
    discovered from the mounted partitions at scan time.
    """

    home: Path
    removable_roots: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def local_cache_root(self) -> Path:
        return self.home / "LocalCache"

    @property
    def state_dir(self) -> Path:
        return self.home / "LocalState"

    @property
    def settings_file(self) -> Path:
        return self.state_dir / SETTINGS_FILENAME

    @property
    def play_later_dir(self) -> Path:
        return self.state_dir / PLAY_LATER_DIRNAME

    @property
    def local_mirror_root(self) -> Path:
        return self.local_cache_root / LOCAL_MIRROR_DIRNAME

    @property
    def local_descriptor_path(self) -> Path:
        return self.local_cache_root / DESCRIPTOR_FILENAME

    def ensure(self) -> None:
        self.local_cache_root.mkdir(parents=True, exist_ok=True)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_environment(cls, environ: dict[str, str] | None = None) -> AppPaths:
        env = os.environ if environ is None else environ
        home_value = env.get(HOME_ENV_VAR, "").strip()
        home = Path(home_value).expanduser() if home_value else Path.home() / _DEFAULT_HOME_DIRNAME
        return cls(home=home.resolve(), removable_roots=_split_roots(env.get(REMOVABLE_ROOTS_ENV_VAR, "")))


def _split_roots(value: str) -> tuple[Path, ...]:
    roots: list[Path] = []
    for part in value.split(os.pathsep):
        cleaned = part.strip().strip('"')
        if cleaned:
            roots.append(Path(cleaned).expanduser())
    return tuple(roots)
