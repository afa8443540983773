from __future__ import annotations

# Descriptor file colocated with every library root (local cache or removable volume).
DESCRIPTOR_FILENAME = "LaunchPass.xml"
DESCRIPTOR_ROOT_TAG = "LaunchPassConfig"

# The local mirror always lives in this subfolder of the cache root.
LOCAL_MIRROR_DIRNAME = "DataSource"
LOCAL_MIRROR_RELATIVE_PATH = "./DataSource"

# Removable volumes are prepared next to an existing LaunchBox install.
LAUNCHBOX_DIRNAME = "LaunchBox"
LAUNCHBOX_RELATIVE_PATH = "./LaunchBox"

THEME_DIRNAME = "LaunchPass"
THEME_SETTINGS_FILENAME = "LaunchPassUserSettings.xml"
THEME_BACKGROUNDS_DIRNAME = "Backgrounds"
THEME_FONTS_DIRNAME = "Fonts"

DEFAULT_FONT = "Xbox.ttf"
DEFAULT_BACKGROUND_VIDEO = "LaunchPass-LP.mp4"
DEFAULT_BOX_ART_TYPE = "Box - Front"
THEMED_PAGES: tuple[str, ...] = (
    "MainPage",
    "GamePage",
    "DetailsPage",
    "SearchPage",
    "CustomizePage",
    "SettingsPage",
)

# Persisted settings keys.
ACTIVE_LOCATION_KEY = "ActiveDataSourceLocationKey"
IMPORT_FINISHED_KEY = "ImportFinishedKey"
LAST_PLAYED_KEY_PREFIX = "LastPlayed"

LAST_PLAYED_SEPARATOR = ";;;"
LANDING_PAGE_SIZE = 5

SETTINGS_FILENAME = "settings.json"
PLAY_LATER_DIRNAME = "playlists"
