"""Configuration management for Tuning Master components.

Settings live in one JSON file per section under the configuration
directory (``settings.json``, ``audio_input.json``).
"""

from typing import Dict, Any, Optional
import json
import os
import tempfile
from pathlib import Path

from ..logger import get_logger
from .errors import ConfigurationInvalid
from .state import validate_reference_pitch

logger = get_logger(__name__)

DEFAULT_REFERENCE_PITCH = 440.0
DEFAULT_PROFILE_ID = "guitar-standard"
DISPLAY_MODES = ("chromatic", "polyphonic", "strobe")

DEFAULT_SECTIONS: Dict[str, Dict[str, Any]] = {
    "settings": {
        "reference_pitch": DEFAULT_REFERENCE_PITCH,
        "active_profile": DEFAULT_PROFILE_ID,
        "display_mode": DISPLAY_MODES[0],
    },
    "audio_input": {
        "sample_rate": 44100,
        "block_size": 2048,
        "channels": 1,
        "device_id": None,
        "tick_hz": 60,
    },
}


def default_config_dir() -> Path:
    """~/.config/tuning_master, or $TUNING_MASTER_CONFIG_DIR when set."""
    override = os.environ.get("TUNING_MASTER_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(os.path.expanduser("~")) / ".config" / "tuning_master"


def write_json(path: Path, data: Any) -> None:
    """Write ``data`` as JSON, replacing ``path`` only once the write succeeded."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class ConfigManager:
    """Loads, validates and persists the configuration sections."""

    def __init__(self, config_dir: Optional[str] = None):
        """
        Args:
            config_dir: Directory to store configuration files, or None to use default
        """
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self._sections: Dict[str, Dict[str, Any]] = {
            name: self._load(name) for name in DEFAULT_SECTIONS
        }

    def path_for(self, section: str) -> Path:
        return self.config_dir / f"{section}.json"

    def _load(self, section: str) -> Dict[str, Any]:
        defaults = DEFAULT_SECTIONS[section]
        path = self.path_for(section)
        if not path.exists():
            values = dict(defaults)
            self._write(section, values)
            return values

        try:
            with open(path, "r") as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError(f"expected an object, got {type(stored).__name__}")
        except (OSError, ValueError) as e:
            backup = path.with_suffix(".json.bak")
            logger.warning(f"Unreadable configuration {path} ({e}), moved to {backup}")
            os.replace(path, backup)
            values = dict(defaults)
            self._write(section, values)
            return values

        unknown = sorted(set(stored) - set(defaults))
        if unknown:
            logger.warning(f"Ignoring unknown keys in {path}: {', '.join(unknown)}")
        values = {key: stored.get(key, default) for key, default in defaults.items()}
        logger.info(f"Loaded configuration from {path}")
        return values

    def _write(self, section: str, values: Dict[str, Any]) -> bool:
        path = self.path_for(section)
        try:
            write_json(path, values)
        except OSError as e:
            logger.error(f"Error saving configuration to {path}: {e}")
            return False
        logger.debug(f"Saved configuration to {path}")
        return True

    def _require(self, section: str) -> Dict[str, Any]:
        if section not in self._sections:
            raise ConfigurationInvalid(f"Unknown configuration section '{section}'")
        return self._sections[section]

    def get(self, section: str) -> Dict[str, Any]:
        """Copy of a section's values."""
        return dict(self._require(section))

    def update(self, section: str, values: Dict[str, Any]) -> bool:
        """Merge ``values`` into a section and persist it.

        Returns:
            False when the section could not be written to disk

        Raises:
            ConfigurationInvalid: For an unknown section or key
        """
        current = self._require(section)
        unknown = sorted(set(values) - set(DEFAULT_SECTIONS[section]))
        if unknown:
            raise ConfigurationInvalid(f"Unknown {section} keys: {', '.join(unknown)}")
        current.update(values)
        return self._write(section, current)

    def reset(self, section: str) -> bool:
        """Restore a section's defaults and persist them."""
        self._require(section)
        self._sections[section] = dict(DEFAULT_SECTIONS[section])
        return self._write(section, self._sections[section])


class SettingsStore:
    """Validated access to the user settings, persisted through a ConfigManager."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        self._config = config_manager or ConfigManager()

    def _setting(self, key: str) -> Any:
        return self._config.get("settings").get(key)

    @property
    def reference_pitch(self) -> float:
        value = self._setting("reference_pitch")
        try:
            return validate_reference_pitch(value)
        except ConfigurationInvalid:
            logger.warning(
                f"Stored reference pitch {value!r} is invalid, using {DEFAULT_REFERENCE_PITCH}"
            )
            return DEFAULT_REFERENCE_PITCH

    def set_reference_pitch(self, value) -> float:
        """Store a new reference pitch.

        Raises:
            ConfigurationInvalid: If the value is not a positive number
        """
        pitch = validate_reference_pitch(value)
        self._config.update("settings", {"reference_pitch": pitch})
        logger.info(f"Reference pitch set to {pitch} Hz")
        return pitch

    @property
    def active_profile(self) -> str:
        return self._setting("active_profile") or DEFAULT_PROFILE_ID

    def set_active_profile(self, profile_id: str) -> str:
        if not profile_id:
            raise ConfigurationInvalid("Profile id must not be empty")
        self._config.update("settings", {"active_profile": profile_id})
        logger.info(f"Active profile set to {profile_id}")
        return profile_id

    @property
    def display_mode(self) -> str:
        mode = self._setting("display_mode")
        return mode if mode in DISPLAY_MODES else DISPLAY_MODES[0]

    def set_display_mode(self, mode: str) -> str:
        if mode not in DISPLAY_MODES:
            raise ConfigurationInvalid(
                f"Unknown display mode '{mode}', expected one of {', '.join(DISPLAY_MODES)}"
            )
        self._config.update("settings", {"display_mode": mode})
        return mode

    def audio_settings(self) -> Dict[str, Any]:
        return self._config.get("audio_input")
