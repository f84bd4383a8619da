"""Instrument profiles: built-in tunings and user-defined presets on disk."""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..logger import get_logger
from ..note_types import InstrumentProfile
from ..note_utils import parse_note
from .config import write_json
from .errors import ConfigurationInvalid
from .interfaces import IPresetStore

logger = get_logger(__name__)

PRESETS_FILE = "presets.json"

# Built-in tunings, lowest string first
BUILTIN_TUNINGS: Dict[str, tuple] = {
    "guitar-standard": ("Guitar (Standard)", ["E2", "A2", "D3", "G3", "B3", "E4"]),
    "guitar-drop-d": ("Guitar (Drop D)", ["D2", "A2", "D3", "G3", "B3", "E4"]),
    "bass-standard": ("Bass (4-string)", ["E1", "A1", "D2", "G2"]),
    "ukulele-standard": ("Ukulele (GCEA)", ["G4", "C4", "E4", "A4"]),
    "violin-standard": ("Violin", ["G3", "D4", "A4", "E5"]),
    "cello-standard": ("Cello", ["C2", "G2", "D3", "A3"]),
}


def make_profile(
    profile_id: str, name: str, strings: Sequence[str], is_user_defined: bool = True
) -> InstrumentProfile:
    """Build a profile from SPN note names.

    Raises:
        ConfigurationInvalid: If the id is empty, there are no strings, or a
            note name cannot be parsed
    """
    if not profile_id:
        raise ConfigurationInvalid("Profile id must not be empty")
    if not strings:
        raise ConfigurationInvalid(f"Profile '{profile_id}' has no strings")

    return InstrumentProfile(
        id=profile_id,
        name=name or profile_id,
        strings=tuple(parse_note(s) for s in strings),
        is_user_defined=is_user_defined,
    )


BUILTIN_PROFILES: List[InstrumentProfile] = [
    make_profile(pid, name, strings, is_user_defined=False)
    for pid, (name, strings) in BUILTIN_TUNINGS.items()
]


def profile_to_dict(profile: InstrumentProfile) -> dict:
    return {
        "id": profile.id,
        "name": profile.name,
        "is_user_defined": profile.is_user_defined,
        "strings": [str(s) for s in profile.strings],
    }


def profile_from_dict(data: dict) -> InstrumentProfile:
    return make_profile(
        data.get("id", ""),
        data.get("name", ""),
        data.get("strings") or [],
        is_user_defined=True,
    )


class PresetStore(IPresetStore):
    """Keeps user-defined profiles in a JSON file next to the other settings.

    Built-in profiles are always listed first and are never written to disk.
    """

    def __init__(self, config_dir) -> None:
        self._path = Path(config_dir) / PRESETS_FILE

    def load(self) -> List[InstrumentProfile]:
        """Return the built-in profiles followed by the user-defined ones."""
        profiles = list(BUILTIN_PROFILES)
        if not self._path.exists():
            return profiles

        try:
            with open(self._path, "r") as f:
                records = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading presets from {self._path}: {e}")
            return profiles

        builtin_ids = {p.id for p in BUILTIN_PROFILES}
        for record in records:
            try:
                profile = profile_from_dict(record)
            except (ConfigurationInvalid, AttributeError) as e:
                logger.warning(f"Skipping invalid preset {record!r}: {e}")
                continue
            if profile.id in builtin_ids:
                logger.warning(f"Preset '{profile.id}' shadows a built-in profile, skipping")
                continue
            profiles.append(profile)
        return profiles

    def save(self, profiles: Sequence[InstrumentProfile]) -> None:
        """Persist the user-defined profiles among ``profiles``, one per id."""
        by_id: Dict[str, InstrumentProfile] = {}
        for profile in profiles:
            if not profile.is_user_defined:
                continue
            if not profile.strings:
                raise ConfigurationInvalid(f"Profile '{profile.id}' has no strings")
            by_id[profile.id] = profile

        write_json(self._path, [profile_to_dict(p) for p in by_id.values()])
        logger.info(f"Saved {len(by_id)} presets to {self._path}")

    def get(self, profile_id: str) -> Optional[InstrumentProfile]:
        for profile in self.load():
            if profile.id == profile_id:
                return profile
        return None

    def add(self, profile: InstrumentProfile) -> None:
        """Add or replace a user-defined profile."""
        if any(p.id == profile.id for p in BUILTIN_PROFILES):
            raise ConfigurationInvalid(f"'{profile.id}' is a built-in profile")
        profiles = [p for p in self.load() if p.id != profile.id]
        profiles.append(profile)
        self.save(profiles)

    def remove(self, profile_id: str) -> bool:
        """Remove a user-defined profile. Returns False if there was none."""
        if any(p.id == profile_id for p in BUILTIN_PROFILES):
            raise ConfigurationInvalid(f"'{profile_id}' is a built-in profile")
        profiles = self.load()
        remaining = [p for p in profiles if p.id != profile_id]
        if len(remaining) == len(profiles):
            return False
        self.save(remaining)
        return True
