"""Utility functions for working with musical notes and frequencies."""

import math
import re
from typing import List, Dict, Tuple

from .logger import get_logger
from .note_types import NoteIdentity
from .core.errors import ConfigurationInvalid

# Get logger for this module
logger = get_logger(__name__)

NOTE_NAMES: List[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]

# Mapping between sharp and flat note names
SHARP_TO_FLAT: Dict[str, str] = {
    "C#": "Db",
    "D#": "Eb",
    "F#": "Gb",
    "G#": "Ab",
    "A#": "Bb",
}

FLAT_TO_SHARP: Dict[str, str] = {v: k for k, v in SHARP_TO_FLAT.items()}

# A4 in the MIDI numbering; the reference pitch is always assigned to it
A4_NOTE_NUMBER = 69

# Note letter, optional accidental, optional (possibly negative) octave
NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?[0-9]+)$")


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def note_number(frequency: float, reference_pitch: float) -> float:
    """Continuous note number of ``frequency`` (69.0 at the reference pitch)."""
    return 12 * math.log2(frequency / reference_pitch) + A4_NOTE_NUMBER


def midi_number(note: NoteIdentity) -> int:
    """Integer note number of a note identity (A4 -> 69, C4 -> 60)."""
    return (note.octave + 1) * 12 + NOTE_NAMES.index(note.name)


def note_from_number(number: int) -> NoteIdentity:
    """Note identity for an integer note number; handles negative numbers."""
    return NoteIdentity(name=NOTE_NAMES[number % 12], octave=number // 12 - 1)


def number_frequency(number: float, reference_pitch: float) -> float:
    """Equal-tempered frequency of a note number."""
    return reference_pitch * 2 ** ((number - A4_NOTE_NUMBER) / 12)


def note_frequency(note: NoteIdentity, reference_pitch: float) -> float:
    """Exact frequency of ``note`` under the given A4 calibration."""
    return number_frequency(midi_number(note), reference_pitch)


def cents_between(frequency: float, target: float) -> float:
    """Signed deviation of ``frequency`` from ``target`` in cents."""
    return 1200 * math.log2(frequency / target)


def to_note(frequency: float, reference_pitch: float) -> Tuple[NoteIdentity, float]:
    """Convert a frequency to the nearest note and its deviation in cents.

    Args:
        frequency: Detected frequency in Hz, must be positive
        reference_pitch: Frequency assigned to A4 in Hz, must be positive

    Returns:
        Tuple of (note identity, cents). Cents lie in [-50, +50) apart from
        floating point noise at exact half-semitone boundaries.

    Raises:
        ValueError: If either frequency is not positive
    """
    if not frequency > 0 or not reference_pitch > 0:
        raise ValueError(
            f"Frequencies must be positive (frequency={frequency}, reference={reference_pitch})"
        )

    number = round_half_away(note_number(frequency, reference_pitch))
    perfect = number_frequency(number, reference_pitch)
    return note_from_number(number), cents_between(frequency, perfect)


def get_note_name(freq: float, reference_pitch: float = 440.0, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        reference_pitch: Frequency of A4 in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3'), or '---' for
        non-positive frequencies
    """
    if freq <= 0:
        return "---"

    note, _ = to_note(freq, reference_pitch)
    return convert_note_notation(str(note), to_flats=use_flats)


def convert_note_notation(note_name: str, to_flats: bool = False) -> str:
    """Convert a note name between sharp and flat notation.

    Examples:
        >>> convert_note_notation('F#2', to_flats=True)
        'Gb2'
        >>> convert_note_notation('Gb2')
        'F#2'
    """
    note_part = note_name.rstrip("-0123456789")
    octave_part = note_name[len(note_part):]

    if to_flats and note_part in SHARP_TO_FLAT:
        return f"{SHARP_TO_FLAT[note_part]}{octave_part}"
    if not to_flats and note_part in FLAT_TO_SHARP:
        return f"{FLAT_TO_SHARP[note_part]}{octave_part}"
    return note_name


def parse_note(text: str) -> NoteIdentity:
    """Parse an SPN note such as 'E2', 'Bb3' or 'c#4' into a NoteIdentity.

    Flats are normalized to sharps; 'Cb', 'Fb', 'E#' and 'B#' are resolved to
    their natural neighbours with the octave adjusted across the B/C boundary.

    Raises:
        ConfigurationInvalid: If the text is not a note with an octave
    """
    match = NOTE_PATTERN.match(str(text).strip())
    if not match:
        raise ConfigurationInvalid(f"Invalid note name: '{text}'")

    letter, accidental, octave = match.groups()
    number = (int(octave) + 1) * 12 + NOTE_NAMES.index(letter.upper())
    if accidental == "#":
        number += 1
    elif accidental == "b":
        number -= 1

    note = note_from_number(number)
    logger.debug(f"Parsed note '{text}' -> {note}")
    return note
