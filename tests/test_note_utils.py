import unittest

from tuning_master.core.errors import ConfigurationInvalid
from tuning_master.note_types import NoteIdentity
from tuning_master.note_utils import (
    NOTE_NAMES,
    convert_note_notation,
    get_note_name,
    midi_number,
    note_frequency,
    parse_note,
    round_half_away,
    to_note,
)


class TestToNote(unittest.TestCase):
    def test_a4_at_reference(self):
        note, cents = to_note(440.0, 440.0)
        self.assertEqual(note, NoteIdentity("A", 4))
        self.assertLess(abs(cents), 1.0)

    def test_one_semitone_sharp(self):
        note, cents = to_note(440.0 * 2 ** (1 / 12), 440.0)
        self.assertEqual(note, NoteIdentity("A#", 4))
        self.assertAlmostEqual(cents, 0.0, places=6)

    def test_cents_sign(self):
        _, sharp = to_note(445.0, 440.0)
        _, flat = to_note(435.0, 440.0)
        self.assertGreater(sharp, 0)
        self.assertLess(flat, 0)
        self.assertAlmostEqual(sharp, 19.56, places=1)

    def test_custom_reference(self):
        # 432 Hz calibration: 432 Hz is A4, 440 Hz is a sharp A4
        note, cents = to_note(432.0, 432.0)
        self.assertEqual(note, NoteIdentity("A", 4))
        self.assertAlmostEqual(cents, 0.0, places=6)

        note, cents = to_note(440.0, 432.0)
        self.assertEqual(note, NoteIdentity("A", 4))
        self.assertAlmostEqual(cents, 31.77, places=1)

    def test_octave_changes_between_b_and_c(self):
        self.assertEqual(to_note(246.94, 440.0)[0], NoteIdentity("B", 3))
        self.assertEqual(to_note(261.63, 440.0)[0], NoteIdentity("C", 4))

    def test_is_pure(self):
        self.assertEqual(to_note(123.45, 440.0), to_note(123.45, 440.0))

    def test_round_trip_every_note_number(self):
        for reference in (415.0, 440.0, 442.0):
            for number in range(-24, 128):
                frequency = reference * 2 ** ((number - 69) / 12)
                note, cents = to_note(frequency, reference)
                self.assertEqual(midi_number(note), number)
                self.assertAlmostEqual(cents, 0.0, places=6)

    def test_negative_note_number(self):
        note, cents = to_note(1.0, 440.0)
        self.assertIn(note.name, NOTE_NAMES)
        self.assertEqual(note, NoteIdentity("C", -4))
        self.assertLessEqual(abs(cents), 50.0)

        # High reference pushes a low frequency further below zero
        note, _ = to_note(2.0, 880.0)
        self.assertIn(note.name, NOTE_NAMES)
        self.assertEqual(midi_number(note), round_half_away(12 * -8.78136 + 69))

    def test_non_positive_input_rejected(self):
        with self.assertRaises(ValueError):
            to_note(0.0, 440.0)
        with self.assertRaises(ValueError):
            to_note(440.0, -1.0)


class TestRounding(unittest.TestCase):
    def test_ties_away_from_zero(self):
        self.assertEqual(round_half_away(2.5), 3)
        self.assertEqual(round_half_away(-2.5), -3)
        self.assertEqual(round_half_away(2.4), 2)
        self.assertEqual(round_half_away(-2.6), -3)


class TestNoteHelpers(unittest.TestCase):
    def test_midi_numbers(self):
        self.assertEqual(midi_number(NoteIdentity("A", 4)), 69)
        self.assertEqual(midi_number(NoteIdentity("C", 4)), 60)
        self.assertEqual(midi_number(NoteIdentity("E", 2)), 40)

    def test_note_frequency(self):
        self.assertAlmostEqual(note_frequency(NoteIdentity("A", 2), 440.0), 110.0)
        self.assertAlmostEqual(note_frequency(NoteIdentity("E", 2), 440.0), 82.407, places=3)

    def test_get_note_name(self):
        self.assertEqual(get_note_name(440.0), "A4")
        self.assertEqual(get_note_name(277.18), "C#4")
        self.assertEqual(get_note_name(277.18, use_flats=True), "Db4")
        self.assertEqual(get_note_name(0), "---")

    def test_convert_note_notation(self):
        self.assertEqual(convert_note_notation("F#2", to_flats=True), "Gb2")
        self.assertEqual(convert_note_notation("Gb2"), "F#2")
        self.assertEqual(convert_note_notation("E4", to_flats=True), "E4")


class TestParseNote(unittest.TestCase):
    def test_sharps_and_naturals(self):
        self.assertEqual(parse_note("E2"), NoteIdentity("E", 2))
        self.assertEqual(parse_note("c#4"), NoteIdentity("C#", 4))

    def test_flats_normalized_to_sharps(self):
        self.assertEqual(parse_note("Bb3"), NoteIdentity("A#", 3))
        self.assertEqual(parse_note("Cb4"), NoteIdentity("B", 3))
        self.assertEqual(parse_note("B#3"), NoteIdentity("C", 4))

    def test_negative_octave(self):
        self.assertEqual(parse_note("C-1"), NoteIdentity("C", -1))

    def test_invalid(self):
        for text in ("", "H2", "E", "E#x", "A4.5"):
            with self.assertRaises(ConfigurationInvalid):
                parse_note(text)


if __name__ == "__main__":
    unittest.main()
