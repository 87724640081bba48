# -*- coding: utf-8 -*-
########################
# note_mapper.py
########################
# Purpose:
# - Convert a fundamental frequency into a pitch class, octave and cents deviation.
# - Convert note names ("C4", "F#4", "Bb3") into a linear semitone index for comparisons.
#
# Design notes:
# - No Qt usage. Pure functions.
# - Semitone 0 is A4 = 440 Hz, octave 4. Note indices use MIDI numbering ((octave + 1) * 12 + semitone).
# - Rounding is half-up, not Python's round-half-even, so 0.5 semitone boundaries land on the upper note.
# - Malformed names map to None and never raise.
#
########################
# Interfaces:
# Public constants:
# - NOTE_NAMES: tuple of the 12 sharp pitch class names starting at C
# - A4_FREQUENCY: float
#
# Public dataclasses:
# - NotePosition(note: str, octave: int, cents: int)
#   - full_name -> str
#
# Public functions:
# - frequency_to_note(frequency: float) -> NotePosition
# - note_name_to_semitone_index(name: str) -> Optional[int]
# - pitch_class(name: str) -> str
# - note_to_display_name(name: str) -> str
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Dict, Optional

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

A4_FREQUENCY = 440.0

_NOTE_NAME_PATTERN = re.compile(r"^([A-G])(#|b)?(\d+)$")
_OCTAVE_SUFFIX_PATTERN = re.compile(r"\d+$")

_BASE_SEMITONES: Dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


@dataclass(frozen=True)
class NotePosition:
    note: str
    octave: int
    cents: int

    @property
    def full_name(self) -> str:
        return f"{self.note}{self.octave}"


def _round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def frequency_to_note(frequency: float) -> NotePosition:
    semitones = 12.0 * math.log2(float(frequency) / A4_FREQUENCY)
    rounded_semitones = _round_half_up(semitones)
    cents = _round_half_up((semitones - rounded_semitones) * 100.0)
    note_index = ((rounded_semitones % 12) + 12 + 9) % 12
    octave = math.floor((rounded_semitones + 9) / 12) + 4
    return NotePosition(note=NOTE_NAMES[note_index], octave=int(octave), cents=int(cents))


def note_name_to_semitone_index(name: str) -> Optional[int]:
    match = _NOTE_NAME_PATTERN.match(str(name or ""))
    if match is None:
        return None

    letter, accidental, octave_text = match.groups()
    semitone = _BASE_SEMITONES[letter]
    if accidental == "#":
        semitone += 1
    elif accidental == "b":
        semitone -= 1
    return (int(octave_text) + 1) * 12 + semitone


def pitch_class(name: str) -> str:
    """Strip the trailing octave digits: "F#4" -> "F#"."""
    return _OCTAVE_SUFFIX_PATTERN.sub("", str(name or ""))


def note_to_display_name(name: str) -> str:
    # Display only. Matching never goes through this.
    return str(name)


def _run_unit_tests() -> None:
    a4 = frequency_to_note(440.0)
    assert (a4.note, a4.octave, a4.cents) == ("A", 4, 0)
    assert a4.full_name == "A4"

    middle_c = frequency_to_note(261.63)
    assert middle_c.full_name == "C4"

    low = frequency_to_note(110.0)
    assert (low.note, low.octave) == ("A", 2)

    assert note_name_to_semitone_index("C4") == 60
    assert note_name_to_semitone_index("A4") == 69
    assert note_name_to_semitone_index("Bb4") == note_name_to_semitone_index("A#4")
    assert note_name_to_semitone_index("X9") is None
    assert note_name_to_semitone_index("c4") is None

    assert pitch_class("F#4") == "F#"
    assert pitch_class("C5") == "C"


if __name__ == "__main__":
    _run_unit_tests()
    print("note_mapper.py: ok")
