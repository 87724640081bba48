# -*- coding: utf-8 -*-
########################
# note_matcher.py
########################
# Purpose:
# - Tolerance-based equality between a detected note name and a chart note name.
#
# Design notes:
# - No Qt usage. Pure function.
# - Distance is measured in semitones on the MIDI-style index from note_mapper, so enharmonic
#   spellings ("A#4" and "Bb4") are equal and octave errors are never forgiven by a small tolerance.
#
########################
# Interfaces:
# Public constants:
# - DEFAULT_TOLERANCE_SEMITONES: int
#
# Public functions:
# - notes_match(detected_name: str, target_name: str, tolerance_semitones: int = 1) -> bool
#
########################

from __future__ import annotations

import note_mapper

DEFAULT_TOLERANCE_SEMITONES = 1


def notes_match(detected_name: str, target_name: str, tolerance_semitones: int = DEFAULT_TOLERANCE_SEMITONES) -> bool:
    detected_index = note_mapper.note_name_to_semitone_index(detected_name)
    target_index = note_mapper.note_name_to_semitone_index(target_name)
    if detected_index is None or target_index is None:
        return False
    return abs(detected_index - target_index) <= int(tolerance_semitones)


def _run_unit_tests() -> None:
    assert notes_match("C4", "C4", 0)
    assert notes_match("C4", "C#4", 1)
    assert not notes_match("C4", "D4", 1)
    assert not notes_match("X9", "C4", 1)
    assert notes_match("A#4", "Bb4", 0)
    assert not notes_match("C5", "C4", 1)


if __name__ == "__main__":
    _run_unit_tests()
    print("note_matcher.py: ok")
