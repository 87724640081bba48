# song_charts.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from gameplay_models import ChartNote, SongChart
from note_mapper import pitch_class

LEAD_IN_SECONDS = 3.0
SECTION_TAIL_SECONDS = 2.0
TARGET_DURATION_SECONDS = 170.0
OUTRO_RESERVE_SECONDS = 15.0
END_PADDING_SECONDS = 5.0

SONG_NAME = "I Just Can't Wait to Be King"


@dataclass(frozen=True)
class SectionNote:
    note_name: str
    offset_seconds: float


def _section(*pairs: Tuple[str, float]) -> Tuple[SectionNote, ...]:
    return tuple(SectionNote(note_name=name, offset_seconds=offset) for name, offset in pairs)


LEVEL1_INTRO = _section(("C4", 0.0), ("E4", 1.8), ("G4", 3.6))
LEVEL1_VERSE = _section(("E4", 0.0), ("G4", 1.8), ("A4", 3.6), ("G4", 5.4), ("E4", 7.2))
LEVEL1_CHORUS = _section(("G4", 0.0), ("A4", 1.8), ("C5", 3.6), ("A4", 5.4), ("G4", 7.2))
LEVEL1_OUTRO = _section(("E4", 0.0), ("D4", 1.8), ("C4", 3.6))

LEVEL2_INTRO = _section(("C4", 0.0), ("D4", 1.0), ("E4", 1.8), ("G4", 2.8), ("A4", 3.6))
LEVEL2_VERSE = _section(
    ("E4", 0.0), ("F#4", 0.9), ("G4", 1.8), ("A4", 2.7), ("Bb4", 3.6),
    ("A4", 4.5), ("G4", 5.4), ("F#4", 6.3), ("E4", 7.2),
)
LEVEL2_CHORUS = _section(
    ("G4", 0.0), ("A4", 0.9), ("Bb4", 1.8), ("C5", 2.7), ("D5", 3.6),
    ("C5", 4.5), ("A4", 5.4), ("G4", 6.3), ("F#4", 7.2),
)
LEVEL2_OUTRO = _section(("G4", 0.0), ("F#4", 0.9), ("E4", 1.8), ("D4", 2.7), ("C4", 3.6))

_LEVEL_LANES: Dict[int, Tuple[str, ...]] = {
    1: ("C", "D", "E", "F", "G", "A"),
    2: ("C", "D", "E", "F", "F#", "G", "A", "Bb"),
}

_DISPLAY_ORDER = ("C", "D", "E", "F", "F#", "G", "A", "Bb", "B")

NOTE_COLORS: Dict[str, str] = {
    "C": "#FF6B6B",
    "D": "#FFA94D",
    "E": "#FFD93D",
    "F": "#6BCB77",
    "F#": "#9B59B6",
    "G": "#4D96FF",
    "A": "#FF6B9D",
    "Bb": "#C084FC",
    "B": "#67E8F9",
}
DEFAULT_NOTE_COLOR = "#4D96FF"


def section_duration_seconds(section: Sequence[SectionNote]) -> float:
    return float(section[-1].offset_seconds) + SECTION_TAIL_SECONDS


def build_chart_notes(sections: Sequence[Sequence[SectionNote]], section_gap_seconds: float) -> List[ChartNote]:
    notes: List[ChartNote] = []
    current_time_seconds = LEAD_IN_SECONDS
    note_id = 0

    for section in sections:
        for section_note in section:
            notes.append(
                ChartNote(
                    note_name=section_note.note_name,
                    time_seconds=current_time_seconds + float(section_note.offset_seconds),
                    note_id=note_id,
                )
            )
            note_id += 1
        current_time_seconds += section_duration_seconds(section) + float(section_gap_seconds)

    return notes


def repeat_sections(
    *,
    intro: Sequence[SectionNote],
    verse: Sequence[SectionNote],
    chorus: Sequence[SectionNote],
    outro: Sequence[SectionNote],
    section_gap_seconds: float,
    target_duration_seconds: float,
) -> List[ChartNote]:
    all_sections: List[Sequence[SectionNote]] = [intro, verse, chorus, verse, chorus]

    estimated_duration_seconds = LEAD_IN_SECONDS
    for section in all_sections:
        estimated_duration_seconds += section_duration_seconds(section) + section_gap_seconds

    # Alternate verse and chorus until the song is long enough, keeping room for the outro.
    fill_limit_seconds = target_duration_seconds - OUTRO_RESERVE_SECONDS
    while estimated_duration_seconds < fill_limit_seconds:
        all_sections.append(verse)
        estimated_duration_seconds += section_duration_seconds(verse) + section_gap_seconds
        if estimated_duration_seconds >= fill_limit_seconds:
            break
        all_sections.append(chorus)
        estimated_duration_seconds += section_duration_seconds(chorus) + section_gap_seconds

    all_sections.append(outro)
    return build_chart_notes(all_sections, section_gap_seconds)


def _duration_for(notes: Sequence[ChartNote]) -> float:
    if not notes:
        return TARGET_DURATION_SECONDS
    return float(notes[-1].time_seconds) + END_PADDING_SECONDS


def get_level1_chart() -> SongChart:
    notes = repeat_sections(
        intro=LEVEL1_INTRO,
        verse=LEVEL1_VERSE,
        chorus=LEVEL1_CHORUS,
        outro=LEVEL1_OUTRO,
        section_gap_seconds=1.5,
        target_duration_seconds=TARGET_DURATION_SECONDS,
    )
    return SongChart(
        name=SONG_NAME,
        level=1,
        level_label="Easy - White Keys Only",
        notes=tuple(notes),
        duration_seconds=_duration_for(notes),
        description="Play the melody using only white keys. Notes fall slowly so you have plenty of time!",
    )


def get_level2_chart() -> SongChart:
    notes = repeat_sections(
        intro=LEVEL2_INTRO,
        verse=LEVEL2_VERSE,
        chorus=LEVEL2_CHORUS,
        outro=LEVEL2_OUTRO,
        section_gap_seconds=1.0,
        target_duration_seconds=TARGET_DURATION_SECONDS,
    )
    return SongChart(
        name=SONG_NAME,
        level=2,
        level_label="Medium - With Sharps & Flats",
        notes=tuple(notes),
        duration_seconds=_duration_for(notes),
        description="The same song with black keys added and faster timing. A fun challenge!",
    )


def get_chart(level: int) -> SongChart:
    return get_level2_chart() if int(level) == 2 else get_level1_chart()


def get_unique_notes(chart: SongChart) -> List[str]:
    unique_names = {pitch_class(note.note_name) for note in chart.notes}

    def order_key(name: str) -> Tuple[int, str]:
        return (_DISPLAY_ORDER.index(name) if name in _DISPLAY_ORDER else 99, name)

    return sorted(unique_names, key=order_key)


def get_lane_notes(level: int) -> Tuple[str, ...]:
    return _LEVEL_LANES[1] if int(level) == 1 else _LEVEL_LANES[2]


def get_note_lane(note_name: str, lanes: Sequence[str]) -> int:
    stripped = pitch_class(note_name)
    lane_list = list(lanes)
    if stripped in lane_list:
        return lane_list.index(stripped)
    return len(lane_list) // 2


def note_color(note_name: str) -> str:
    return NOTE_COLORS.get(pitch_class(note_name), DEFAULT_NOTE_COLOR)
