# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the runtime gameplay pipeline.
# - Defines the chart representation, per-note runtime state, stats and the snapshot handed to renderers.
#
# Design notes:
# - No Qt usage. These are plain frozen dataclasses.
# - Every model is a value object. The engine replaces note states and stats instead of mutating them,
#   so a GameSnapshot can be handed to any observer without copying.
#
########################
# Interfaces:
# Public enums:
# - class GameState(enum.Enum): IDLE | COUNTDOWN | PLAYING | PAUSED | FINISHED
#
# Public dataclasses:
# - ChartNote(note_name: str, time_seconds: float, note_id: int)
# - SongChart(name: str, level: int, level_label: str, notes: tuple[ChartNote, ...], duration_seconds: float,
#             description: str)
# - DetectedNote(note: str, octave: int, full_name: str, frequency: float, volume: float, cents: int)
# - NoteRuntimeState(chart_note: ChartNote, lane: int, hit: bool, missed: bool, y: float)
# - GameStats(total_notes: int, hit_notes: int, streak: int, best_streak: int, score: int)
# - JudgementEvent(time_seconds, note_id, lane, note_name, judgement, delta_seconds, score_awarded)
# - GameSnapshot(state, elapsed_seconds, countdown, notes, stats, detected_note, lanes, song_name,
#                level_label, duration_seconds, judgements)
#
# Inputs/Outputs:
# - These types are exchanged between song_charts, NoteScheduler, judge, GameEngine,
#   GameplayOverlayWidget and the harness.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
from typing import Optional, Tuple


class GameState(enum.Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class ChartNote:
    note_name: str
    time_seconds: float
    note_id: int


@dataclass(frozen=True)
class SongChart:
    name: str
    level: int
    level_label: str
    notes: Tuple[ChartNote, ...]
    duration_seconds: float
    description: str = ""


@dataclass(frozen=True)
class DetectedNote:
    note: str
    octave: int
    full_name: str
    frequency: float
    volume: float
    cents: int = 0


@dataclass(frozen=True)
class NoteRuntimeState:
    chart_note: ChartNote
    lane: int
    hit: bool = False
    missed: bool = False
    y: float = 0.0

    @property
    def is_pending(self) -> bool:
        return not self.hit and not self.missed


@dataclass(frozen=True)
class GameStats:
    total_notes: int
    hit_notes: int = 0
    streak: int = 0
    best_streak: int = 0
    score: int = 0


@dataclass(frozen=True)
class JudgementEvent:
    time_seconds: float
    note_id: int
    lane: int
    note_name: str
    judgement: str
    delta_seconds: float
    score_awarded: int = 0


@dataclass(frozen=True)
class GameSnapshot:
    state: GameState
    elapsed_seconds: float
    countdown: int
    notes: Tuple[NoteRuntimeState, ...]
    stats: GameStats
    detected_note: Optional[DetectedNote]
    lanes: Tuple[str, ...]
    song_name: str
    level_label: str
    duration_seconds: float
    judgements: Tuple[JudgementEvent, ...] = ()

    @property
    def progress(self) -> float:
        if self.duration_seconds <= 0.0:
            return 0.0
        return max(0.0, min(1.0, float(self.elapsed_seconds) / float(self.duration_seconds)))

    @property
    def missed_count(self) -> int:
        return sum(1 for note_state in self.notes if note_state.missed)

    @property
    def pending_count(self) -> int:
        return sum(1 for note_state in self.notes if note_state.is_pending)
