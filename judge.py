# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Hit/miss judgement and scoring engine.
# - Evaluates every pending note against one elapsed time sample and one detected pitch per tick.
# - Generates JudgementEvent for both hits and misses, and summarizes final results.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - advance_notes is a pure function: (note states, stats, elapsed, detected pitch) -> TickOutcome.
#   JudgeEngine only stores its result in the NoteScheduler.
# - A note is missed when time - elapsed < -hit_window (strict). A note is hit-evaluated only when
#   abs(time - elapsed) < hit_window (strict). Missed notes are never revived.
# - Every pending note in the window is evaluated independently against the same detected pitch.
#
########################
# Interfaces:
# Public dataclasses:
# - JudgementWindows(hit_window_seconds: float, fall_time_seconds: float, tolerance_semitones: int)
# - TickOutcome(note_states: tuple[NoteRuntimeState, ...], stats: GameStats, judgements: tuple[JudgementEvent, ...])
# - ResultSummary(percent: int, stars: int, message: str)
#
# Public functions:
# - hit_score(streak: int) -> int
# - apply_hit(stats: GameStats) -> GameStats
# - apply_miss(stats: GameStats) -> GameStats
# - advance_notes(note_states, stats, *, elapsed_seconds, detected_note, windows) -> TickOutcome
# - summarize_results(stats: GameStats) -> ResultSummary
#
# Public classes:
# - class JudgeEngine
#   - __init__(note_scheduler: NoteScheduler, judgement_windows: JudgementWindows)
#   - stats() -> GameStats
#   - judgement_windows() -> JudgementWindows
#   - reset() -> None
#   - update_for_time(elapsed_seconds: float, detected_note: Optional[DetectedNote]) -> list[JudgementEvent]
#
# Inputs:
# - elapsed_seconds from TimingModel and the DetectedNote from PitchDetector, both sampled once per tick.
#
# Outputs:
# - Updated NoteRuntimeStates and GameStats, and JudgementEvents for UI feedback.
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
import math
from typing import List, Optional, Sequence, Tuple

import gameplay_models
import note_matcher
import note_scheduler

HIT_BASE_SCORE = 100
STREAK_BONUS = 10


@dataclass(frozen=True)
class JudgementWindows:
    hit_window_seconds: float = 0.8
    fall_time_seconds: float = 3.0
    tolerance_semitones: int = note_matcher.DEFAULT_TOLERANCE_SEMITONES


@dataclass(frozen=True)
class TickOutcome:
    note_states: Tuple[gameplay_models.NoteRuntimeState, ...]
    stats: gameplay_models.GameStats
    judgements: Tuple[gameplay_models.JudgementEvent, ...]


@dataclass(frozen=True)
class ResultSummary:
    percent: int
    stars: int
    message: str


def hit_score(streak: int) -> int:
    return HIT_BASE_SCORE + int(streak) * STREAK_BONUS


def apply_hit(stats: gameplay_models.GameStats) -> gameplay_models.GameStats:
    streak = stats.streak + 1
    return replace(
        stats,
        hit_notes=stats.hit_notes + 1,
        streak=streak,
        best_streak=max(stats.best_streak, streak),
        score=stats.score + hit_score(streak),
    )


def apply_miss(stats: gameplay_models.GameStats) -> gameplay_models.GameStats:
    return replace(stats, streak=0)


def advance_notes(
    note_states: Sequence[gameplay_models.NoteRuntimeState],
    stats: gameplay_models.GameStats,
    *,
    elapsed_seconds: float,
    detected_note: Optional[gameplay_models.DetectedNote],
    windows: JudgementWindows,
) -> TickOutcome:
    elapsed = float(elapsed_seconds)
    hit_window = float(windows.hit_window_seconds)
    fall_time = float(windows.fall_time_seconds)

    updated_states: List[gameplay_models.NoteRuntimeState] = []
    judgements: List[gameplay_models.JudgementEvent] = []

    for note_state in note_states:
        if not note_state.is_pending:
            updated_states.append(note_state)
            continue

        chart_note = note_state.chart_note
        time_diff = float(chart_note.time_seconds) - elapsed
        note_state = replace(note_state, y=1.0 - time_diff / fall_time)

        if time_diff < -hit_window:
            note_state = replace(note_state, missed=True)
            stats = apply_miss(stats)
            judgements.append(
                gameplay_models.JudgementEvent(
                    time_seconds=elapsed,
                    note_id=chart_note.note_id,
                    lane=note_state.lane,
                    note_name=chart_note.note_name,
                    judgement="miss",
                    delta_seconds=-time_diff,
                )
            )
        elif (
            detected_note is not None
            and abs(time_diff) < hit_window
            and note_matcher.notes_match(detected_note.full_name, chart_note.note_name, windows.tolerance_semitones)
        ):
            note_state = replace(note_state, hit=True)
            stats = apply_hit(stats)
            judgements.append(
                gameplay_models.JudgementEvent(
                    time_seconds=elapsed,
                    note_id=chart_note.note_id,
                    lane=note_state.lane,
                    note_name=chart_note.note_name,
                    judgement="hit",
                    delta_seconds=-time_diff,
                    score_awarded=hit_score(stats.streak),
                )
            )

        updated_states.append(note_state)

    return TickOutcome(note_states=tuple(updated_states), stats=stats, judgements=tuple(judgements))


def summarize_results(stats: gameplay_models.GameStats) -> ResultSummary:
    if stats.total_notes > 0:
        percent = int(math.floor(stats.hit_notes / stats.total_notes * 100.0 + 0.5))
    else:
        percent = 0

    if percent >= 80:
        return ResultSummary(percent=percent, stars=3, message="You're a superstar!")
    if percent >= 50:
        return ResultSummary(percent=percent, stars=2, message="Great job! You're getting better!")
    return ResultSummary(percent=percent, stars=1, message="Good try! Keep practicing!")


class JudgeEngine:
    def __init__(
        self,
        note_scheduler_obj: note_scheduler.NoteScheduler,
        judgement_windows: JudgementWindows,
    ) -> None:
        self._note_scheduler = note_scheduler_obj
        self._judgement_windows = judgement_windows
        self._stats = gameplay_models.GameStats(total_notes=len(note_scheduler_obj.note_states()))

    def stats(self) -> gameplay_models.GameStats:
        return self._stats

    def judgement_windows(self) -> JudgementWindows:
        return self._judgement_windows

    def reset(self) -> None:
        self._note_scheduler.reset()
        self._stats = gameplay_models.GameStats(total_notes=len(self._note_scheduler.note_states()))

    def update_for_time(
        self,
        elapsed_seconds: float,
        detected_note: Optional[gameplay_models.DetectedNote],
    ) -> List[gameplay_models.JudgementEvent]:
        outcome = advance_notes(
            self._note_scheduler.note_states(),
            self._stats,
            elapsed_seconds=elapsed_seconds,
            detected_note=detected_note,
            windows=self._judgement_windows,
        )
        self._note_scheduler.replace_note_states(outcome.note_states)
        self._stats = outcome.stats
        return list(outcome.judgements)


def _detected(full_name: str) -> gameplay_models.DetectedNote:
    return gameplay_models.DetectedNote(
        note=full_name[:-1],
        octave=int(full_name[-1]),
        full_name=full_name,
        frequency=0.0,
        volume=0.1,
    )


def _run_unit_tests() -> None:
    chart = gameplay_models.SongChart(
        name="single",
        level=1,
        level_label="test",
        notes=(gameplay_models.ChartNote(note_name="C4", time_seconds=5.0, note_id=0),),
        duration_seconds=10.0,
    )
    windows = JudgementWindows()

    scheduler = note_scheduler.NoteScheduler(chart, ("C",), lambda name, lanes: 0)
    engine = JudgeEngine(scheduler, windows)
    events = engine.update_for_time(5.3, _detected("C4"))
    assert [event.judgement for event in events] == ["hit"]
    assert engine.stats().score == 110
    assert engine.stats().hit_notes == 1

    engine.reset()
    assert engine.update_for_time(4.0, _detected("C4")) == []
    misses = engine.update_for_time(6.0, None)
    assert [event.judgement for event in misses] == ["miss"]
    assert engine.stats().streak == 0
    assert engine.stats().score == 0
    assert engine.update_for_time(6.1, _detected("C4")) == []

    summary = summarize_results(gameplay_models.GameStats(total_notes=4, hit_notes=2))
    assert (summary.percent, summary.stars) == (50, 2)


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
