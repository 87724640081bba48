from __future__ import annotations

import pytest

from gameplay_models import ChartNote, DetectedNote, GameStats, NoteRuntimeState, SongChart
from judge import (
    JudgeEngine,
    JudgementWindows,
    advance_notes,
    apply_hit,
    apply_miss,
    hit_score,
    summarize_results,
)
from note_scheduler import NoteScheduler


def _detected(full_name: str) -> DetectedNote:
    return DetectedNote(note=full_name[:-1], octave=int(full_name[-1]), full_name=full_name, frequency=0.0, volume=0.2)


def _states(*notes: ChartNote) -> tuple:
    return tuple(NoteRuntimeState(chart_note=note, lane=0) for note in notes)


def test_hit_score_grows_with_streak() -> None:
    assert hit_score(1) == 110
    assert hit_score(2) == 120
    assert hit_score(10) == 200


def test_apply_hit_and_miss_track_streaks() -> None:
    stats = GameStats(total_notes=3)
    stats = apply_hit(stats)
    stats = apply_hit(stats)
    assert (stats.hit_notes, stats.streak, stats.best_streak, stats.score) == (2, 2, 2, 230)

    stats = apply_miss(stats)
    assert (stats.streak, stats.best_streak, stats.score) == (0, 2, 230)

    stats = apply_hit(stats)
    assert (stats.streak, stats.best_streak, stats.score) == (1, 2, 340)


def test_note_position_follows_fall_time() -> None:
    states = _states(ChartNote("C4", 5.0, 0))
    windows = JudgementWindows()

    outcome = advance_notes(states, GameStats(total_notes=1), elapsed_seconds=2.0, detected_note=None, windows=windows)
    assert outcome.note_states[0].y == pytest.approx(0.0)

    outcome = advance_notes(states, GameStats(total_notes=1), elapsed_seconds=5.0, detected_note=None, windows=windows)
    assert outcome.note_states[0].y == pytest.approx(1.0)


def test_matching_pitch_inside_window_hits() -> None:
    outcome = advance_notes(
        _states(ChartNote("C4", 5.0, 0)),
        GameStats(total_notes=1),
        elapsed_seconds=5.3,
        detected_note=_detected("C4"),
        windows=JudgementWindows(),
    )
    assert outcome.note_states[0].hit
    assert outcome.stats.score == 110
    (event,) = outcome.judgements
    assert event.judgement == "hit"
    assert event.score_awarded == 110
    assert event.delta_seconds == pytest.approx(0.3)


def test_wrong_pitch_neither_hits_nor_misses() -> None:
    outcome = advance_notes(
        _states(ChartNote("C4", 5.0, 0)),
        GameStats(total_notes=1),
        elapsed_seconds=5.0,
        detected_note=_detected("G4"),
        windows=JudgementWindows(),
    )
    assert outcome.note_states[0].is_pending
    assert outcome.judgements == ()


def test_neighbouring_semitone_is_accepted() -> None:
    outcome = advance_notes(
        _states(ChartNote("C4", 5.0, 0)),
        GameStats(total_notes=1),
        elapsed_seconds=5.0,
        detected_note=_detected("B3"),
        windows=JudgementWindows(),
    )
    assert outcome.note_states[0].hit


def test_window_edges_are_exclusive() -> None:
    windows = JudgementWindows(hit_window_seconds=0.5)
    states = _states(ChartNote("C4", 5.0, 0))
    stats = GameStats(total_notes=1)

    early = advance_notes(states, stats, elapsed_seconds=4.5, detected_note=_detected("C4"), windows=windows)
    assert early.note_states[0].is_pending

    late = advance_notes(states, stats, elapsed_seconds=5.5, detected_note=_detected("C4"), windows=windows)
    assert late.note_states[0].is_pending
    assert late.judgements == ()

    past = advance_notes(states, stats, elapsed_seconds=5.75, detected_note=_detected("C4"), windows=windows)
    assert past.note_states[0].missed


def test_miss_resets_streak_and_emits_event() -> None:
    stats = GameStats(total_notes=2, hit_notes=1, streak=1, best_streak=1, score=110)
    outcome = advance_notes(
        _states(ChartNote("C4", 5.0, 0)),
        stats,
        elapsed_seconds=6.0,
        detected_note=None,
        windows=JudgementWindows(),
    )
    assert outcome.note_states[0].missed
    assert outcome.stats.streak == 0
    assert outcome.stats.best_streak == 1
    assert outcome.stats.score == 110
    assert [event.judgement for event in outcome.judgements] == ["miss"]


def test_one_detection_can_hit_several_notes_in_window() -> None:
    outcome = advance_notes(
        _states(ChartNote("C4", 5.0, 0), ChartNote("C4", 5.25, 1)),
        GameStats(total_notes=2),
        elapsed_seconds=5.0,
        detected_note=_detected("C4"),
        windows=JudgementWindows(),
    )
    assert all(state.hit for state in outcome.note_states)
    assert outcome.stats.score == 230
    assert [event.score_awarded for event in outcome.judgements] == [110, 120]


def test_resolved_notes_are_left_untouched() -> None:
    resolved = NoteRuntimeState(chart_note=ChartNote("C4", 5.0, 0), lane=0, missed=True, y=1.2)
    outcome = advance_notes(
        (resolved,),
        GameStats(total_notes=1),
        elapsed_seconds=5.0,
        detected_note=_detected("C4"),
        windows=JudgementWindows(),
    )
    assert outcome.note_states[0] is resolved
    assert outcome.judgements == ()


def _engine(*notes: ChartNote) -> JudgeEngine:
    chart = SongChart(name="t", level=1, level_label="t", notes=tuple(notes), duration_seconds=20.0)
    scheduler = NoteScheduler(chart, ("C",), lambda name, lanes: 0)
    return JudgeEngine(scheduler, JudgementWindows())


def test_engine_accumulates_and_resets() -> None:
    engine = _engine(ChartNote("C4", 5.0, 0), ChartNote("E4", 7.0, 1))

    assert [event.judgement for event in engine.update_for_time(5.0, _detected("C4"))] == ["hit"]
    assert [event.judgement for event in engine.update_for_time(8.0, None)] == ["miss"]
    assert engine.stats().hit_notes == 1
    assert engine.stats().streak == 0

    engine.reset()
    assert engine.stats() == GameStats(total_notes=2)


def test_missed_note_is_never_revived() -> None:
    engine = _engine(ChartNote("C4", 5.0, 0))
    engine.update_for_time(6.0, None)
    assert engine.update_for_time(5.0, _detected("C4")) == []
    assert engine.stats().hit_notes == 0


@pytest.mark.parametrize(
    ("hit_notes", "total_notes", "percent", "stars", "message"),
    [
        (4, 5, 80, 3, "You're a superstar!"),
        (1, 2, 50, 2, "Great job! You're getting better!"),
        (1, 3, 33, 1, "Good try! Keep practicing!"),
        (2, 3, 67, 2, "Great job! You're getting better!"),
        (0, 0, 0, 1, "Good try! Keep practicing!"),
    ],
)
def test_summarize_results(hit_notes: int, total_notes: int, percent: int, stars: int, message: str) -> None:
    summary = summarize_results(GameStats(total_notes=total_notes, hit_notes=hit_notes))
    assert (summary.percent, summary.stars, summary.message) == (percent, stars, message)
