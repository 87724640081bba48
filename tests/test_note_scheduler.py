from __future__ import annotations

import dataclasses

import pytest

from gameplay_models import ChartNote, SongChart
from note_scheduler import NoteScheduler, visible_notes
from song_charts import get_note_lane


def _scheduler() -> NoteScheduler:
    notes = (
        ChartNote("E4", 4.0, 1),
        ChartNote("C4", 4.0, 0),
        ChartNote("G4", 2.0, 2),
        ChartNote("A4", 12.0, 3),
    )
    chart = SongChart(name="t", level=1, level_label="t", notes=notes, duration_seconds=20.0)
    return NoteScheduler(chart, ("C", "D", "E", "F", "G", "A"), get_note_lane)


def test_notes_are_sorted_by_time_then_id() -> None:
    scheduler = _scheduler()
    assert [state.chart_note.note_id for state in scheduler.note_states()] == [2, 0, 1, 3]
    assert [state.lane for state in scheduler.note_states()] == [4, 0, 2, 5]
    assert [note.note_id for note in scheduler.chart().notes] == [2, 0, 1, 3]


def test_visible_notes_window() -> None:
    states = _scheduler().note_states()
    shown = visible_notes(states, elapsed_seconds=3.0, lookback_seconds=1.0, lookahead_seconds=5.0)
    assert [state.chart_note.note_id for state in shown] == [2, 0, 1]


def test_replace_rejects_unresolving_a_note() -> None:
    scheduler = _scheduler()
    first, *rest = scheduler.note_states()
    scheduler.replace_note_states((dataclasses.replace(first, hit=True), *rest))
    assert scheduler.hit_count() == 1

    with pytest.raises(ValueError):
        scheduler.replace_note_states((first, *rest))


def test_replace_rejects_hit_and_missed() -> None:
    scheduler = _scheduler()
    first, *rest = scheduler.note_states()
    with pytest.raises(ValueError):
        scheduler.replace_note_states((dataclasses.replace(first, hit=True, missed=True), *rest))


def test_replace_rejects_wrong_count_or_order() -> None:
    scheduler = _scheduler()
    states = scheduler.note_states()
    with pytest.raises(ValueError):
        scheduler.replace_note_states(states[:-1])
    with pytest.raises(ValueError):
        scheduler.replace_note_states(tuple(reversed(states)))


def test_reset_restores_pending_notes() -> None:
    scheduler = _scheduler()
    first, *rest = scheduler.note_states()
    scheduler.replace_note_states((dataclasses.replace(first, missed=True), *rest))
    assert scheduler.missed_count() == 1
    assert len(scheduler.pending_notes()) == 3

    scheduler.reset()
    assert scheduler.missed_count() == 0
    assert len(scheduler.pending_notes()) == 4
