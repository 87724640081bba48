# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Own the per-note runtime state (lane, hit, missed, vertical position) for one chart.
# - Provide queries for pending notes, visible notes and resolution counts.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Schedule order is deterministic: sort by (time_seconds, note_id).
# - Exactly one NoteRuntimeState per ChartNote. States are frozen; the scheduler swaps in the tuple
#   produced by judge.advance_notes and refuses any update that would un-hit or un-miss a note.
#
########################
# Interfaces:
# Public classes:
# - class NoteScheduler
#   - __init__(chart: gameplay_models.SongChart, lanes: Sequence[str], lane_for_note: Callable[[str, Sequence[str]], int])
#   - chart() -> gameplay_models.SongChart
#   - lanes() -> tuple[str, ...]
#   - note_states() -> tuple[NoteRuntimeState, ...]
#   - replace_note_states(note_states: Sequence[NoteRuntimeState]) -> None
#   - reset() -> None
#   - pending_notes() -> list[NoteRuntimeState]
#   - hit_count() -> int
#   - missed_count() -> int
#
# Public functions:
# - visible_notes(note_states, *, elapsed_seconds, lookback_seconds, lookahead_seconds) -> list[NoteRuntimeState]
#
# Inputs:
# - SongChart and lane assignment from song_charts.
#
# Outputs:
# - NoteRuntimeState views for judge and rendering.
#
########################

from __future__ import annotations

import dataclasses
from typing import Callable, List, Sequence, Tuple

import gameplay_models

LaneForNote = Callable[[str, Sequence[str]], int]


def visible_notes(
    note_states: Sequence[gameplay_models.NoteRuntimeState],
    *,
    elapsed_seconds: float,
    lookback_seconds: float,
    lookahead_seconds: float,
) -> List[gameplay_models.NoteRuntimeState]:
    start_time = float(elapsed_seconds) - float(lookback_seconds)
    end_time = float(elapsed_seconds) + float(lookahead_seconds)
    visible: List[gameplay_models.NoteRuntimeState] = []
    for note_state in note_states:
        note_time = float(note_state.chart_note.time_seconds)
        if start_time <= note_time <= end_time:
            visible.append(note_state)
    return visible


class NoteScheduler:
    def __init__(
        self,
        chart: gameplay_models.SongChart,
        lanes: Sequence[str],
        lane_for_note: LaneForNote,
    ) -> None:
        sorted_notes = sorted(chart.notes, key=lambda item: (float(item.time_seconds), int(item.note_id)))
        self._chart = gameplay_models.SongChart(
            name=str(chart.name),
            level=int(chart.level),
            level_label=str(chart.level_label),
            notes=tuple(sorted_notes),
            duration_seconds=float(chart.duration_seconds),
            description=str(chart.description),
        )
        self._lanes: Tuple[str, ...] = tuple(str(lane) for lane in lanes)
        self._initial_states = tuple(
            gameplay_models.NoteRuntimeState(
                chart_note=chart_note,
                lane=int(lane_for_note(chart_note.note_name, self._lanes)),
            )
            for chart_note in self._chart.notes
        )
        self._note_states = self._initial_states

    def chart(self) -> gameplay_models.SongChart:
        return self._chart

    def lanes(self) -> Tuple[str, ...]:
        return self._lanes

    def note_states(self) -> Tuple[gameplay_models.NoteRuntimeState, ...]:
        return self._note_states

    def replace_note_states(self, note_states: Sequence[gameplay_models.NoteRuntimeState]) -> None:
        updated = tuple(note_states)
        if len(updated) != len(self._note_states):
            raise ValueError("Note state count must match the chart")
        for before, after in zip(self._note_states, updated):
            if before.chart_note != after.chart_note:
                raise ValueError("Note states must keep chart order")
            if (before.hit and not after.hit) or (before.missed and not after.missed):
                raise ValueError(f"Resolved note {before.chart_note.note_id} cannot return to pending")
            if after.hit and after.missed:
                raise ValueError(f"Note {after.chart_note.note_id} cannot be both hit and missed")
        self._note_states = updated

    def reset(self) -> None:
        self._note_states = self._initial_states

    def pending_notes(self) -> List[gameplay_models.NoteRuntimeState]:
        return [note_state for note_state in self._note_states if note_state.is_pending]

    def hit_count(self) -> int:
        return sum(1 for note_state in self._note_states if note_state.hit)

    def missed_count(self) -> int:
        return sum(1 for note_state in self._note_states if note_state.missed)


def _run_unit_tests() -> None:
    notes = (
        gameplay_models.ChartNote(note_name="E4", time_seconds=1.0, note_id=1),
        gameplay_models.ChartNote(note_name="C4", time_seconds=1.0, note_id=0),
        gameplay_models.ChartNote(note_name="G4", time_seconds=0.5, note_id=2),
    )
    chart = gameplay_models.SongChart(name="t", level=1, level_label="t", notes=notes, duration_seconds=5.0)
    lanes = ("C", "E", "G")
    scheduler = NoteScheduler(chart, lanes, lambda name, lane_names: list(lane_names).index(name[:-1]))

    ordered = [(s.chart_note.time_seconds, s.chart_note.note_id, s.lane) for s in scheduler.note_states()]
    assert ordered == [(0.5, 2, 2), (1.0, 0, 0), (1.0, 1, 1)]

    shown = visible_notes(scheduler.note_states(), elapsed_seconds=0.0, lookback_seconds=0.0, lookahead_seconds=0.75)
    assert [s.chart_note.note_id for s in shown] == [2]

    first, second, third = scheduler.note_states()
    scheduler.replace_note_states((dataclasses.replace(first, missed=True), second, third))
    assert scheduler.missed_count() == 1

    try:
        scheduler.replace_note_states((first, second, third))
    except ValueError:
        pass
    else:
        raise AssertionError("un-missing a note must be rejected")

    scheduler.reset()
    assert len(scheduler.pending_notes()) == 3


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
