# -*- coding: utf-8 -*-
########################
# game_engine.py
########################
# Purpose:
# - Timing state machine for one play session: idle -> countdown -> playing <-> paused -> finished.
# - On every tick: read the clock once, take one pitch estimate, advance note states and stats,
#   and publish an immutable GameSnapshot to every subscriber.
#
# Design notes:
# - No Qt usage. The scheduler loop is owned by the caller (gameplay_harness QTimer, or the headless loop
#   in pitchlane.py) and calls tick() once per frame. tick() never blocks.
# - The clock is injected (timing_model.Clock) so tests can drive exact timestamps.
# - Audio capture is acquired once in start(), before the countdown, and released on stop() and on finish.
#   Pausing keeps it held.
# - pause(), resume() and stop() are no-ops outside their valid source states. stop() is idempotent.
# - A failing observer is logged and skipped. A tick always produces a snapshot.
#
########################
# Interfaces:
# Public types:
# - SnapshotObserver = Callable[[GameSnapshot], None]
#
# Public classes:
# - class GameEngine
#   - __init__(chart: SongChart, *, pitch_detector: PitchDetector, clock: Optional[Clock] = None,
#              lanes: Optional[Sequence[str]] = None, judgement_windows: Optional[JudgementWindows] = None,
#              countdown_seconds: float = 3.0)
#   - state() -> GameState
#   - subscribe(observer: SnapshotObserver) -> Callable[[], None]
#   - start() -> None            (raises CapturePermissionError, engine stays idle)
#   - pause() -> None
#   - resume() -> None
#   - stop() -> None
#   - tick() -> GameSnapshot
#   - get_snapshot() -> GameSnapshot
#
# Inputs:
# - SongChart, PitchDetector, clock readings.
#
# Outputs:
# - GameSnapshot for renderers and the results screen.
#
########################

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import gameplay_models
from gameplay_models import GameState
import judge
import note_scheduler
import pitch_detection
import song_charts
import timing_model

logger = logging.getLogger(__name__)

SnapshotObserver = Callable[[gameplay_models.GameSnapshot], None]


class GameEngine:
    def __init__(
        self,
        chart: gameplay_models.SongChart,
        *,
        pitch_detector: pitch_detection.PitchDetector,
        clock: Optional[timing_model.Clock] = None,
        lanes: Optional[Sequence[str]] = None,
        judgement_windows: Optional[judge.JudgementWindows] = None,
        countdown_seconds: float = 3.0,
    ) -> None:
        lane_names = tuple(lanes) if lanes is not None else song_charts.get_lane_notes(chart.level)

        self._clock: timing_model.Clock = clock if clock is not None else timing_model.MonotonicClock()
        self._pitch_detector = pitch_detector
        self._timing = timing_model.TimingModel(countdown_seconds=countdown_seconds)
        self._note_scheduler = note_scheduler.NoteScheduler(chart, lane_names, song_charts.get_note_lane)
        self._judge_engine = judge.JudgeEngine(
            self._note_scheduler,
            judgement_windows if judgement_windows is not None else judge.JudgementWindows(),
        )

        self._state = GameState.IDLE
        self._detected_note: Optional[gameplay_models.DetectedNote] = None
        self._last_judgements: Tuple[gameplay_models.JudgementEvent, ...] = ()
        self._observers: List[SnapshotObserver] = []

    def state(self) -> GameState:
        return self._state

    def chart(self) -> gameplay_models.SongChart:
        return self._note_scheduler.chart()

    def judgement_windows(self) -> judge.JudgementWindows:
        return self._judge_engine.judgement_windows()

    def subscribe(self, observer: SnapshotObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # -----------------
    # Control operations
    # -----------------

    def start(self) -> None:
        if self._state != GameState.IDLE:
            return

        # Raises CapturePermissionError; the engine stays idle.
        self._pitch_detector.start()

        self._judge_engine.reset()
        self._detected_note = None
        self._last_judgements = ()
        self._timing.start_countdown(self._clock())
        self._set_state(GameState.COUNTDOWN)
        self._publish(self.get_snapshot())

    def pause(self) -> None:
        if self._state != GameState.PLAYING:
            return
        self._timing.pause()
        self._set_state(GameState.PAUSED)
        self._publish(self.get_snapshot())

    def resume(self) -> None:
        if self._state != GameState.PAUSED:
            return
        self._timing.resume(self._clock())
        self._set_state(GameState.PLAYING)
        self._publish(self.get_snapshot())

    def stop(self) -> None:
        self._pitch_detector.stop()
        if self._state == GameState.IDLE:
            return
        self._set_state(GameState.IDLE)
        self._publish(self.get_snapshot())

    # -----------------
    # Tick
    # -----------------

    def tick(self) -> gameplay_models.GameSnapshot:
        now_seconds = self._clock()
        self._last_judgements = ()

        if self._state == GameState.COUNTDOWN:
            self._tick_countdown(now_seconds)
        elif self._state == GameState.PLAYING:
            self._tick_playing(now_seconds)

        snapshot = self.get_snapshot()
        self._publish(snapshot)
        return snapshot

    def _tick_countdown(self, now_seconds: float) -> None:
        self._timing.countdown_value(now_seconds)
        if self._timing.countdown_elapsed_seconds(now_seconds) >= self._timing.countdown_seconds():
            self._timing.begin_playing(now_seconds)
            self._set_state(GameState.PLAYING)

    def _tick_playing(self, now_seconds: float) -> None:
        elapsed_seconds = self._timing.update(now_seconds)
        self._detected_note = self._pitch_detector.detect()

        self._last_judgements = tuple(self._judge_engine.update_for_time(elapsed_seconds, self._detected_note))
        for event in self._last_judgements:
            logger.debug(f"{event.judgement} note={event.note_name} id={event.note_id} delta={event.delta_seconds:+.3f}")

        if elapsed_seconds >= self._note_scheduler.chart().duration_seconds:
            self._pitch_detector.stop()
            self._set_state(GameState.FINISHED)
            stats = self._judge_engine.stats()
            scheduler = self._note_scheduler
            logger.info(
                f"Song finished: score={stats.score} hits={scheduler.hit_count()} missed={scheduler.missed_count()} "
                f"unresolved={len(scheduler.pending_notes())} best_streak={stats.best_streak}"
            )

    # -----------------
    # Snapshot
    # -----------------

    def get_snapshot(self) -> gameplay_models.GameSnapshot:
        chart = self._note_scheduler.chart()
        timing_snapshot = self._timing.snapshot()
        return gameplay_models.GameSnapshot(
            state=self._state,
            elapsed_seconds=timing_snapshot.elapsed_seconds,
            countdown=timing_snapshot.countdown,
            notes=self._note_scheduler.note_states(),
            stats=self._judge_engine.stats(),
            detected_note=self._detected_note,
            lanes=self._note_scheduler.lanes(),
            song_name=chart.name,
            level_label=chart.level_label,
            duration_seconds=chart.duration_seconds,
            judgements=self._last_judgements,
        )

    def _set_state(self, new_state: GameState) -> None:
        if new_state == self._state:
            return
        logger.info(f"Game state {self._state.value} -> {new_state.value}")
        self._state = new_state

    def _publish(self, snapshot: gameplay_models.GameSnapshot) -> None:
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Snapshot observer failed")
